"""
Utility functions
"""
from .time_utils import coepi_timestamp, from_coepi_timestamp

__all__ = ['coepi_timestamp', 'from_coepi_timestamp']
