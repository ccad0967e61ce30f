"""
Configuration module for the CEN API and matching parameters.
"""
from .settings import Settings, get_settings

__all__ = [
    'Settings',
    'get_settings',
]
