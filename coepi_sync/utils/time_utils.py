"""
Time helpers

All timestamps handled by the library are integer unix seconds (UTC).
"""
from datetime import datetime, timezone
from typing import Optional
import time


def coepi_timestamp(dt: Optional[datetime] = None) -> int:
    """
    Convert a datetime to unix seconds

    Naive datetimes are taken as UTC. None means now.
    """
    if dt is None:
        return int(time.time())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def from_coepi_timestamp(timestamp: int) -> datetime:
    """Unix seconds to an aware UTC datetime"""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
