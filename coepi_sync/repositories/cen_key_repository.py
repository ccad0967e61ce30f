"""
Own rolling key repository

Storage: in-memory, newest key last. Reports read the most recent keys
newest-first.
"""
import logging
from threading import Lock
from typing import List, Optional, Protocol, Sequence

from coepi_sync.models.domain.cen import RollingKey
from coepi_sync.services.cen_logic import generate_rolling_key

logger = logging.getLogger(__name__)


class OwnKeyStore(Protocol):
    """History of this device's rolling keys"""

    def most_recent(self, n: int) -> Sequence[RollingKey]:
        """Up to n keys, most recent first"""
        ...


class InMemoryOwnKeyStore:
    """
    Thread-safe in-memory key history

    current_key() rotates to a fresh key once the newest one is older than
    rotation_seconds.
    """

    def __init__(self, rotation_seconds: int = 604800):
        self.rotation_seconds = rotation_seconds
        self._keys: List[RollingKey] = []
        self._lock = Lock()

    def add(self, key: RollingKey):
        with self._lock:
            self._keys.append(key)
            self._keys.sort(key=lambda k: k.timestamp)

    def most_recent(self, n: int) -> List[RollingKey]:
        if n <= 0:
            return []
        with self._lock:
            return list(reversed(self._keys[-n:]))

    def latest(self) -> Optional[RollingKey]:
        with self._lock:
            return self._keys[-1] if self._keys else None

    def current_key(self, now: int) -> RollingKey:
        """
        Key to broadcast under at time now

        Generates and stores a new key when there is none yet or the newest
        has outlived the rotation period.
        """
        with self._lock:
            newest = self._keys[-1] if self._keys else None
            if newest is not None and now - newest.timestamp < self.rotation_seconds:
                return newest
            key = generate_rolling_key(now)
            self._keys.append(key)
        logger.info(f"Rotated own rolling key at {now}")
        return key
