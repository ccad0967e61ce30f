"""
Observed CEN repository

Storage: in-memory, guarded by a lock. The radio layer inserts, the matcher
reads from a worker thread.
"""
import logging
from threading import Lock
from typing import Dict, List, Protocol, Sequence

from coepi_sync.models.domain.cen import ObservedCen

logger = logging.getLogger(__name__)


class ObservationStore(Protocol):
    """Catalogue of CENs observed from other devices"""

    def insert(self, observed: ObservedCen) -> bool:
        """Store an observation; False if it was already present"""
        ...

    def all(self) -> Sequence[ObservedCen]:
        ...


class InMemoryObservationStore:
    """
    Thread-safe in-memory observation catalogue

    An observation is a duplicate when both the CEN and the timestamp match.
    The same CEN seen at different times is kept once per sighting.
    """

    def __init__(self):
        self._observations: Dict[tuple, ObservedCen] = {}
        self._lock = Lock()

    def insert(self, observed: ObservedCen) -> bool:
        entry = (observed.cen, observed.timestamp)
        with self._lock:
            if entry in self._observations:
                return False
            self._observations[entry] = observed
            return True

    def all(self) -> List[ObservedCen]:
        with self._lock:
            return list(self._observations.values())

    def prune_before(self, timestamp: int) -> int:
        """Drop observations older than timestamp, returns the number removed"""
        with self._lock:
            stale = [k for k, obs in self._observations.items() if obs.timestamp < timestamp]
            for entry in stale:
                del self._observations[entry]
        if stale:
            logger.debug(f"Pruned {len(stale)} observed CENs older than {timestamp}")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._observations)
