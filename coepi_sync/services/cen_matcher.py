"""
CenMatcher - decides whether a disclosed key explains any local observation.

Observed CENs cannot be reversed, so the matcher re-derives every CEN the
disclosed key could have produced over its validity interval and looks for
them in the observation catalogue. An observation only counts if it was made
inside that interval.
"""
import logging
from typing import Set

from coepi_sync.models.domain.cen import DisclosureKey, RollingKey
from coepi_sync.repositories.cen_repository import ObservationStore
from coepi_sync.services.cen_logic import CEN_ROTATION_INTERVAL, derive_all, window_index

logger = logging.getLogger(__name__)


class CenMatcher:
    """
    Matches disclosure keys against the observed CEN catalogue.

    Usage:
        matcher = CenMatcher(observation_store)
        if matcher.has_matches(key, as_of=coepi_timestamp()):
            ...
    """

    def __init__(self, observations: ObservationStore, interval_seconds: int = CEN_ROTATION_INTERVAL):
        self.observations = observations
        self.interval_seconds = interval_seconds

    def candidate_cens(self, key: DisclosureKey, start: int, end: int) -> Set[bytes]:
        """All CENs key produces in windows overlapping [start, end]"""
        first = window_index(start, self.interval_seconds)
        last = window_index(end, self.interval_seconds)
        rolling_key = RollingKey(key=key.key, timestamp=start)
        return set(derive_all(rolling_key, last - first + 1, first_window=first))

    def has_matches(self, key: DisclosureKey, as_of: int) -> bool:
        """
        Check if any observation is explained by key

        Args:
            key: Disclosed key with its validity interval
            as_of: Upper bound for the interval (usually now)

        Returns:
            True on the first observation inside the interval whose CEN the
            key derives
        """
        start = max(key.valid_from, 0)
        end = min(key.valid_until, as_of)
        if end < start:
            return False

        observed = self.observations.all()
        if not observed:
            return False

        candidates = self.candidate_cens(key, start, end)
        for observation in observed:
            if start <= observation.timestamp <= end and observation.cen in candidates:
                logger.debug(f"Key {key.key} matches {observation}")
                return True
        return False
