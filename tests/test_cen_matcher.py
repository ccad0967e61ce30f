"""
CenMatcher tests

Validity interval used throughout: [T0, T1] with T1 = T0 + one week.
"""

import pytest

from coepi_sync.models.domain.cen import DisclosureKey, ObservedCen, RollingKey
from coepi_sync.repositories import InMemoryObservationStore
from coepi_sync.services.cen_logic import derive, generate_rolling_key, window_index
from coepi_sync.services.cen_matcher import CenMatcher

WEEK = 7 * 24 * 3600
T1 = 1588000000
T0 = T1 - WEEK


@pytest.fixture
def rolling_key():
    return generate_rolling_key(T0)


@pytest.fixture
def disclosure(rolling_key):
    return DisclosureKey(key=rolling_key.key, timestamp=T1, validity_seconds=WEEK)


def observe(store, key: RollingKey, at: int):
    store.insert(ObservedCen(cen=derive(key, window_index(at)), timestamp=at))


def test_observation_inside_interval_matches(observations, rolling_key, disclosure):
    observe(observations, rolling_key, T0 + 3 * 3600)
    assert CenMatcher(observations).has_matches(disclosure, as_of=T1)


@pytest.mark.parametrize("offset", [0, WEEK // 2, WEEK])
def test_interval_bounds_are_inclusive(observations, rolling_key, disclosure, offset):
    observe(observations, rolling_key, T0 + offset)
    assert CenMatcher(observations).has_matches(disclosure, as_of=T1)


def test_same_cen_observed_outside_interval_does_not_match(observations, rolling_key, disclosure):
    inside = T0 + 3600
    cen = derive(rolling_key, window_index(inside))
    observations.insert(ObservedCen(cen=cen, timestamp=T0 - 1))
    observations.insert(ObservedCen(cen=cen, timestamp=T1 + 1))

    assert not CenMatcher(observations).has_matches(disclosure, as_of=T1)


def test_observation_after_as_of_does_not_match(observations, rolling_key, disclosure):
    observe(observations, rolling_key, T1 - 60)
    assert not CenMatcher(observations).has_matches(disclosure, as_of=T1 - 3600)


def test_empty_catalogue_never_matches(disclosure):
    assert not CenMatcher(InMemoryObservationStore()).has_matches(disclosure, as_of=T1)


def test_key_with_zero_valid_windows_does_not_match(observations, rolling_key, disclosure):
    observe(observations, rolling_key, T0 + 60)
    assert not CenMatcher(observations).has_matches(disclosure, as_of=T0 - 1)


def test_other_key_does_not_match(observations, disclosure):
    observe(observations, generate_rolling_key(T0), T0 + 3600)
    assert not CenMatcher(observations).has_matches(disclosure, as_of=T1)


def test_match_among_unrelated_observations(observations, rolling_key, disclosure):
    for i in range(50):
        observe(observations, generate_rolling_key(T0), T0 + i * 900)
    observe(observations, rolling_key, T1 - 900)

    assert CenMatcher(observations).has_matches(disclosure, as_of=T1)


def test_candidate_cens_cover_interval(observations, disclosure):
    matcher = CenMatcher(observations)
    candidates = matcher.candidate_cens(disclosure, T0, T0 + 3 * 900)
    assert len(candidates) == 4
