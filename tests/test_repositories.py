from coepi_sync.models.domain.cen import ObservedCen, RollingKey
from coepi_sync.repositories import InMemoryObservationStore, InMemoryOwnKeyStore


def test_observation_store_insert_is_idempotent():
    store = InMemoryObservationStore()
    observed = ObservedCen(cen=b"\x02" * 16, timestamp=100)

    assert store.insert(observed)
    assert not store.insert(ObservedCen(cen=b"\x02" * 16, timestamp=100))
    assert store.insert(ObservedCen(cen=b"\x02" * 16, timestamp=200))
    assert len(store) == 2


def test_observation_store_prunes_old_entries():
    store = InMemoryObservationStore()
    for ts in (100, 200, 300):
        store.insert(ObservedCen(cen=bytes([ts % 256]) * 16, timestamp=ts))

    assert store.prune_before(250) == 2
    assert [o.timestamp for o in store.all()] == [300]


def test_most_recent_is_newest_first_and_bounded():
    store = InMemoryOwnKeyStore()
    for ts in (30, 10, 20, 40):
        store.add(RollingKey(key=f"{ts:032x}", timestamp=ts))

    assert [k.timestamp for k in store.most_recent(3)] == [40, 30, 20]
    assert [k.timestamp for k in store.most_recent(10)] == [40, 30, 20, 10]
    assert store.most_recent(0) == []


def test_current_key_rotates_after_rotation_period():
    store = InMemoryOwnKeyStore(rotation_seconds=100)

    first = store.current_key(1000)
    assert store.current_key(1099) == first

    second = store.current_key(1100)
    assert second != first
    assert second.timestamp == 1100
    assert store.most_recent(2) == [second, first]
