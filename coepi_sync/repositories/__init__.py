"""
Repository Pattern - Storage abstraction layer

Repositories hide storage details from the matching and submission services.
Consumers work with domain models through the Protocols below; the in-memory
classes are the default implementations.

Storage Split:
- ObservationStore: CENs observed from other devices (read by the matcher)
- OwnKeyStore: this device's rolling key history (read by report submission)
"""
from .cen_repository import ObservationStore, InMemoryObservationStore
from .cen_key_repository import OwnKeyStore, InMemoryOwnKeyStore

__all__ = [
    'ObservationStore',
    'InMemoryObservationStore',
    'OwnKeyStore',
    'InMemoryOwnKeyStore',
]
