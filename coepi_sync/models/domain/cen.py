"""
CEN domain models

RollingKey and the identifiers derived from it are the only secrets handled
here. Identifiers (CENs) are plain bytes; they are never reversed into keys.
"""
from dataclasses import dataclass, field
from uuid import uuid4


@dataclass(frozen=True)
class RollingKey:
    """
    A rolling secret from which CENs are derived.

    key: 16-byte secret as 32 hex characters
    timestamp: issuance time (unix seconds)
    """
    key: str
    timestamp: int


@dataclass(frozen=True)
class ObservedCen:
    """A CEN seen by the radio layer, with the local time it was observed"""
    cen: bytes
    timestamp: int

    def __repr__(self) -> str:
        return f"ObservedCen(cen={self.cen.hex()}, timestamp={self.timestamp})"


@dataclass(frozen=True)
class DisclosureKey:
    """
    A rolling key disclosed by a symptomatic user, as fetched from the server.

    timestamp is the local fetch time, used as the anchor of the validity
    interval [timestamp - validity_seconds, timestamp]. checkpoint is the
    fetch marker the key was retrieved with.
    """
    key: str
    timestamp: int
    validity_seconds: int
    checkpoint: int = 0

    @property
    def valid_from(self) -> int:
        return self.timestamp - self.validity_seconds

    @property
    def valid_until(self) -> int:
        return self.timestamp


@dataclass(frozen=True)
class SymptomReport:
    """User-authored symptom report awaiting submission"""
    report: str
    timestamp: int
    report_id: str = field(default_factory=lambda: uuid4().hex)


@dataclass(frozen=True)
class ReceivedReport:
    """Symptom report retrieved for a matched disclosure key"""
    report_id: str
    report: str
    timestamp: int
