"""
Operation state domain model
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OperationStatus(str, Enum):
    """Lifecycle of a single send-report operation"""
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationState:
    """
    Observable state of the report submission pipeline.

    Transitions: IDLE -> IN_PROGRESS -> (SUCCEEDED | FAILED) -> IDLE.
    error is set only for FAILED.
    """
    status: OperationStatus
    error: Optional[Exception] = None

    @classmethod
    def idle(cls) -> 'OperationState':
        return cls(OperationStatus.IDLE)

    @classmethod
    def in_progress(cls) -> 'OperationState':
        return cls(OperationStatus.IN_PROGRESS)

    @classmethod
    def succeeded(cls) -> 'OperationState':
        return cls(OperationStatus.SUCCEEDED)

    @classmethod
    def failed(cls, error: Exception) -> 'OperationState':
        return cls(OperationStatus.FAILED, error)

    @property
    def is_terminal(self) -> bool:
        return self.status in (OperationStatus.SUCCEEDED, OperationStatus.FAILED)
