"""
Domain Models - Transport-agnostic data structures

These models represent the core reconciliation entities independent of the
storage and network layers. Services operate on these models, not raw JSON.

Architecture:
- Domain models are pure Python objects (frozen dataclasses)
- Storage is abstracted via repositories
- Wire formats live in models.api and are converted at the client boundary
"""

from .cen import (
    RollingKey,
    ObservedCen,
    DisclosureKey,
    SymptomReport,
    ReceivedReport,
)
from .operation_state import OperationState, OperationStatus
from .result import Result, Success, Failure
from .errors import (
    CoEpiError,
    NetworkError,
    FetchKeysFailed,
    NoReportsFetched,
    SubmissionFailed,
    NoOwnKeys,
)

__all__ = [
    # Keys and identifiers
    'RollingKey',
    'ObservedCen',
    'DisclosureKey',

    # Reports
    'SymptomReport',
    'ReceivedReport',

    # Workflow state
    'OperationState',
    'OperationStatus',
    'Result',
    'Success',
    'Failure',

    # Errors
    'CoEpiError',
    'NetworkError',
    'FetchKeysFailed',
    'NoReportsFetched',
    'SubmissionFailed',
    'NoOwnKeys',
]
