"""
Error taxonomy for reconciliation and report submission.

Workflow-level errors are returned inside a Failure (reconciliation) or carried
by OperationState (submission). They are not raised to callers. The
underlying transport error, when there is one, is kept on __cause__.
"""


class CoEpiError(Exception):
    """Base class for all reconciliation and submission errors."""
    pass


class NetworkError(CoEpiError):
    """Raised by API clients when a request fails or returns an invalid body."""
    pass


class FetchKeysFailed(CoEpiError):
    """Disclosure key retrieval failed; no partial result is available."""
    pass


class NoReportsFetched(CoEpiError):
    """Every report fetch for the matched keys failed."""
    pass


class SubmissionFailed(CoEpiError):
    """The symptom report could not be delivered to the server."""
    pass


class NoOwnKeys(CoEpiError):
    """A report was submitted before this device had any rolling keys."""
    pass


def wrap_error(error_cls, message: str, cause: Exception) -> CoEpiError:
    """Build a taxonomy error with cause attached, without raising it"""
    error = error_cls(message)
    error.__cause__ = cause
    return error
