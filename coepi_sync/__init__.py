"""
coepi-sync - exposure reconciliation for Contact Event Numbers (CENs).

Matches locally observed CENs against disclosed rolling keys, fetches the
symptom reports behind the matches, and submits this device's own reports.
"""
from coepi_sync.services.coepi_repo import CoEpiRepo, ReconcileOutcome
from coepi_sync.services.cen_matcher import CenMatcher
from coepi_sync.services.cen_api_client import CenApiClient
from coepi_sync.services.report_sender import ReportSubmissionPipeline
from coepi_sync.services.state_notifier import OperationStateNotifier
from coepi_sync.repositories import InMemoryObservationStore, InMemoryOwnKeyStore

__all__ = [
    'CoEpiRepo',
    'ReconcileOutcome',
    'CenMatcher',
    'CenApiClient',
    'ReportSubmissionPipeline',
    'OperationStateNotifier',
    'InMemoryObservationStore',
    'InMemoryOwnKeyStore',
]
