"""
Pytest configuration and shared fakes for coepi_sync tests.
"""

import base64
from typing import Dict, List, Optional

import pytest

from coepi_sync.config.settings import Settings
from coepi_sync.models.api.cen_report import CenReportPayload, CenReportRequest
from coepi_sync.models.domain.cen import RollingKey
from coepi_sync.models.domain.errors import NetworkError
from coepi_sync.repositories import InMemoryObservationStore, InMemoryOwnKeyStore


def pytest_configure(config):
    """Configure pytest with asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


class FakeCenApi:
    """
    In-process stand-in for CenApiClient

    keys: returned by fetch_keys_since (or raise if keys_error is set)
    reports: key -> list of payloads; keys in failing_keys raise NetworkError
    """

    def __init__(
        self,
        keys: Optional[List[str]] = None,
        reports: Optional[Dict[str, List[CenReportPayload]]] = None,
        failing_keys: Optional[set] = None,
        keys_error: Optional[Exception] = None,
        submit_error: Optional[Exception] = None
    ):
        self.keys = keys or []
        self.reports = reports or {}
        self.failing_keys = failing_keys or set()
        self.keys_error = keys_error
        self.submit_error = submit_error

        self.checkpoints: List[int] = []
        self.fetched: List[str] = []
        self.submitted: List[CenReportRequest] = []

    async def fetch_keys_since(self, checkpoint: int) -> List[str]:
        self.checkpoints.append(checkpoint)
        if self.keys_error is not None:
            raise self.keys_error
        return list(self.keys)

    async def fetch_reports(self, key: str) -> List[CenReportPayload]:
        self.fetched.append(key)
        if key in self.failing_keys:
            raise NetworkError(f"GET /cenreport/{key} failed: 500")
        return self.reports.get(key, [])

    async def submit_report(self, payload: CenReportRequest) -> None:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(payload)


class RecordingMatcher:
    """Matcher that matches a fixed set of key values and records its calls"""

    def __init__(self, matching: set):
        self.matching = matching
        self.calls: List[str] = []

    def has_matches(self, key, as_of: int) -> bool:
        self.calls.append(key.key)
        return key.key in self.matching


def make_payload(report_id: str, text: str, timestamp: int = 1588000000) -> CenReportPayload:
    return CenReportPayload(
        report_id=report_id,
        report=base64.b64encode(text.encode('utf-8')).decode('ascii'),
        report_timestamp=timestamp,
    )


@pytest.fixture
def settings():
    return Settings(
        api_base_url="http://cen.test",
        report_fetch_concurrency=2,
        fail_on_missing_own_keys=True,
    )


@pytest.fixture
def observations():
    return InMemoryObservationStore()


@pytest.fixture
def own_keys():
    store = InMemoryOwnKeyStore()
    for i in range(4):
        store.add(RollingKey(key=f"{i:02x}" * 16, timestamp=1588000000 + i * 3600))
    return store
