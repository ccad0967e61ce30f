"""
CenApiClient - HTTP client for the CEN key and report endpoints.

Endpoints:
    GET  {base}/cenkeys/{checkpoint}  -> ["<hex key>", ...] (or null)
    GET  {base}/cenreport/{key}       -> [{"reportID", "report", "reportTimeStamp"}, ...]
    POST {base}/cenreport             <- {"reportID", "report", "cenKeys", "reportTimeStamp"}

Every failure (transport, HTTP status, unexpected body) is raised as
NetworkError so callers deal with a single exception type.

Usage:
    async with CenApiClient("https://coepi.wolk.com:8080") as client:
        keys = await client.fetch_keys_since(0)
"""
import logging
from typing import List, Optional, Protocol

import httpx
from pydantic import ValidationError

from coepi_sync.models.api.cen_report import CenReportPayload, CenReportRequest
from coepi_sync.models.domain.errors import NetworkError

logger = logging.getLogger(__name__)


class KeyDisclosureClient(Protocol):
    async def fetch_keys_since(self, checkpoint: int) -> List[str]:
        ...


class ReportClient(Protocol):
    async def fetch_reports(self, key: str) -> List[CenReportPayload]:
        ...

    async def submit_report(self, payload: CenReportRequest) -> None:
        ...


class CenApiClient:
    """httpx-based implementation of KeyDisclosureClient and ReportClient"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure httpx client exists."""
        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self.client

    async def close(self):
        """Close the client."""
        if self.client is not None and not self.client.is_closed:
            await self.client.aclose()

    async def __aenter__(self) -> 'CenApiClient':
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e
        return response

    @staticmethod
    def _json(response: httpx.Response):
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {response.request.url}") from e

    async def fetch_keys_since(self, checkpoint: int) -> List[str]:
        """
        Disclosed keys published since checkpoint

        Args:
            checkpoint: Unix seconds; 0 fetches everything

        Returns:
            Hex key strings, possibly with duplicates
        """
        response = await self._request("GET", f"/cenkeys/{checkpoint}")
        body = self._json(response)
        if body is None:
            return []
        if not isinstance(body, list) or not all(isinstance(k, str) for k in body):
            raise NetworkError(f"Unexpected cenkeys body: {body!r}")
        return body

    async def fetch_reports(self, key: str) -> List[CenReportPayload]:
        """Reports attached to a disclosed key"""
        response = await self._request("GET", f"/cenreport/{key}")
        body = self._json(response)
        if body is None:
            return []
        if not isinstance(body, list):
            raise NetworkError(f"Unexpected cenreport body for {key}: {body!r}")
        try:
            return [CenReportPayload.model_validate(item) for item in body]
        except ValidationError as e:
            raise NetworkError(f"Malformed report for key {key}") from e

    async def submit_report(self, payload: CenReportRequest) -> None:
        """POST a symptom report"""
        await self._request("POST", "/cenreport", json=payload.to_json())
