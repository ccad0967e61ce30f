"""
Report submission pipeline

Turns "send report" triggers into POST /cenreport calls tagged with this
device's most recent rolling keys, one submission at a time.

Flow per queued report:
1. Publish IN_PROGRESS
2. Read up to N own keys (most recent first)
3. No keys -> no network call; FAILED(NoOwnKeys), or SUCCEEDED when
   fail_on_missing_own_keys is off
4. Otherwise POST the report -> SUCCEEDED, or FAILED(SubmissionFailed)
5. Publish IDLE

Triggers are queued FIFO and processed by a single worker task, so the states
of two submissions never interleave.
"""
import asyncio
import logging
from typing import Optional

from coepi_sync.models.api.cen_report import CenReportRequest
from coepi_sync.models.domain.cen import SymptomReport
from coepi_sync.models.domain.errors import NetworkError, NoOwnKeys, SubmissionFailed, wrap_error
from coepi_sync.models.domain.operation_state import OperationState, OperationStatus
from coepi_sync.repositories.cen_key_repository import OwnKeyStore
from coepi_sync.services.cen_api_client import ReportClient
from coepi_sync.services.state_notifier import OperationStateNotifier

logger = logging.getLogger(__name__)


class ReportSubmissionPipeline:
    """
    Single-flight queue of symptom report submissions

    Usage:
        pipeline = ReportSubmissionPipeline(own_keys, api, notifier)
        pipeline.start()
        pipeline.submit(report)   # never raises
        await pipeline.join()     # wait for the queue to drain
        await pipeline.aclose()
    """

    def __init__(
        self,
        own_keys: OwnKeyStore,
        client: ReportClient,
        notifier: Optional[OperationStateNotifier] = None,
        keys_per_report: int = 3,
        fail_on_missing_own_keys: bool = True
    ):
        self.own_keys = own_keys
        self.client = client
        self.notifier = notifier or OperationStateNotifier()
        self.keys_per_report = keys_per_report
        self.fail_on_missing_own_keys = fail_on_missing_own_keys

        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self.reports_sent = 0
        self.reports_failed = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self):
        """Start the worker task on the running event loop"""
        if not self.running:
            self._worker = asyncio.get_running_loop().create_task(self._run())

    def submit(self, report: SymptomReport):
        """Queue a report for submission"""
        self._queue.put_nowait(report)
        logger.debug(f"Queued report {report.report_id} ({self._queue.qsize()} pending)")

    async def join(self):
        """Wait until every queued report has been processed"""
        await self._queue.join()

    async def aclose(self):
        """Drain the queue, then stop the worker"""
        if self._worker is None:
            return
        if self.running:
            await self._queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _run(self):
        logger.info("Report submission worker started")
        while True:
            report = await self._queue.get()
            try:
                await self._process(report)
            finally:
                self._queue.task_done()

    async def _process(self, report: SymptomReport):
        self.notifier.publish(OperationState.in_progress())
        try:
            state = await self._send(report)
        except Exception as e:
            logger.error(f"Report {report.report_id} submission crashed: {e}", exc_info=True)
            state = OperationState.failed(
                wrap_error(SubmissionFailed, f"Report {report.report_id} was not sent", e)
            )

        if state.status == OperationStatus.SUCCEEDED:
            self.reports_sent += 1
        else:
            self.reports_failed += 1
        self.notifier.publish(state)
        self.notifier.publish(OperationState.idle())

    async def _send(self, report: SymptomReport) -> OperationState:
        keys = list(self.own_keys.most_recent(self.keys_per_report))
        if not keys:
            logger.error(f"Can't send report {report.report_id}. No own rolling keys.")
            if self.fail_on_missing_own_keys:
                return OperationState.failed(NoOwnKeys("No rolling keys to attach to the report"))
            return OperationState.succeeded()

        payload = CenReportRequest.from_symptom_report(report, keys)
        logger.info(f"Sending report {report.report_id} with {len(keys)} keys")
        try:
            await self.client.submit_report(payload)
        except NetworkError as e:
            logger.error(f"Failed to send report {report.report_id}: {e}")
            return OperationState.failed(
                wrap_error(SubmissionFailed, f"Report {report.report_id} was not sent", e)
            )
        return OperationState.succeeded()
