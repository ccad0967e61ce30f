"""
CoEpiRepo - reconciliation workflow and report submission facade.

Reconciliation (reconcile):
1. Fetch disclosed keys since the checkpoint
2. Stamp them with the local fetch time (validity anchor)
3. Drop duplicate key values (the server may redeliver a disclosure)
4. Keep keys the matcher can tie to a local observation
5. Fetch the reports of every matched key concurrently
6. Aggregate: any report -> Success, only failures -> NoReportsFetched,
   no matches -> Success([])

The checkpoint is threaded through explicitly: pass the previous
ReconcileOutcome.checkpoint into the next call. It only advances on Success,
so a failed run is retried over the same range.

Submission (send_report) is delegated to ReportSubmissionPipeline; its states
are published on send_report_state.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from coepi_sync.config.settings import Settings, get_settings
from coepi_sync.models.domain.cen import DisclosureKey, ObservedCen, ReceivedReport, SymptomReport
from coepi_sync.models.domain.errors import (
    FetchKeysFailed,
    NetworkError,
    NoReportsFetched,
    wrap_error,
)
from coepi_sync.models.domain.result import Failure, Result, Success
from coepi_sync.repositories.cen_key_repository import OwnKeyStore
from coepi_sync.repositories.cen_repository import ObservationStore
from coepi_sync.services.cen_api_client import KeyDisclosureClient, ReportClient
from coepi_sync.services.cen_logic import is_valid_key
from coepi_sync.services.cen_matcher import CenMatcher
from coepi_sync.services.report_sender import ReportSubmissionPipeline
from coepi_sync.services.state_notifier import OperationStateNotifier
from coepi_sync.utils.time_utils import coepi_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of one reconciliation run plus the checkpoint for the next one"""
    result: Result
    checkpoint: int


class CoEpiRepo:
    """
    Entry point for exposure reconciliation and symptom reporting

    Usage:
        repo = CoEpiRepo(matcher, api, api, observations, own_keys)
        repo.start()
        outcome = await repo.reconcile(checkpoint)
        repo.send_report(SymptomReport(report="fever", timestamp=now))
        await repo.aclose()
    """

    def __init__(
        self,
        matcher: CenMatcher,
        key_client: KeyDisclosureClient,
        report_client: ReportClient,
        observations: ObservationStore,
        own_keys: OwnKeyStore,
        settings: Optional[Settings] = None
    ):
        matcher_store = getattr(matcher, 'observations', observations)
        if matcher_store is not observations:
            raise ValueError("matcher must read the same observation store the repo writes to")

        self.settings = settings or get_settings()
        self.matcher = matcher
        self.key_client = key_client
        self.report_client = report_client
        self.observations = observations

        self.send_report_state = OperationStateNotifier()
        self.pipeline = ReportSubmissionPipeline(
            own_keys=own_keys,
            client=report_client,
            notifier=self.send_report_state,
            keys_per_report=self.settings.own_keys_per_report,
            fail_on_missing_own_keys=self.settings.fail_on_missing_own_keys,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self):
        """Start the report submission worker (needs a running event loop)"""
        self.pipeline.start()

    async def aclose(self):
        """Finish queued submissions and stop the worker"""
        await self.pipeline.aclose()

    # =========================================================================
    # OBSERVATIONS AND SUBMISSION
    # =========================================================================

    def store_observed_cen(self, cen: ObservedCen) -> bool:
        """Store a CEN received from another device"""
        inserted = self.observations.insert(cen)
        if inserted:
            logger.debug(f"Inserted an observed CEN: {cen}")
        return inserted

    def send_report(self, report: SymptomReport):
        """
        Queue a symptom report; progress is published on send_report_state

        Never raises. Without a running event loop the report stays queued
        until start() is called from inside one.
        """
        self.pipeline.submit(report)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; report {report.report_id} queued until start()")
            return
        if not self.pipeline.running:
            self.pipeline.start()

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    async def reports(self) -> Result:
        """Full refetch from checkpoint 0, returning only the report result"""
        outcome = await self.reconcile(0)
        return outcome.result

    async def reconcile(self, checkpoint: int = 0) -> ReconcileOutcome:
        """
        Run one reconciliation pass

        Args:
            checkpoint: Unix seconds of the previous successful fetch (0 = all)

        Returns:
            ReconcileOutcome with Success(List[ReceivedReport]) or
            Failure(FetchKeysFailed | NoReportsFetched)
        """
        fetch_started = coepi_timestamp()
        try:
            raw_keys = await self.key_client.fetch_keys_since(checkpoint)
        except NetworkError as e:
            logger.error(f"Error fetching CEN keys since {checkpoint}: {e}")
            failure = Failure(wrap_error(FetchKeysFailed, "Couldn't fetch CEN keys", e))
            return ReconcileOutcome(result=failure, checkpoint=checkpoint)

        logger.info(f"Retrieved {len(raw_keys)} keys. Start matching...")
        logger.debug(f"{raw_keys}")

        keys = self._stamp_keys(raw_keys, checkpoint, coepi_timestamp())

        match_started = time.monotonic()
        matched = await asyncio.to_thread(self.filter_matching_keys, keys)
        logger.info(f"Took {time.monotonic() - match_started:.2f}s to match keys")

        if matched:
            logger.info(f"Matches found: {[k.key for k in matched]}")
        else:
            logger.info("No matches found")

        result = await self.reports_for(matched)
        next_checkpoint = fetch_started if result.is_success else checkpoint
        return ReconcileOutcome(result=result, checkpoint=next_checkpoint)

    def _stamp_keys(self, raw_keys: Sequence[str], checkpoint: int, now: int) -> List[DisclosureKey]:
        """Build DisclosureKeys, dropping malformed server keys as non-matches"""
        keys = []
        for raw in raw_keys:
            if not is_valid_key(raw):
                logger.error(f"Ignoring malformed CEN key from server: {raw!r}")
                continue
            keys.append(
                DisclosureKey(
                    key=raw,
                    timestamp=now,
                    validity_seconds=self.settings.key_validity_seconds,
                    checkpoint=checkpoint,
                )
            )
        return keys

    def filter_matching_keys(self, keys: Sequence[DisclosureKey]) -> List[DisclosureKey]:
        """Deduplicate by key value, then keep keys with at least one match"""
        seen = set()
        unique = []
        for key in keys:
            if key.key not in seen:
                seen.add(key.key)
                unique.append(key)

        as_of = coepi_timestamp()
        return [key for key in unique if self.matcher.has_matches(key, as_of)]

    async def reports_for(self, keys: Sequence[DisclosureKey]) -> Result:
        """
        Fetch reports for matched keys, tolerating partial failure

        Failed fetches are logged and dropped as long as one fetch succeeds.
        """
        if not keys:
            return Success([])

        semaphore = asyncio.Semaphore(self.settings.report_fetch_concurrency)

        async def fetch_one(key: DisclosureKey) -> List[ReceivedReport]:
            async with semaphore:
                payloads = await self.report_client.fetch_reports(key.key)
            return [payload.to_received_report() for payload in payloads]

        results = await asyncio.gather(*(fetch_one(k) for k in keys), return_exceptions=True)
        successful, failed = self._group(keys, results)

        for key, error in failed:
            logger.error(f"Error fetching reports for key {key.key}: {error}")

        if not successful and failed:
            cause = failed[0][1]
            return Failure(wrap_error(NoReportsFetched, "Couldn't fetch any reports", cause))

        return Success([report for reports in successful for report in reports])

    @staticmethod
    def _group(
        keys: Sequence[DisclosureKey],
        results: Sequence
    ) -> Tuple[List[List[ReceivedReport]], List[Tuple[DisclosureKey, BaseException]]]:
        successful = []
        failed = []
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                failed.append((key, result))
            else:
                successful.append(result)
        return successful, failed
