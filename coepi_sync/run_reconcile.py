#!/usr/bin/env python3
"""
Reconciliation runner
=====================

Runs one reconciliation pass against a CEN API server and prints the symptom
reports of every matched key.

Usage:
    python -m coepi_sync.run_reconcile                               # Full refetch
    python -m coepi_sync.run_reconcile --checkpoint 1588000000       # Keys since checkpoint
    python -m coepi_sync.run_reconcile --observations observed.json  # Load local CENs
    python -m coepi_sync.run_reconcile --base-url http://localhost:8080 -v

observed.json holds [{"cen": "<32 hex chars>", "timestamp": <unix seconds>}, ...]
"""

import sys
import json
import asyncio
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from coepi_sync.config.settings import Settings
from coepi_sync.models.domain.cen import ObservedCen
from coepi_sync.repositories import InMemoryObservationStore, InMemoryOwnKeyStore
from coepi_sync.services.cen_api_client import CenApiClient
from coepi_sync.services.cen_matcher import CenMatcher
from coepi_sync.services.coepi_repo import CoEpiRepo
from coepi_sync.utils.time_utils import from_coepi_timestamp

log = logging.getLogger('reconcile')


def load_observations(path: Path) -> List[ObservedCen]:
    """Read observed CENs from a JSON file"""
    entries = json.loads(path.read_text(encoding='utf-8'))
    return [
        ObservedCen(cen=bytes.fromhex(entry['cen']), timestamp=int(entry['timestamp']))
        for entry in entries
    ]


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile observed CENs against disclosed keys")
    parser.add_argument("--base-url", type=str, help="CEN API base URL (overrides API_BASE_URL)")
    parser.add_argument("--checkpoint", type=int, default=0, help="Fetch keys disclosed since (unix seconds)")
    parser.add_argument("--observations", type=Path, help="JSON file with observed CENs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    observations = InMemoryObservationStore()
    own_keys = InMemoryOwnKeyStore(rotation_seconds=settings.key_rotation_seconds)

    base_url = args.base_url or settings.api_base_url
    async with CenApiClient(base_url, timeout=settings.http_timeout_seconds) as api:
        repo = CoEpiRepo(
            matcher=CenMatcher(observations, settings.cen_rotation_interval_seconds),
            key_client=api,
            report_client=api,
            observations=observations,
            own_keys=own_keys,
            settings=settings,
        )

        if args.observations:
            for observed in load_observations(args.observations):
                repo.store_observed_cen(observed)
            log.info(f"Loaded {len(observations)} observed CENs from {args.observations}")

        outcome = await repo.reconcile(args.checkpoint)

    if not outcome.result.is_success:
        print(f"Reconciliation failed: {outcome.result.error}")
        return 1

    reports = outcome.result.value
    print(f"Received {len(reports)} reports")
    for report in reports:
        when = from_coepi_timestamp(report.timestamp).isoformat()
        print(f"- [{when}] {report.report_id}: {report.report}")
    print(f"Next checkpoint: {outcome.checkpoint}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(sys.argv[1:] if argv is None else argv)
    settings = Settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s'
    )

    return asyncio.run(run(args, settings))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
