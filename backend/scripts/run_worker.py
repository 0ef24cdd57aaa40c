#!/usr/bin/env python3
"""Run the claim verification queue worker.

Usage locally:
    python -m scripts.run_worker                       # run until SIGINT/SIGTERM
    python -m scripts.run_worker --max-jobs 100        # stop after 100 jobs or an empty queue
    python -m scripts.run_worker --kinds process_claim # only AI pre-screening jobs
    python -m scripts.run_worker --maintenance-only    # trending decay + stale sessions, then exit
    python -m scripts.run_worker --json-logs           # JSON log lines for aggregation

Job kinds:
    process_claim   AI pre-screening of a pending claim
    notify_verdict  tell the submitter their verdict is published
    update_trending recompute a similarity group's trending state
    award_points    credit a user's points ledger
    system_alert    fan a system alert out to users

Failed jobs are retried with exponential backoff and dead-lettered after
JOB_MAX_ATTEMPTS attempts.
"""

import argparse
import sys
import time
from pathlib import Path

# Ensure the project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from hakikisha.config import Settings
from hakikisha.container import AppContainer
from hakikisha.logging_config import get_logger, setup_logging
from hakikisha.schemas.jobs import JobKind

logger = get_logger("worker")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the claim verification queue worker.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--max-jobs",
        type=int,
        default=None,
        help="Stop after this many jobs, or as soon as the queue is empty",
    )
    parser.add_argument(
        "--kinds",
        nargs="+",
        choices=[k.value for k in JobKind],
        default=None,
        help="Only lease these job kinds (default: all)",
    )
    parser.add_argument(
        "--worker-id",
        default=None,
        help="Stable worker identity for leases and locks (default: random)",
    )
    parser.add_argument(
        "--maintenance-only",
        action="store_true",
        help="Run trending decay and stale-session expiry once, then exit",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines",
    )
    return parser.parse_args()


def main():
    args = parse_args()
    settings = Settings()
    setup_logging(json_logs=args.json_logs or settings.json_logs, log_level=settings.log_level)

    if not settings.anthropic_api_key and not args.maintenance_only:
        logger.error("missing_api_key", hint="Set ANTHROPIC_API_KEY in backend/.env")
        sys.exit(1)

    container = AppContainer()
    container.settings.override(settings)
    container.init_resources()

    kinds = [JobKind(k) for k in args.kinds] if args.kinds else None
    worker = container.claim_worker(worker_id=args.worker_id, kinds=kinds)

    t0 = time.time()
    try:
        if args.maintenance_only:
            summary = worker.run_maintenance()
        else:
            summary = worker.run(max_jobs=args.max_jobs)
    finally:
        container.shutdown_resources()

    logger.info("worker_exit", elapsed_seconds=round(time.time() - t0, 1), **summary)


if __name__ == "__main__":
    main()
