"""Queue worker: leases typed jobs and dispatches them to services.

Also runs a periodic maintenance tick (trending decay, stale review
session expiry). Stops on SIGINT/SIGTERM after the current job.
"""

import signal
import time
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from hakikisha.config import Settings
from hakikisha.engines.trending_detector import TrendingDetector
from hakikisha.logging_config import bind_claim_context, clear_claim_context, get_logger
from hakikisha.schemas.jobs import (
    AwardPointsJob,
    JobKind,
    NotifyVerdictJob,
    ProcessClaimJob,
    SystemAlertJob,
    UpdateTrendingJob,
)
from hakikisha.schemas.verdict import ProcessingOutcome
from hakikisha.services.ai_processing_service import AIProcessingService
from hakikisha.services.job_queue import JobQueue, LeasedJob
from hakikisha.services.notification_service import NotificationDispatcher
from hakikisha.services.points_service import PointsService
from hakikisha.services.review_service import ReviewService

logger = get_logger(__name__)


class ClaimLockedError(Exception):
    """Another worker is processing the claim; retry the job later."""


class ClaimWorker:
    def __init__(
        self,
        db: Session,
        job_queue: JobQueue,
        ai_service: AIProcessingService,
        trending_detector: TrendingDetector,
        notifier: NotificationDispatcher,
        points_service: PointsService,
        review_service: ReviewService,
        settings: Settings,
        worker_id: Optional[str] = None,
        kinds: Optional[List[JobKind]] = None,
    ):
        self.db = db
        self.queue = job_queue
        self.ai = ai_service
        self.trending = trending_detector
        self.notifier = notifier
        self.points = points_service
        self.review = review_service
        self.settings = settings
        self.worker_id = worker_id or f"worker-{uuid.uuid4().hex[:8]}"
        self.kinds = kinds
        self.running = False
        self.jobs_processed = 0
        self.jobs_failed = 0
        self._last_maintenance: Optional[float] = None

    # ── loop ─────────────────────────────────────────────────────────

    def run(self, max_jobs: Optional[int] = None, install_signal_handlers: bool = True) -> Dict[str, int]:
        """Process jobs until stopped, or until ``max_jobs`` have been handled."""
        if install_signal_handlers:
            self._setup_signal_handlers()

        self.running = True
        logger.info("worker_started", worker=self.worker_id, kinds=[JobKind(k).value for k in self.kinds or list(JobKind)])

        handled = 0
        while self.running:
            self._maybe_run_maintenance()
            try:
                did_work = self.run_once()
            except Exception as exc:
                # Queue or database trouble outside any single job
                self.db.rollback()
                logger.error("worker_loop_error", worker=self.worker_id, error=str(exc), exc_info=True)
                time.sleep(self.settings.worker_poll_interval)
                continue

            if did_work:
                handled += 1
                if max_jobs is not None and handled >= max_jobs:
                    break
            else:
                if max_jobs is not None:
                    break  # drained
                time.sleep(self.settings.worker_poll_interval)

        self.running = False
        logger.info(
            "worker_stopped",
            worker=self.worker_id,
            processed=self.jobs_processed,
            failed=self.jobs_failed,
        )
        return {"processed": self.jobs_processed, "failed": self.jobs_failed}

    def stop(self) -> None:
        self.running = False

    def _setup_signal_handlers(self) -> None:
        def shutdown_handler(signum, frame):
            logger.info("worker_signal", worker=self.worker_id, signal=signum)
            self.running = False

        signal.signal(signal.SIGTERM, shutdown_handler)
        signal.signal(signal.SIGINT, shutdown_handler)

    # ── one job ──────────────────────────────────────────────────────

    def run_once(self, now: Optional[datetime] = None) -> bool:
        """Lease and handle a single job. Returns False when nothing was due."""
        leased = self.queue.lease(self.worker_id, kinds=self.kinds, now=now)
        if leased is None:
            return False

        bind_claim_context(job_id=leased.id, job_kind=leased.job.kind, worker=self.worker_id)
        try:
            self.handle(leased)
        except Exception as exc:
            self.db.rollback()
            self.jobs_failed += 1
            status = self.queue.requeue(leased.id, f"{type(exc).__name__}: {exc}", now=now)
            logger.warning("job_failed", attempts=leased.attempts, next_status=status.value, error=str(exc))
        else:
            self.queue.ack(leased.id)
            self.jobs_processed += 1
            logger.info("job_done", attempts=leased.attempts)
        finally:
            clear_claim_context()
        return True

    def handle(self, leased: LeasedJob) -> None:
        job = leased.job
        if isinstance(job, ProcessClaimJob):
            bind_claim_context(claim_id=job.claim_id)
            result = self.ai.process(
                job.claim_id, force=job.force, owner=self.worker_id, claim_text=job.claim_text
            )
            if result.outcome == ProcessingOutcome.SKIPPED_LOCKED:
                raise ClaimLockedError(f"claim {job.claim_id} is locked")
            logger.info("claim_processed", outcome=result.outcome.value, status=result.status)
        elif isinstance(job, NotifyVerdictJob):
            bind_claim_context(claim_id=job.claim_id)
            self.notifier.notify_verdict_published(job.claim_id, job.verdict_id)
        elif isinstance(job, UpdateTrendingJob):
            bind_claim_context(claim_id=job.claim_id)
            update = self.trending.update_for_claim(job.claim_id)
            logger.info("trending_updated", group=update.submission_count, trending=update.is_trending)
        elif isinstance(job, AwardPointsJob):
            self.points.award(
                job.user_id,
                job.points,
                job.action,
                job.event_key,
                description=job.description,
                claim_id=job.claim_id,
            )
        elif isinstance(job, SystemAlertJob):
            sent = self.notifier.broadcast(
                job.user_ids,
                title=job.title,
                message=job.message,
                alert_key=job.alert_key,
                ntype=job.type,
                priority=job.priority,
            )
            logger.info("alert_broadcast", alert_key=job.alert_key, sent=sent)
        else:
            raise TypeError(f"Unhandled job type: {type(job).__name__}")

    # ── maintenance ──────────────────────────────────────────────────

    def _maybe_run_maintenance(self) -> None:
        clock = time.monotonic()
        if self._last_maintenance is not None and clock - self._last_maintenance < self.settings.maintenance_interval_seconds:
            return
        self._last_maintenance = clock
        self.run_maintenance()

    def run_maintenance(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Trending decay and stale-session expiry. Failures are logged, not raised."""
        summary: Dict[str, int] = {}
        try:
            summary.update(self.trending.decay(now))
        except Exception as exc:
            self.db.rollback()
            logger.error("trending_decay_failed", error=str(exc), exc_info=True)
        try:
            summary["sessions_expired"] = self.review.expire_stale_sessions(now)
        except Exception as exc:
            self.db.rollback()
            logger.error("session_expiry_failed", error=str(exc), exc_info=True)
        logger.info("maintenance_done", **summary)
        return summary
