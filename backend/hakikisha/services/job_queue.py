"""Database-backed work queue with typed jobs.

One row per job in the ``jobs`` table. Delivery is at-least-once:

* ``lease`` hands the oldest due job to one worker for ``lease_seconds``;
  a worker that dies simply lets the lease run out and the job becomes
  visible again.
* ``ack`` marks the job done.
* ``requeue`` schedules a retry with exponential backoff, or moves the job
  to ``dead`` once ``max_attempts`` leases have failed.

Handlers must therefore be idempotent (see event keys on notifications and
points, and the recompute-from-scratch trending update).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from hakikisha.database import utcnow
from hakikisha.models.job import JobModel
from hakikisha.repositories.job_repo import JobRepository
from hakikisha.schemas.jobs import JobKind, JobStatus, parse_job
from hakikisha.utils.retry import backoff_delay

logger = logging.getLogger(__name__)


@dataclass
class LeasedJob:
    """A job currently owned by a worker."""
    id: int
    job: BaseModel  # one of the payload models in hakikisha.schemas.jobs
    attempts: int
    leased_until: datetime


class JobQueue:
    def __init__(
        self,
        db: Session,
        job_repo: JobRepository,
        lease_seconds: int = 120,
        max_attempts: int = 5,
        retry_initial_delay: float = 5.0,
        retry_max_delay: float = 600.0,
    ):
        self.db = db
        self.jobs = job_repo
        self.lease_seconds = lease_seconds
        self.max_attempts = max_attempts
        self.retry_initial_delay = retry_initial_delay
        self.retry_max_delay = retry_max_delay

    # ── producers ────────────────────────────────────────────────────

    def enqueue(self, job: BaseModel, *, delay_seconds: float = 0, commit: bool = True, now=None) -> int:
        """Add a typed job. ``commit=False`` joins the caller's transaction."""
        now = now or utcnow()
        row = self.jobs.create(JobModel(
            kind=JobKind(job.kind).value,
            payload=job.model_dump(mode="json"),
            status=JobStatus.QUEUED.value,
            available_at=now + timedelta(seconds=delay_seconds),
        ))
        if commit:
            try:
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
        logger.debug("Enqueued job %d (%s)", row.id, row.kind)
        return row.id

    # ── consumers ────────────────────────────────────────────────────

    def lease(
        self,
        worker_id: str,
        kinds: Optional[List[JobKind]] = None,
        lease_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[LeasedJob]:
        """Lease the oldest due job of ``kinds`` (all kinds by default)."""
        now = now or utcnow()
        kind_values = [JobKind(k).value for k in (kinds or list(JobKind))]
        leased_until = now + timedelta(seconds=lease_seconds or self.lease_seconds)

        for candidate in self.jobs.get_available(kind_values, now):
            if not self.jobs.try_lease(candidate.id, worker_id, now, leased_until):
                continue  # another worker won the race
            self.db.commit()
            row = self.jobs.get(candidate.id)
            try:
                job = parse_job(row.payload)
            except ValueError as exc:
                # Unreadable payloads can never succeed
                self._bury(row, f"invalid payload: {exc}")
                continue
            return LeasedJob(id=row.id, job=job, attempts=row.attempts, leased_until=leased_until)

        self.db.rollback()
        return None

    def ack(self, job_id: int) -> None:
        row = self.jobs.get_or_raise(job_id)
        row.status = JobStatus.DONE.value
        row.leased_until = None
        row.last_error = None
        self.db.commit()

    def requeue(self, job_id: int, error: str, now: Optional[datetime] = None) -> JobStatus:
        """Schedule a retry with backoff, or dead-letter after ``max_attempts``."""
        now = now or utcnow()
        row = self.jobs.get_or_raise(job_id)
        if row.attempts >= self.max_attempts:
            self._bury(row, error)
            return JobStatus.DEAD

        delay = backoff_delay(
            row.attempts,
            initial_delay=self.retry_initial_delay,
            max_delay=self.retry_max_delay,
        )
        row.status = JobStatus.QUEUED.value
        row.available_at = now + timedelta(seconds=delay)
        row.leased_until = None
        row.leased_by = None
        row.last_error = error[:2000]
        self.db.commit()
        logger.warning(
            "Job %d (%s) attempt %d failed, retrying in %.0fs: %s",
            row.id, row.kind, row.attempts, delay, error,
        )
        return JobStatus.QUEUED

    def _bury(self, row: JobModel, error: str) -> None:
        row.status = JobStatus.DEAD.value
        row.leased_until = None
        row.last_error = error[:2000]
        self.db.commit()
        logger.error("Job %d (%s) dead after %d attempts: %s", row.id, row.kind, row.attempts, error)

    # ── introspection ────────────────────────────────────────────────

    def depth(self, kind: Optional[JobKind] = None) -> int:
        """Jobs waiting to run (queued, due or not)."""
        return self.jobs.count_by_status(JobStatus.QUEUED.value, kind=JobKind(kind).value if kind else None)

    def dead_letter_count(self) -> int:
        return self.jobs.count_by_status(JobStatus.DEAD.value)
