"""Job table repository: the storage half of the work queue."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from hakikisha.models.job import JobModel
from hakikisha.repositories.base import BaseRepository
from hakikisha.schemas.jobs import JobStatus


class JobRepository(BaseRepository[JobModel]):
    def __init__(self, db: Session):
        super().__init__(db, JobModel)

    def _available(self, now: datetime):
        # Queued and due, or leased by a worker whose lease has run out
        return or_(
            and_(self.model.status == JobStatus.QUEUED.value, self.model.available_at <= now),
            and_(self.model.status == JobStatus.LEASED.value, self.model.leased_until < now),
        )

    def get_available(self, kinds: List[str], now: datetime, *, limit: int = 10) -> List[JobModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.kind.in_(kinds), self._available(now))
            .order_by(self.model.available_at, self.model.id)
            .limit(limit)
            .all()
        )

    def try_lease(self, job_id: int, worker_id: str, now: datetime, leased_until: datetime) -> bool:
        """Conditional write: only one worker can move a given job into LEASED."""
        updated = (
            self.db.query(self.model)
            .filter(self.model.id == job_id, self._available(now))
            .update(
                {
                    self.model.status: JobStatus.LEASED.value,
                    self.model.leased_by: worker_id,
                    self.model.leased_until: leased_until,
                    self.model.attempts: self.model.attempts + 1,
                },
                synchronize_session="fetch",
            )
        )
        self.db.flush()
        return updated == 1

    def count_by_status(self, status: str, *, kind: Optional[str] = None) -> int:
        q = self.db.query(self.model).filter(self.model.status == status)
        if kind:
            q = q.filter(self.model.kind == kind)
        return q.count()
