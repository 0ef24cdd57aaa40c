"""Review session repository."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hakikisha.models.review_session import ReviewSessionModel
from hakikisha.repositories.base import BaseRepository


class ReviewSessionRepository(BaseRepository[ReviewSessionModel]):
    def __init__(self, db: Session):
        super().__init__(db, ReviewSessionModel)

    def get_open_for_claim(self, claim_id: int) -> Optional[ReviewSessionModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.claim_id == claim_id, self.model.ended_at.is_(None))
            .order_by(self.model.id.desc())
            .first()
        )

    def get_stale(self, started_before: datetime) -> List[ReviewSessionModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.ended_at.is_(None), self.model.started_at < started_before)
            .order_by(self.model.id)
            .all()
        )

    def completed_stats(self, reviewer_id: int) -> tuple[int, float]:
        """(number of ended sessions, average duration in seconds)."""
        count, avg = (
            self.db.query(func.count(self.model.id), func.avg(self.model.duration_seconds))
            .filter(self.model.reviewer_id == reviewer_id, self.model.ended_at.isnot(None))
            .one()
        )
        return count or 0, float(avg or 0.0)
