"""Points ledger repository."""

from typing import List, Optional

from sqlalchemy.orm import Session

from hakikisha.models.points import PointsEntryModel
from hakikisha.repositories.base import BaseRepository


class PointsRepository(BaseRepository[PointsEntryModel]):
    def __init__(self, db: Session):
        super().__init__(db, PointsEntryModel)

    def get_by_event_key(self, event_key: str) -> Optional[PointsEntryModel]:
        return self.db.query(self.model).filter(self.model.event_key == event_key).first()

    def get_for_user(self, user_id: int, *, limit: int = 50) -> List[PointsEntryModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .limit(limit)
            .all()
        )
