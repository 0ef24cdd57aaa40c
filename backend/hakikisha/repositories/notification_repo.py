"""Notification repository."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from hakikisha.models.notification import NotificationModel
from hakikisha.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[NotificationModel]):
    def __init__(self, db: Session):
        super().__init__(db, NotificationModel)

    def get_by_event_key(self, event_key: str) -> Optional[NotificationModel]:
        return self.db.query(self.model).filter(self.model.event_key == event_key).first()

    def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> List[NotificationModel]:
        q = self.db.query(self.model).filter(self.model.user_id == user_id)
        if unread_only:
            q = q.filter(self.model.is_read.is_(False))
        return q.order_by(self.model.created_at.desc(), self.model.id.desc()).offset(skip).limit(limit).all()

    def count_unread(self, user_id: int) -> int:
        return (
            self.db.query(self.model)
            .filter(self.model.user_id == user_id, self.model.is_read.is_(False))
            .count()
        )

    def mark_all_read(self, user_id: int, now: datetime) -> int:
        updated = (
            self.db.query(self.model)
            .filter(self.model.user_id == user_id, self.model.is_read.is_(False))
            .update({self.model.is_read: True, self.model.read_at: now}, synchronize_session="fetch")
        )
        self.db.flush()
        return updated
