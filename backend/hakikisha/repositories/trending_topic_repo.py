"""Trending topic repository."""

from typing import List, Optional

from sqlalchemy.orm import Session

from hakikisha.models.trending_topic import TrendingTopicModel
from hakikisha.repositories.base import BaseRepository


class TrendingTopicRepository(BaseRepository[TrendingTopicModel]):
    def __init__(self, db: Session):
        super().__init__(db, TrendingTopicModel)

    def get_by_key(self, topic_key: str) -> Optional[TrendingTopicModel]:
        return self.db.query(self.model).filter(self.model.topic_key == topic_key).first()

    def get_active(self, *, category: Optional[str] = None, limit: Optional[int] = None) -> List[TrendingTopicModel]:
        q = self.db.query(self.model).filter(self.model.is_active.is_(True))
        if category:
            q = q.filter(self.model.category == category)
        q = q.order_by(self.model.engagement_score.desc(), self.model.id)
        if limit is not None:
            q = q.limit(limit)
        return q.all()
