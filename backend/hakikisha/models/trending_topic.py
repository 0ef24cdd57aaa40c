"""Trending topic ORM model."""

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.types import JSON

from hakikisha.database import Base, utcnow


class TrendingTopicModel(Base):
    __tablename__ = "trending_topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    topic = Column(String(100), nullable=False)
    topic_key = Column(String(100), nullable=False, unique=True)  # normalized title
    category = Column(String(50), nullable=False, index=True)

    engagement_score = Column(Float, nullable=False, default=0.0)
    submission_total = Column(Integer, nullable=False, default=0)
    # Non-owning back-references; claims are never cascaded from here.
    related_claim_ids = Column(JSON, default=list)

    risk_level = Column(String, nullable=False, default="low")  # RiskLevel enum value
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    advisory_requested_at = Column(DateTime)

    detected_at = Column(DateTime, nullable=False, default=utcnow)
    last_activity_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<TrendingTopic topic={self.topic!r} engagement={self.engagement_score}>"
