"""Trending topic schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TrendingTopic(BaseModel):
    id: int
    topic: str
    category: str
    engagement_score: float
    submission_total: int
    related_claim_ids: list[int] = []
    risk_level: RiskLevel
    is_active: bool
    advisory_requested_at: Optional[datetime] = None
    detected_at: datetime
    last_activity_at: datetime

    model_config = {"from_attributes": True}


class TopicAssessment(BaseModel):
    topic: str
    category: str
    engagement_score: float
    risk_level: RiskLevel
    recommended_action: str


class TrendingUpdate(BaseModel):
    """Outcome of folding one claim group into the trending state."""

    claim_ids: list[int]
    submission_count: int
    trending_score: float
    is_trending: bool
    topic_id: Optional[int] = None
    advisory_requested: bool = False
