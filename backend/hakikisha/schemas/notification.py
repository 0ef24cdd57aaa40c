"""Notification schemas, types and preferences."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    VERDICT_READY = "verdict_ready"
    AI_VERDICT_READY = "ai_verdict_ready"
    CLAIM_UNDER_REVIEW = "claim_under_review"
    CLAIM_ASSIGNED = "claim_assigned"
    CLAIM_REJECTED = "claim_rejected"
    TRENDING_TOPIC = "trending_topic"
    SYSTEM_ALERT = "system_alert"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NotificationRequest(BaseModel):
    """One notification to write. ``event_key`` makes the write idempotent."""

    user_id: int
    type: NotificationType
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    event_key: str


class Notification(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    priority: NotificationPriority
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationPreferences(BaseModel):
    verdict_ready: bool = True
    ai_verdict_ready: bool = True
    claim_under_review: bool = True
    claim_assigned: bool = True
    claim_rejected: bool = True
    trending_topic: bool = True
    system_alert: bool = True
    email_notifications: bool = True
    push_notifications: bool = True

    def allows(self, notification_type: NotificationType) -> bool:
        return getattr(self, notification_type.value, True)


class DeliveryReport(BaseModel):
    notification_id: int
    created: bool  # False when the event had already been recorded
    channels_attempted: list[str] = []
    channels_failed: list[str] = []
