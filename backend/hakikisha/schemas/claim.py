"""Claim schemas and supporting enums."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

MAX_CLAIM_TEXT = 1000
TITLE_LENGTH = 100


class ClaimStatus(str, Enum):
    PENDING = "pending"
    AI_PROCESSING = "ai_processing"
    AI_APPROVED = "ai_approved"
    HUMAN_REVIEW = "human_review"
    UNDER_REVIEW = "under_review"  # active review session
    HUMAN_APPROVED = "human_approved"
    PUBLISHED = "published"
    REJECTED = "rejected"


class ClaimPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MediaType(str, Enum):
    TEXT = "text"
    MEDIA = "media"  # image or video attached → human review only


class ClaimCreate(BaseModel):
    """Submission payload as received from the outer surface."""

    claim_text: str = Field(min_length=1, max_length=MAX_CLAIM_TEXT)
    category: str = Field(min_length=1, max_length=50)
    title: Optional[str] = Field(default=None, max_length=TITLE_LENGTH)
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    source_url: Optional[str] = None
    priority: ClaimPriority = ClaimPriority.MEDIUM

    @field_validator("claim_text")
    @classmethod
    def strip_claim_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Claim text cannot be blank")
        return v

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Category cannot be blank")
        return v

    @property
    def media_url(self) -> Optional[str]:
        return self.image_url or self.video_url

    @property
    def media_type(self) -> MediaType:
        return MediaType.MEDIA if self.media_url else MediaType.TEXT

    def resolved_title(self) -> str:
        return (self.title or self.claim_text)[:TITLE_LENGTH]


class Claim(BaseModel):
    id: int
    submitter_id: int
    title: str
    description: str
    category: str
    media_type: MediaType
    media_url: Optional[str] = None
    source_url: Optional[str] = None
    status: ClaimStatus
    priority: ClaimPriority
    submission_count: int
    similarity_hash: Optional[str] = None
    ai_verdict_id: Optional[int] = None
    human_verdict_id: Optional[int] = None
    assigned_fact_checker_id: Optional[int] = None
    is_trending: bool = False
    trending_score: float = 0.0
    rejection_reason: Optional[str] = None
    published_at: Optional[datetime] = None
    verdict_read_at: Optional[datetime] = None
    verdict_notified: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SubmissionResult(BaseModel):
    """What intake hands back to the caller."""

    claim: Claim
    merged_claim_ids: list[int] = []
    requires_human_review: bool = False
    points_awarded: int = 0
    is_first_claim: bool = False
