"""Verdict schemas (AI and human) and supporting enums."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class VerdictLabel(str, Enum):
    TRUE = "true"
    FALSE = "false"
    MISLEADING = "misleading"
    SATIRE = "satire"
    NEEDS_CONTEXT = "needs_context"


class Responsibility(str, Enum):
    AI = "ai"  # AI verdict approved unchanged
    FACT_CHECKER = "fact_checker"


# ── AI verdicts ─────────────────────────────────────────────────────────

class ParsedAIVerdict(BaseModel):
    """Validated model output, before it is tied to a claim."""

    verdict: VerdictLabel
    confidence_score: float = Field(ge=0.0, le=1.0)
    explanation: str
    sources: list[str] = []
    fallback_reason: Optional[str] = None  # set when the keyword heuristic was used


class AIVerdictCreate(BaseModel):
    claim_id: int
    verdict: VerdictLabel
    confidence_score: float = Field(ge=0.0, le=1.0)
    explanation: str
    evidence_sources: list[str] = []
    model_version: str
    parse_fallback: Optional[str] = None
    disclaimer: Optional[str] = None


class AIVerdict(AIVerdictCreate):
    id: int
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Human verdicts ──────────────────────────────────────────────────────

class VerdictCreate(BaseModel):
    verdict: VerdictLabel
    explanation: str
    evidence_sources: list[str] = []
    ai_verdict_id: Optional[int] = None
    responsibility: Responsibility = Responsibility.FACT_CHECKER

    @field_validator("explanation")
    @classmethod
    def strip_explanation(cls, v: str) -> str:
        return v.strip()

    @field_validator("evidence_sources")
    @classmethod
    def drop_blank_sources(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s and s.strip()]


class Verdict(BaseModel):
    id: int
    claim_id: int
    fact_checker_id: int
    verdict: VerdictLabel
    explanation: str
    evidence_sources: list[str] = []
    ai_verdict_id: Optional[int] = None
    based_on_ai_verdict: bool = False
    responsibility: Responsibility
    time_spent_seconds: int = 0
    is_final: bool = True
    created_at: datetime

    model_config = {"from_attributes": True}


# ── AI processing outcome ───────────────────────────────────────────────

class ProcessingOutcome(str, Enum):
    PROCESSED = "processed"
    SKIPPED_LOCKED = "skipped_locked"  # another worker holds the claim
    SKIPPED_STATUS = "skipped_status"  # claim no longer pending


class ProcessingResult(BaseModel):
    claim_id: int
    outcome: ProcessingOutcome
    status: str
    ai_verdict_id: Optional[int] = None
    confidence_score: Optional[float] = None
    parse_fallback: Optional[str] = None
