"""Assignment actions, review decisions and review-session schemas.

Review decisions form a closed tagged union: every decision carries a
``kind`` literal, and ``ReviewService.decide`` handles each variant
explicitly. Adding a variant without handling it fails loudly.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from hakikisha.schemas.claim import Claim
from hakikisha.schemas.verdict import Verdict, VerdictLabel


class AssignmentAction(str, Enum):
    ASSIGN = "assign"
    REASSIGN = "reassign"  # clears the previous holder first
    RELEASE = "release"


class SessionOutcome(str, Enum):
    VERDICT = "verdict"
    RELEASED = "released"
    EXPIRED = "expired"  # closed by the TTL sweep
    ABANDONED = "abandoned"  # closed explicitly without a verdict


class ApproveAIVerdict(BaseModel):
    """Accept the AI verdict, optionally editing it."""

    kind: Literal["approve_ai"] = "approve_ai"
    edited_verdict: Optional[VerdictLabel] = None
    edited_explanation: Optional[str] = None
    additional_sources: list[str] = []

    @property
    def is_edited(self) -> bool:
        return bool(self.edited_verdict or self.edited_explanation or self.additional_sources)


class AuthorVerdict(BaseModel):
    """An independent verdict written by the fact-checker."""

    kind: Literal["author"] = "author"
    verdict: VerdictLabel
    explanation: str
    evidence_sources: list[str] = []


class RejectClaim(BaseModel):
    kind: Literal["reject"] = "reject"
    reason: str = Field(min_length=1)


ReviewDecision = Annotated[
    Union[ApproveAIVerdict, AuthorVerdict, RejectClaim],
    Field(discriminator="kind"),
]


class ReviewSession(BaseModel):
    id: int
    claim_id: int
    reviewer_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    outcome: Optional[SessionOutcome] = None

    model_config = {"from_attributes": True}


class ReviewerStats(BaseModel):
    reviewer_id: int
    total_verdicts: int
    completed_sessions: int
    average_session_seconds: float
    open_assignments: int


class DecisionResult(BaseModel):
    """Claim state after a review decision, plus the verdict when one was written."""

    claim: Claim
    verdict: Optional[Verdict] = None
