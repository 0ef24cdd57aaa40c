"""Fact-checker review: sessions, decisions, queue views and stats."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from hakikisha.config import Settings
from hakikisha.database import utcnow
from hakikisha.domain.lifecycle import transition
from hakikisha.errors import InvalidTransition, PermissionDenied, ValidationError
from hakikisha.models.claim import ClaimModel
from hakikisha.models.review_session import ReviewSessionModel
from hakikisha.repositories.ai_verdict_repo import AIVerdictRepository
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.review_session_repo import ReviewSessionRepository
from hakikisha.repositories.verdict_repo import VerdictRepository
from hakikisha.schemas.claim import Claim, ClaimStatus
from hakikisha.schemas.review import (
    ApproveAIVerdict,
    AuthorVerdict,
    DecisionResult,
    RejectClaim,
    ReviewDecision,
    ReviewerStats,
    ReviewSession,
    SessionOutcome,
)
from hakikisha.schemas.verdict import Responsibility, VerdictCreate, VerdictLabel
from hakikisha.services.finalizer_service import VerdictFinalizer, end_review_session

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(
        self,
        db: Session,
        claim_repo: ClaimRepository,
        ai_verdict_repo: AIVerdictRepository,
        verdict_repo: VerdictRepository,
        session_repo: ReviewSessionRepository,
        finalizer: VerdictFinalizer,
        settings: Settings,
        notifier=None,
    ):
        self.db = db
        self.claims = claim_repo
        self.ai_verdicts = ai_verdict_repo
        self.verdicts = verdict_repo
        self.sessions = session_repo
        self.finalizer = finalizer
        self.settings = settings
        self.notifier = notifier

    # ══════════════════════════════════════════════════════════════════
    # SESSIONS
    # ══════════════════════════════════════════════════════════════════

    def start_session(self, claim_id: int, reviewer_id: int, now: Optional[datetime] = None) -> ReviewSession:
        now = now or utcnow()
        claim = self._claim_for_reviewer(claim_id, reviewer_id)

        open_session = self.sessions.get_open_for_claim(claim.id)
        if open_session is not None and open_session.reviewer_id == reviewer_id:
            return ReviewSession.model_validate(open_session)

        try:
            if open_session is not None:
                # Left behind by a previous assignee
                end_review_session(open_session, claim, SessionOutcome.ABANDONED, now)
            transition(claim, ClaimStatus.UNDER_REVIEW, now)
            session = self.sessions.create(ReviewSessionModel(
                claim_id=claim.id, reviewer_id=reviewer_id, started_at=now,
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Review session %d started: claim %d, reviewer %d", session.id, claim.id, reviewer_id)
        return ReviewSession.model_validate(session)

    def end_session(
        self,
        session_id: int,
        reviewer_id: Optional[int] = None,
        outcome: SessionOutcome = SessionOutcome.ABANDONED,
        now: Optional[datetime] = None,
    ) -> ReviewSession:
        """Close a session without a verdict. Closing a closed session is a no-op."""
        session = self.sessions.get_or_raise(session_id)
        if reviewer_id is not None and session.reviewer_id != reviewer_id:
            raise PermissionDenied(f"session {session_id} belongs to another reviewer")
        if session.ended_at is not None:
            return ReviewSession.model_validate(session)

        try:
            end_review_session(session, self.claims.get(session.claim_id), outcome, now or utcnow())
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Review session %d ended (%s) after %ds", session.id, session.outcome, session.duration_seconds)
        return ReviewSession.model_validate(session)

    def expire_stale_sessions(self, now: Optional[datetime] = None) -> int:
        """Close sessions open longer than the TTL; their claims return to the queue."""
        now = now or utcnow()
        cutoff = now - timedelta(minutes=self.settings.review_session_ttl_minutes)
        stale = self.sessions.get_stale(cutoff)
        if not stale:
            return 0
        try:
            for session in stale:
                end_review_session(session, self.claims.get(session.claim_id), SessionOutcome.EXPIRED, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Expired %d stale review sessions", len(stale))
        return len(stale)

    # ══════════════════════════════════════════════════════════════════
    # DECISIONS
    # ══════════════════════════════════════════════════════════════════

    def decide(
        self,
        claim_id: int,
        reviewer_id: int,
        decision: ReviewDecision,
        now: Optional[datetime] = None,
        publish: bool = True,
    ) -> DecisionResult:
        now = now or utcnow()
        claim = self._claim_for_reviewer(claim_id, reviewer_id)

        if isinstance(decision, ApproveAIVerdict):
            verdict_in = self._from_ai_verdict(claim, decision)
        elif isinstance(decision, AuthorVerdict):
            verdict_in = self._authored(decision)
        elif isinstance(decision, RejectClaim):
            return self._reject(claim, decision.reason, now)
        else:
            raise TypeError(f"Unhandled review decision: {decision!r}")

        verdict = self.finalizer.finalize(
            claim.id,
            reviewer_id,
            verdict_in,
            time_spent_seconds=self._time_spent(claim.id, now),
            publish=publish,
            now=now,
        )
        return DecisionResult(claim=Claim.model_validate(self.claims.get(claim.id)), verdict=verdict)

    def _from_ai_verdict(self, claim: ClaimModel, decision: ApproveAIVerdict) -> VerdictCreate:
        ai = self.ai_verdicts.get(claim.ai_verdict_id) if claim.ai_verdict_id else None
        if ai is None:
            raise ValidationError(f"claim {claim.id} has no AI verdict to approve")
        if decision.edited_explanation is not None:
            self._check_explanation(decision.edited_explanation)

        sources = list(ai.evidence_sources or [])
        sources.extend(s for s in decision.additional_sources if s not in sources)
        return VerdictCreate(
            verdict=decision.edited_verdict or VerdictLabel(ai.verdict),
            explanation=decision.edited_explanation or ai.explanation,
            evidence_sources=sources,
            ai_verdict_id=ai.id,
            responsibility=Responsibility.FACT_CHECKER if decision.is_edited else Responsibility.AI,
        )

    def _authored(self, decision: AuthorVerdict) -> VerdictCreate:
        self._check_explanation(decision.explanation)
        verdict_in = VerdictCreate(
            verdict=decision.verdict,
            explanation=decision.explanation,
            evidence_sources=decision.evidence_sources,
        )
        if len(verdict_in.evidence_sources) < self.settings.min_evidence_sources:
            raise ValidationError(
                f"At least {self.settings.min_evidence_sources} evidence source(s) required"
            )
        return verdict_in

    def _check_explanation(self, explanation: str) -> None:
        if len((explanation or "").strip()) < self.settings.min_explanation_length:
            raise ValidationError(
                f"Explanation must be at least {self.settings.min_explanation_length} characters"
            )

    def _reject(self, claim: ClaimModel, reason: str, now: datetime) -> DecisionResult:
        try:
            session = self.sessions.get_open_for_claim(claim.id)
            if session is not None:
                end_review_session(session, None, SessionOutcome.VERDICT, now)
            transition(claim, ClaimStatus.REJECTED, now, reason=reason)
            claim.rejection_reason = reason
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Claim %d rejected: %s", claim.id, reason)
        if self.notifier is not None:
            self.notifier.notify_claim_rejected(claim)
        return DecisionResult(claim=Claim.model_validate(claim))

    def _time_spent(self, claim_id: int, now: datetime) -> int:
        session = self.sessions.get_open_for_claim(claim_id)
        if session is None:
            return 0
        return max(0, int((now - session.started_at).total_seconds()))

    def _claim_for_reviewer(self, claim_id: int, reviewer_id: int) -> ClaimModel:
        claim = self.claims.get_or_raise(claim_id)
        if claim.assigned_fact_checker_id != reviewer_id:
            raise PermissionDenied(f"claim {claim_id} is not assigned to fact-checker {reviewer_id}")
        return claim

    # ══════════════════════════════════════════════════════════════════
    # RE-REVIEW
    # ══════════════════════════════════════════════════════════════════

    def reopen(self, claim_id: int, reason: str, now: Optional[datetime] = None) -> Claim:
        """Send an ``ai_approved`` or ``human_approved`` claim back for human review.

        The current assignment is cleared so the claim re-enters the queue.
        """
        now = now or utcnow()
        claim = self.claims.get_or_raise(claim_id)
        if claim.status not in (ClaimStatus.AI_APPROVED.value, ClaimStatus.HUMAN_APPROVED.value):
            raise InvalidTransition(claim.id, claim.status, ClaimStatus.HUMAN_REVIEW.value, "only approved claims can be reopened")
        try:
            transition(claim, ClaimStatus.HUMAN_REVIEW, now, reason=reason)
            self.claims.clear_assignment(claim)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Claim %d reopened for review: %s", claim.id, reason)
        return Claim.model_validate(claim)

    # ══════════════════════════════════════════════════════════════════
    # READ-ONLY VIEWS
    # ══════════════════════════════════════════════════════════════════

    def queue(
        self,
        status: Optional[ClaimStatus] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[Claim]:
        statuses = [ClaimStatus(status).value] if status else [ClaimStatus.HUMAN_REVIEW.value]
        rows = self.claims.get_review_queue(statuses, priority=priority, category=category, limit=limit)
        return [Claim.model_validate(c) for c in rows]

    def reviewer_stats(self, reviewer_id: int) -> ReviewerStats:
        sessions, avg_seconds = self.sessions.completed_stats(reviewer_id)
        open_assignments = self.claims.open_assignment_counts([reviewer_id]).get(reviewer_id, 0)
        return ReviewerStats(
            reviewer_id=reviewer_id,
            total_verdicts=self.verdicts.count_by_fact_checker(reviewer_id),
            completed_sessions=sessions,
            average_session_seconds=round(avg_seconds, 1),
            open_assignments=open_assignments,
        )
