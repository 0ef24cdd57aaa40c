"""Fact-checker assignment: assign, reassign and release claims.

The conditional ``UPDATE ... WHERE assigned_fact_checker_id IS NULL`` in
``ClaimRepository.try_assign`` is the single point of mutual exclusion:
two concurrent ASSIGN calls cannot both succeed.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from hakikisha.database import utcnow
from hakikisha.domain.lifecycle import transition
from hakikisha.errors import AssignmentConflict, InvalidTransition, PermissionDenied, ValidationError
from hakikisha.models.claim import ClaimModel
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.review_session_repo import ReviewSessionRepository
from hakikisha.repositories.user_repo import FACT_CHECKER_ROLES, UserRepository
from hakikisha.schemas.claim import Claim, ClaimStatus
from hakikisha.schemas.review import AssignmentAction, SessionOutcome
from hakikisha.services.finalizer_service import end_review_session

logger = logging.getLogger(__name__)

ASSIGNABLE = (
    ClaimStatus.PENDING.value,
    ClaimStatus.AI_APPROVED.value,
    ClaimStatus.HUMAN_REVIEW.value,
)


class AssignmentService:
    def __init__(
        self,
        db: Session,
        claim_repo: ClaimRepository,
        user_repo: UserRepository,
        session_repo: ReviewSessionRepository,
        notifier=None,
    ):
        self.db = db
        self.claims = claim_repo
        self.users = user_repo
        self.sessions = session_repo
        self.notifier = notifier

    def apply(
        self,
        claim_id: int,
        action: AssignmentAction,
        fact_checker_id: Optional[int] = None,
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Claim:
        now = now or utcnow()
        action = AssignmentAction(action)
        claim = self.claims.get_or_raise(claim_id)

        try:
            if action == AssignmentAction.ASSIGN:
                self._check_actor(actor_id, fact_checker_id)
                self._assign(claim, fact_checker_id, now)
            elif action == AssignmentAction.REASSIGN:
                self._require_admin(actor_id)
                previous = claim.assigned_fact_checker_id
                self._release(claim, SessionOutcome.RELEASED, now)
                self._assign(claim, fact_checker_id, now, exclude=previous)
            elif action == AssignmentAction.RELEASE:
                if actor_id is not None and actor_id != claim.assigned_fact_checker_id:
                    self._require_admin(actor_id)
                self._release(claim, SessionOutcome.RELEASED, now)
            else:
                raise ValueError(f"Unhandled assignment action: {action}")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Claim %d %s → fact-checker %s (status %s)",
            claim.id, action.value, claim.assigned_fact_checker_id, claim.status,
        )
        if action != AssignmentAction.RELEASE and self.notifier is not None:
            self.notifier.notify_assignment(claim, claim.assigned_fact_checker_id)
        return Claim.model_validate(claim)

    # ── selection ────────────────────────────────────────────────────

    def pick_fact_checker(self, exclude: Optional[int] = None) -> Optional[int]:
        """Active fact-checker with the fewest open assignments; ties → lowest id."""
        candidates = [u.id for u in self.users.get_active_fact_checkers() if u.id != exclude]
        if not candidates:
            return None
        counts = self.claims.open_assignment_counts(candidates)
        return min(candidates, key=lambda fc_id: (counts.get(fc_id, 0), fc_id))

    def assignments_for(self, fact_checker_id: int, limit: int = 50) -> List[Claim]:
        open_statuses = list(ASSIGNABLE) + [ClaimStatus.UNDER_REVIEW.value, ClaimStatus.HUMAN_APPROVED.value]
        rows = self.claims.get_review_queue(open_statuses, assigned_to=fact_checker_id, limit=limit)
        return [Claim.model_validate(c) for c in rows]

    # ── internal ─────────────────────────────────────────────────────

    def _assign(self, claim: ClaimModel, fact_checker_id: Optional[int], now: datetime,
                exclude: Optional[int] = None) -> None:
        if claim.status not in ASSIGNABLE:
            raise InvalidTransition(
                claim.id, claim.status, ClaimStatus.HUMAN_REVIEW.value, "claim cannot be assigned in this state"
            )

        holder = claim.assigned_fact_checker_id
        if holder is not None:
            if holder == fact_checker_id:
                return
            raise AssignmentConflict(claim.id, holder)

        if fact_checker_id is None:
            fact_checker_id = self.pick_fact_checker(exclude=exclude)
            if fact_checker_id is None:
                raise ValidationError("No active fact-checker is available")
        else:
            reviewer = self.users.get_or_raise(fact_checker_id)
            if reviewer.role not in FACT_CHECKER_ROLES or not reviewer.is_active:
                raise PermissionDenied(f"user {fact_checker_id} is not an active fact-checker")

        if not self.claims.try_assign(claim.id, fact_checker_id, now):
            self.db.refresh(claim)
            raise AssignmentConflict(claim.id, claim.assigned_fact_checker_id)

        if claim.status in (ClaimStatus.PENDING.value, ClaimStatus.AI_APPROVED.value):
            transition(claim, ClaimStatus.HUMAN_REVIEW, now)

    def _release(self, claim: ClaimModel, outcome: SessionOutcome, now: datetime) -> None:
        session = self.sessions.get_open_for_claim(claim.id)
        if session is not None:
            end_review_session(session, claim, outcome, now)
        self.claims.clear_assignment(claim)

    def _check_actor(self, actor_id: Optional[int], fact_checker_id: Optional[int]) -> None:
        """Fact-checkers may claim work for themselves; only admins assign others."""
        if actor_id is None or actor_id == fact_checker_id:
            return
        self._require_admin(actor_id)

    def _require_admin(self, actor_id: Optional[int]) -> None:
        if actor_id is None:
            return
        actor = self.users.get_or_raise(actor_id)
        if actor.role != "admin":
            raise PermissionDenied(f"user {actor_id} may not manage other fact-checkers' assignments")
