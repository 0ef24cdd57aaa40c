"""Engagement points for submitters."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hakikisha.errors import DownstreamEffectError
from hakikisha.models.claim import ClaimModel
from hakikisha.models.points import PointsEntryModel
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.points_repo import PointsRepository
from hakikisha.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

# ── Point values ─────────────────────────────────────────────────────────

CLAIM_SUBMISSION = 5
FIRST_CLAIM_BONUS = 10
VERDICT_RECEIVED = 3


class PointsService:
    def __init__(
        self,
        db: Session,
        user_repo: UserRepository,
        points_repo: PointsRepository,
        claim_repo: ClaimRepository,
    ):
        self.db = db
        self.users = user_repo
        self.ledger = points_repo
        self.claims = claim_repo

    def award(
        self,
        user_id: int,
        points: int,
        action: str,
        event_key: str,
        description: str = "",
        claim_id: Optional[int] = None,
    ) -> bool:
        """Credit ``points`` once per ``event_key``. Returns False for a repeat."""
        if self.ledger.get_by_event_key(event_key) is not None:
            return False

        user = self.users.get_or_raise(user_id)
        try:
            self.ledger.create(PointsEntryModel(
                user_id=user_id,
                points=points,
                action=action,
                description=description,
                claim_id=claim_id,
                event_key=event_key,
            ))
            user.total_points = (user.total_points or 0) + points
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False
        except Exception:
            self.db.rollback()
            raise

        logger.info("Awarded %d points to user %d for %s", points, user_id, action)
        return True

    def award_submission(self, claim: ClaimModel) -> Tuple[int, bool]:
        """Submission points plus the one-time first-claim bonus.

        Best-effort: failures are logged and reported as 0 points.
        Returns (points awarded, whether this was the user's first claim).
        """
        user_id = claim.submitter_id
        awarded = 0
        is_first = False
        try:
            is_first = self.claims.count_by_submitter(user_id) == 1
            if self.award(user_id, CLAIM_SUBMISSION, "claim_submission", f"claim_submission:{claim.id}",
                          description="Submitted a claim", claim_id=claim.id):
                awarded += CLAIM_SUBMISSION
            if is_first and self.award(user_id, FIRST_CLAIM_BONUS, "first_claim", f"first_claim:{user_id}",
                                       description="First claim bonus", claim_id=claim.id):
                awarded += FIRST_CLAIM_BONUS
        except Exception as exc:
            self.db.rollback()
            err = DownstreamEffectError("points", str(exc))
            logger.error("Submission points for claim %d not awarded: %s", claim.id, err)
        return awarded, is_first

    def total(self, user_id: int) -> int:
        return self.users.get_or_raise(user_id).total_points or 0

    def history(self, user_id: int, limit: int = 50) -> List[PointsEntryModel]:
        return self.ledger.get_for_user(user_id, limit=limit)
