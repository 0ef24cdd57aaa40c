"""Claim repository."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from hakikisha.models.claim import ClaimModel
from hakikisha.repositories.base import BaseRepository
from hakikisha.schemas.claim import ClaimStatus

TERMINAL_STATUSES = (ClaimStatus.PUBLISHED.value, ClaimStatus.REJECTED.value)
UNMATCHABLE_STATUSES = (ClaimStatus.REJECTED.value,)

_PRIORITY_RANK = case(
    (ClaimModel.priority == "critical", 0),
    (ClaimModel.priority == "high", 1),
    (ClaimModel.priority == "medium", 2),
    else_=3,
)


class ClaimRepository(BaseRepository[ClaimModel]):
    def __init__(self, db: Session):
        super().__init__(db, ClaimModel)

    # ── similarity groups ────────────────────────────────────────────

    def find_by_hash(self, similarity_hash: str, *, exclude_id: Optional[int] = None) -> List[ClaimModel]:
        """Non-rejected claims carrying exactly this similarity hash."""
        q = self.db.query(self.model).filter(
            self.model.similarity_hash == similarity_hash,
            self.model.status.notin_(UNMATCHABLE_STATUSES),
        )
        if exclude_id is not None:
            q = q.filter(self.model.id != exclude_id)
        return q.order_by(self.model.id).all()

    def get_similarity_candidates(
        self, *, exclude_id: Optional[int] = None, limit: int = 500
    ) -> List[ClaimModel]:
        """Most recent non-rejected claims, for the fuzzy similarity scan."""
        q = self.db.query(self.model).filter(self.model.status.notin_(UNMATCHABLE_STATUSES))
        if exclude_id is not None:
            q = q.filter(self.model.id != exclude_id)
        return q.order_by(self.model.created_at.desc(), self.model.id.desc()).limit(limit).all()

    def get_group(self, similarity_hashes: Iterable[str]) -> List[ClaimModel]:
        """Non-rejected claims whose hash is one of ``similarity_hashes``."""
        hashes = [h for h in set(similarity_hashes) if h]
        if not hashes:
            return []
        return (
            self.db.query(self.model)
            .filter(
                self.model.similarity_hash.in_(hashes),
                self.model.status.notin_(UNMATCHABLE_STATUSES),
            )
            .order_by(self.model.id)
            .all()
        )

    # ── assignment ───────────────────────────────────────────────────

    def try_assign(self, claim_id: int, fact_checker_id: int, now: datetime) -> bool:
        """Conditional write: succeeds only while nobody holds the claim."""
        updated = (
            self.db.query(self.model)
            .filter(
                self.model.id == claim_id,
                self.model.assigned_fact_checker_id.is_(None),
            )
            .update(
                {
                    self.model.assigned_fact_checker_id: fact_checker_id,
                    self.model.assigned_at: now,
                    self.model.updated_at: now,
                },
                synchronize_session="fetch",
            )
        )
        self.db.flush()
        return updated == 1

    def clear_assignment(self, claim: ClaimModel) -> None:
        claim.assigned_fact_checker_id = None
        claim.assigned_at = None
        self.db.flush()

    def open_assignment_counts(self, fact_checker_ids: List[int]) -> Dict[int, int]:
        """Claims currently held per fact-checker (terminal claims excluded)."""
        if not fact_checker_ids:
            return {}
        rows = (
            self.db.query(self.model.assigned_fact_checker_id, func.count(self.model.id))
            .filter(
                self.model.assigned_fact_checker_id.in_(fact_checker_ids),
                self.model.status.notin_(TERMINAL_STATUSES),
            )
            .group_by(self.model.assigned_fact_checker_id)
            .all()
        )
        counts = {fc_id: 0 for fc_id in fact_checker_ids}
        counts.update({fc_id: n for fc_id, n in rows})
        return counts

    # ── queues & listings ────────────────────────────────────────────

    def get_review_queue(
        self,
        statuses: List[str],
        *,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        assigned_to: Optional[int] = None,
        limit: int = 50,
    ) -> List[ClaimModel]:
        """Claims awaiting review, most urgent and oldest first."""
        q = self.db.query(self.model).filter(self.model.status.in_(statuses))
        if priority:
            q = q.filter(self.model.priority == priority)
        if category:
            q = q.filter(self.model.category == category)
        if assigned_to is not None:
            q = q.filter(self.model.assigned_fact_checker_id == assigned_to)
        return q.order_by(_PRIORITY_RANK, self.model.created_at, self.model.id).limit(limit).all()

    def get_trending(self, *, limit: int = 10) -> List[ClaimModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.status.notin_((ClaimStatus.REJECTED.value,)))
            .order_by(
                self.model.is_trending.desc(),
                self.model.trending_score.desc(),
                self.model.submission_count.desc(),
                self.model.created_at.desc(),
            )
            .limit(limit)
            .all()
        )

    def get_flagged_trending(self) -> List[ClaimModel]:
        """Claims currently carrying the trending flag or a non-zero score."""
        return (
            self.db.query(self.model)
            .filter((self.model.is_trending.is_(True)) | (self.model.trending_score > 0))
            .all()
        )

    def get_by_submitter(self, user_id: int, *, limit: int = 50) -> List[ClaimModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.submitter_id == user_id)
            .order_by(self.model.created_at.desc())
            .limit(limit)
            .all()
        )

    def count_by_submitter(self, user_id: int) -> int:
        return self.db.query(self.model).filter(self.model.submitter_id == user_id).count()

    def count_unread_verdicts(self, user_id: int) -> int:
        return (
            self.db.query(self.model)
            .filter(
                self.model.submitter_id == user_id,
                self.model.status == ClaimStatus.PUBLISHED.value,
                self.model.verdict_read_at.is_(None),
            )
            .count()
        )
