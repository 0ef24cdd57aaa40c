"""Verdict finalization and publication.

``finalize`` is one transaction: verdict row, claim pointer, status change
and session close either all land or none do. Downstream effects
(notification, trending, points) are queued only after that commit, and a
failure to queue them is logged, never raised: the verdict stands.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from hakikisha.database import utcnow
from hakikisha.domain.lifecycle import REVIEWABLE, transition
from hakikisha.errors import DownstreamEffectError, InvalidTransition, ValidationError
from hakikisha.models.claim import ClaimModel
from hakikisha.models.review_session import ReviewSessionModel
from hakikisha.models.verdict import VerdictModel
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.review_session_repo import ReviewSessionRepository
from hakikisha.repositories.verdict_repo import VerdictRepository
from hakikisha.schemas.claim import Claim, ClaimStatus
from hakikisha.schemas.jobs import AwardPointsJob, NotifyVerdictJob, UpdateTrendingJob
from hakikisha.schemas.review import SessionOutcome
from hakikisha.schemas.verdict import Verdict, VerdictCreate
from hakikisha.services.job_queue import JobQueue
from hakikisha.services.points_service import VERDICT_RECEIVED

logger = logging.getLogger(__name__)


def end_review_session(
    session: ReviewSessionModel,
    claim: Optional[ClaimModel],
    outcome: SessionOutcome,
    now: datetime,
) -> None:
    """Stamp end time and duration; an ``under_review`` claim goes back to the queue."""
    session.ended_at = now
    session.duration_seconds = max(0, int((now - session.started_at).total_seconds()))
    session.outcome = SessionOutcome(outcome).value
    if claim is not None and claim.status == ClaimStatus.UNDER_REVIEW.value:
        transition(claim, ClaimStatus.HUMAN_REVIEW, now)


class VerdictFinalizer:
    def __init__(
        self,
        db: Session,
        claim_repo: ClaimRepository,
        verdict_repo: VerdictRepository,
        session_repo: ReviewSessionRepository,
        job_queue: JobQueue,
    ):
        self.db = db
        self.claims = claim_repo
        self.verdicts = verdict_repo
        self.sessions = session_repo
        self.queue = job_queue

    def finalize(
        self,
        claim_id: int,
        fact_checker_id: int,
        verdict: VerdictCreate,
        time_spent_seconds: int = 0,
        publish: bool = True,
        now: Optional[datetime] = None,
    ) -> Verdict:
        now = now or utcnow()
        if not verdict.explanation:
            raise ValidationError("Verdict explanation cannot be empty")

        claim = self.claims.get_or_raise(claim_id)
        if ClaimStatus(claim.status) not in REVIEWABLE:
            raise InvalidTransition(
                claim.id, claim.status, ClaimStatus.HUMAN_APPROVED.value, "claim is not awaiting review"
            )

        try:
            self.verdicts.supersede_for_claim(claim.id)
            row = self.verdicts.create(VerdictModel(
                claim_id=claim.id,
                fact_checker_id=fact_checker_id,
                verdict=verdict.verdict.value,
                explanation=verdict.explanation,
                evidence_sources=list(verdict.evidence_sources),
                ai_verdict_id=verdict.ai_verdict_id,
                based_on_ai_verdict=verdict.ai_verdict_id is not None,
                responsibility=verdict.responsibility.value,
                time_spent_seconds=max(0, int(time_spent_seconds)),
                is_final=True,
            ))

            transition(claim, ClaimStatus.HUMAN_APPROVED, now)
            claim.human_verdict_id = row.id
            claim.verdict_read_at = None
            claim.verdict_notified = False
            if publish:
                transition(claim, ClaimStatus.PUBLISHED, now)
                claim.published_at = now

            session = self.sessions.get_open_for_claim(claim.id)
            if session is not None:
                end_review_session(session, claim, SessionOutcome.VERDICT, now)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Claim %d finalized by %d: %s (%s)%s",
            claim.id, fact_checker_id, row.verdict, row.responsibility,
            " and published" if publish else "",
        )
        if publish:
            self._enqueue_effects(claim, row)
        return Verdict.model_validate(row)

    def publish(self, claim_id: int, now: Optional[datetime] = None) -> Claim:
        """Publish a claim finalized earlier with ``publish=False``."""
        now = now or utcnow()
        claim = self.claims.get_or_raise(claim_id)
        try:
            transition(claim, ClaimStatus.PUBLISHED, now)
            claim.published_at = now
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        verdict = self.verdicts.get_or_raise(claim.human_verdict_id)
        self._enqueue_effects(claim, verdict)
        return Claim.model_validate(claim)

    def _enqueue_effects(self, claim: ClaimModel, verdict: VerdictModel) -> None:
        effects = [
            NotifyVerdictJob(claim_id=claim.id, verdict_id=verdict.id),
            UpdateTrendingJob(claim_id=claim.id),
            AwardPointsJob(
                user_id=claim.submitter_id,
                points=VERDICT_RECEIVED,
                action="verdict_received",
                description="Received a verdict on a submitted claim",
                claim_id=claim.id,
                event_key=f"verdict_received:{verdict.id}",
            ),
        ]
        for job in effects:
            try:
                self.queue.enqueue(job)
            except Exception as exc:
                err = DownstreamEffectError(job.kind, str(exc))
                logger.error("Claim %d published but effect not queued: %s", claim.id, err)
