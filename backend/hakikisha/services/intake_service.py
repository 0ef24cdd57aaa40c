"""Claim intake: validate, store, merge duplicates, route.

Text claims are queued for AI pre-screening in the same transaction that
stores them, so a stored pending claim always has its job. Claims with
media skip the AI and go straight to human review.
"""

import logging
from typing import Optional, Union

import pydantic
from sqlalchemy.orm import Session

from hakikisha.database import utcnow
from hakikisha.domain.lifecycle import transition
from hakikisha.engines.similarity_detector import SimilarityDetector
from hakikisha.errors import PermissionDenied, ValidationError
from hakikisha.models.claim import ClaimModel
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.user_repo import UserRepository
from hakikisha.schemas.claim import Claim, ClaimCreate, ClaimStatus, MediaType, SubmissionResult
from hakikisha.schemas.jobs import ProcessClaimJob, UpdateTrendingJob
from hakikisha.services.job_queue import JobQueue
from hakikisha.services.points_service import PointsService

logger = logging.getLogger(__name__)


class ClaimIntakeService:
    def __init__(
        self,
        db: Session,
        claim_repo: ClaimRepository,
        user_repo: UserRepository,
        similarity_detector: SimilarityDetector,
        job_queue: JobQueue,
        points_service: Optional[PointsService] = None,
        notifier=None,
    ):
        self.db = db
        self.claims = claim_repo
        self.users = user_repo
        self.detector = similarity_detector
        self.queue = job_queue
        self.points = points_service
        self.notifier = notifier

    def submit(self, payload: Union[ClaimCreate, dict], submitter_id: int) -> SubmissionResult:
        """Accept a claim from ``submitter_id``.

        Raises:
            ValidationError: malformed payload (nothing is stored or queued)
            NotFoundError / PermissionDenied: unknown or inactive submitter
        """
        data = self._validate(payload)
        submitter = self.users.get_or_raise(submitter_id)
        if not submitter.is_active:
            raise PermissionDenied(f"user {submitter_id} is not active")

        title = data.resolved_title()
        now = utcnow()
        try:
            claim = self.claims.create(ClaimModel(
                submitter_id=submitter_id,
                title=title,
                description=data.claim_text,
                category=data.category,
                media_type=data.media_type.value,
                media_url=data.media_url,
                source_url=data.source_url,
                priority=data.priority.value,
                status=ClaimStatus.PENDING.value,
                similarity_hash=self.detector.compute_hash(title, data.claim_text),
                created_at=now,
                updated_at=now,
            ))

            matches = self.detector.find_matches(title, data.claim_text, exclude_id=claim.id)
            group = self.detector.merge(claim, matches)

            requires_review = data.media_type == MediaType.MEDIA
            if requires_review:
                transition(claim, ClaimStatus.HUMAN_REVIEW, now, reason="media claims are reviewed by humans")
            else:
                self.queue.enqueue(
                    ProcessClaimJob(claim_id=claim.id, claim_text=claim.fact_check_text, submitter_id=submitter_id),
                    commit=False,
                )
            if group:
                self.queue.enqueue(UpdateTrendingJob(claim_id=claim.id), commit=False)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Claim %d submitted by %d (%s, %s); merged with %d similar",
            claim.id, submitter_id, claim.category, claim.media_type, len(group),
        )

        points, is_first = (0, False)
        if self.points is not None:
            points, is_first = self.points.award_submission(claim)
        if requires_review and self.notifier is not None:
            self.notifier.notify_claim_under_review(claim)

        return SubmissionResult(
            claim=Claim.model_validate(claim),
            merged_claim_ids=[c.id for c in group],
            requires_human_review=requires_review,
            points_awarded=points,
            is_first_claim=is_first,
        )

    @staticmethod
    def _validate(payload: Union[ClaimCreate, dict]) -> ClaimCreate:
        if isinstance(payload, ClaimCreate):
            return payload
        try:
            return ClaimCreate.model_validate(payload)
        except pydantic.ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'claim'}: {err['msg']}" for err in exc.errors()
            )
            raise ValidationError(f"Invalid claim: {problems}") from exc
