"""Workflow facade: the single entry point for every outer surface.

HTTP handlers, admin scripts and the worker CLI use this instead of wiring
services directly. It resolves everything from ``AppContainer`` and hands
back only Pydantic schemas and plain dicts, never ORM models.

Usage::

    facade = HakikishaFacade()          # uses Settings() from .env
    result = facade.submit_claim({"claim_text": "...", "category": "health"}, submitter_id=3)
    facade.run_worker(max_jobs=10)      # drain the queue inline
    facade.close()
"""

from typing import Any, Dict, List, Optional, Union

from dependency_injector import providers

from hakikisha.config import Settings
from hakikisha.container import AppContainer
from hakikisha.logging_config import get_logger
from hakikisha.models.user import UserModel
from hakikisha.schemas.claim import Claim, ClaimCreate, ClaimStatus, SubmissionResult
from hakikisha.schemas.jobs import JobKind, ProcessClaimJob, SystemAlertJob
from hakikisha.schemas.notification import Notification, NotificationPreferences, NotificationPriority
from hakikisha.schemas.review import (
    AssignmentAction,
    DecisionResult,
    ReviewDecision,
    ReviewerStats,
    ReviewSession,
    SessionOutcome,
)
from hakikisha.schemas.trending import TopicAssessment, TrendingTopic
from hakikisha.schemas.verdict import AIVerdict, ProcessingResult, Verdict

logger = get_logger(__name__)


class HakikishaFacade:
    """High-level API for the claim verification workflow.

    Hides all internal wiring (repos, engines, services, clients).
    """

    def __init__(self, settings: Optional[Settings] = None, container: Optional[AppContainer] = None):
        self._container = container or AppContainer()
        if settings is not None:
            self._container.settings.override(providers.Object(settings))
        self._container.init_resources()
        self._settings = self._container.settings()
        self._db = self._container.db_session()

    # ══════════════════════════════════════════════════════════════════
    # USERS
    # ══════════════════════════════════════════════════════════════════

    def register_user(self, email: str, username: str, role: str = "user") -> Dict[str, Any]:
        """Create a user record. Accounts are owned upstream; this mirrors one locally."""
        repo = self._container.user_repo()
        try:
            user = repo.create(UserModel(email=email, username=username, role=role))
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        logger.info("user_registered", user_id=user.id, role=role)
        return {"id": user.id, "email": user.email, "username": user.username, "role": user.role}

    # ══════════════════════════════════════════════════════════════════
    # INTAKE & AI PROCESSING
    # ══════════════════════════════════════════════════════════════════

    def submit_claim(self, payload: Union[Dict[str, Any], ClaimCreate], submitter_id: int) -> SubmissionResult:
        result = self._container.intake_service().submit(payload, submitter_id)
        logger.info(
            "claim_submitted",
            claim_id=result.claim.id,
            merged=len(result.merged_claim_ids),
            status=result.claim.status.value,
        )
        return result

    def process_claim(self, claim_id: int, force: bool = False) -> ProcessingResult:
        """Run AI pre-screening inline instead of through the queue."""
        return self._container.ai_processing_service().process(claim_id, force=force, owner="facade")

    def reprocess_claim(self, claim_id: int) -> int:
        """Queue a forced AI re-run. Returns the job id."""
        claim = self._container.claim_repo().get_or_raise(claim_id)
        job_id = self._container.job_queue().enqueue(ProcessClaimJob(
            claim_id=claim.id,
            claim_text=claim.fact_check_text,
            submitter_id=claim.submitter_id,
            force=True,
        ))
        logger.info("claim_reprocess_queued", claim_id=claim_id, job_id=job_id)
        return job_id

    def get_claim(self, claim_id: int) -> Claim:
        return Claim.model_validate(self._container.claim_repo().get_or_raise(claim_id))

    def get_ai_verdict(self, claim_id: int) -> Optional[AIVerdict]:
        row = self._container.ai_verdict_repo().get_latest_for_claim(claim_id)
        return AIVerdict.model_validate(row) if row else None

    def get_verdicts(self, claim_id: int) -> List[Verdict]:
        return [Verdict.model_validate(v) for v in self._container.verdict_repo().get_for_claim(claim_id)]

    def claims_for_user(self, user_id: int, limit: int = 50) -> List[Claim]:
        rows = self._container.claim_repo().get_by_submitter(user_id, limit=limit)
        return [Claim.model_validate(c) for c in rows]

    # ══════════════════════════════════════════════════════════════════
    # ASSIGNMENT & REVIEW
    # ══════════════════════════════════════════════════════════════════

    def assign_claim(self, claim_id: int, fact_checker_id: Optional[int] = None,
                     actor_id: Optional[int] = None) -> Claim:
        return self._container.assignment_service().apply(
            claim_id, AssignmentAction.ASSIGN, fact_checker_id=fact_checker_id, actor_id=actor_id
        )

    def reassign_claim(self, claim_id: int, actor_id: int, fact_checker_id: Optional[int] = None) -> Claim:
        return self._container.assignment_service().apply(
            claim_id, AssignmentAction.REASSIGN, fact_checker_id=fact_checker_id, actor_id=actor_id
        )

    def release_claim(self, claim_id: int, actor_id: Optional[int] = None) -> Claim:
        return self._container.assignment_service().apply(claim_id, AssignmentAction.RELEASE, actor_id=actor_id)

    def assignments_for(self, fact_checker_id: int, limit: int = 50) -> List[Claim]:
        return self._container.assignment_service().assignments_for(fact_checker_id, limit=limit)

    def start_review(self, claim_id: int, reviewer_id: int) -> ReviewSession:
        return self._container.review_service().start_session(claim_id, reviewer_id)

    def end_review(self, session_id: int, reviewer_id: Optional[int] = None,
                   outcome: SessionOutcome = SessionOutcome.ABANDONED) -> ReviewSession:
        return self._container.review_service().end_session(session_id, reviewer_id=reviewer_id, outcome=outcome)

    def decide(self, claim_id: int, reviewer_id: int, decision: ReviewDecision,
               publish: bool = True) -> DecisionResult:
        result = self._container.review_service().decide(claim_id, reviewer_id, decision, publish=publish)
        logger.info(
            "review_decided",
            claim_id=claim_id,
            reviewer_id=reviewer_id,
            decision=decision.kind,
            status=result.claim.status.value,
        )
        return result

    def publish_claim(self, claim_id: int) -> Claim:
        return self._container.verdict_finalizer().publish(claim_id)

    def reopen_claim(self, claim_id: int, reason: str) -> Claim:
        return self._container.review_service().reopen(claim_id, reason)

    def review_queue(
        self,
        status: Optional[ClaimStatus] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[Claim]:
        return self._container.review_service().queue(status, priority=priority, category=category, limit=limit)

    def reviewer_stats(self, reviewer_id: int) -> ReviewerStats:
        return self._container.review_service().reviewer_stats(reviewer_id)

    # ══════════════════════════════════════════════════════════════════
    # TRENDING
    # ══════════════════════════════════════════════════════════════════

    def trending_claims(self, limit: int = 10) -> List[Claim]:
        return [Claim.model_validate(c) for c in self._container.claim_repo().get_trending(limit=limit)]

    def trending_topics(self, category: Optional[str] = None, limit: int = 10) -> List[TrendingTopic]:
        return self._container.trending_detector().top_topics(category=category, limit=limit)

    def assess_topic(self, topic_id: int) -> TopicAssessment:
        return self._container.trending_detector().assess(topic_id)

    # ══════════════════════════════════════════════════════════════════
    # NOTIFICATIONS & POINTS
    # ══════════════════════════════════════════════════════════════════

    def notifications(self, user_id: int, unread_only: bool = False,
                      skip: int = 0, limit: int = 20) -> List[Notification]:
        return self._container.notification_dispatcher().list_for_user(
            user_id, unread_only=unread_only, skip=skip, limit=limit
        )

    def unread_count(self, user_id: int) -> int:
        return self._container.notification_dispatcher().unread_count(user_id)

    def mark_notification_read(self, notification_id: int, user_id: int) -> Notification:
        return self._container.notification_dispatcher().mark_as_read(notification_id, user_id)

    def mark_all_notifications_read(self, user_id: int) -> int:
        return self._container.notification_dispatcher().mark_all_as_read(user_id)

    def mark_verdict_as_read(self, claim_id: int, user_id: int) -> Claim:
        claim = self._container.notification_dispatcher().mark_verdict_as_read(claim_id, user_id)
        return Claim.model_validate(claim)

    def unread_verdict_count(self, user_id: int) -> int:
        return self._container.notification_dispatcher().unread_verdict_count(user_id)

    def get_preferences(self, user_id: int) -> NotificationPreferences:
        return self._container.notification_dispatcher().get_preferences(user_id)

    def update_preferences(self, user_id: int, changes: Dict[str, bool]) -> NotificationPreferences:
        return self._container.notification_dispatcher().update_preferences(user_id, changes)

    def broadcast_alert(
        self,
        title: str,
        message: str,
        alert_key: str,
        user_ids: Optional[List[int]] = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> int:
        """Queue a system alert for ``user_ids`` (every active user when None)."""
        job_id = self._container.job_queue().enqueue(SystemAlertJob(
            user_ids=user_ids, title=title, message=message, priority=priority, alert_key=alert_key,
        ))
        logger.info("alert_queued", alert_key=alert_key, job_id=job_id)
        return job_id

    def points(self, user_id: int) -> Dict[str, Any]:
        svc = self._container.points_service()
        return {
            "user_id": user_id,
            "total": svc.total(user_id),
            "history": [
                {
                    "points": e.points,
                    "action": e.action,
                    "description": e.description,
                    "claim_id": e.claim_id,
                    "created_at": e.created_at.isoformat(),
                }
                for e in svc.history(user_id)
            ],
        }

    # ══════════════════════════════════════════════════════════════════
    # QUEUE & MAINTENANCE
    # ══════════════════════════════════════════════════════════════════

    def run_worker(self, max_jobs: Optional[int] = None, kinds: Optional[List[JobKind]] = None) -> Dict[str, int]:
        """Drain due jobs inline. Stops when the queue is empty or ``max_jobs`` were handled."""
        worker = self._container.claim_worker(worker_id="facade", kinds=kinds)
        drained = 0
        while max_jobs is None or drained < max_jobs:
            if not worker.run_once():
                break
            drained += 1
        return {"processed": worker.jobs_processed, "failed": worker.jobs_failed}

    def run_maintenance(self) -> Dict[str, int]:
        return self._container.claim_worker(worker_id="facade").run_maintenance()

    def queue_stats(self) -> Dict[str, Any]:
        q = self._container.job_queue()
        return {
            "depth": {kind.value: q.depth(kind) for kind in JobKind},
            "dead_letters": q.dead_letter_count(),
        }

    # ══════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def close(self) -> None:
        """Release the database session and client connections."""
        self._container.shutdown_resources()
        for client in ("email_client", "push_client", "content_client"):
            getattr(self._container, client)().close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
