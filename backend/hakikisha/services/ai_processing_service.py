"""AI pre-screening of pending claims.

Flow per claim (one ``PROCESS_CLAIM`` job):

    lock → pending ─► ai_processing (commit) → model call → parse
         → AIVerdict + route by confidence (commit) → notify submitter → unlock

A transport failure rolls the claim back to ``pending`` and re-raises so the
worker re-queues the job with backoff.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from hakikisha.clients.llm_client import LLMClient
from hakikisha.config import Settings
from hakikisha.database import utcnow
from hakikisha.domain.lifecycle import transition
from hakikisha.engines.ai_response_parser import AIResponseParser
from hakikisha.errors import ExternalServiceError
from hakikisha.models.ai_verdict import AIVerdictModel
from hakikisha.prompts.manager import PromptManager
from hakikisha.repositories.ai_verdict_repo import AIVerdictRepository
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.lock_repo import ClaimLock, ClaimLockRepository
from hakikisha.schemas.claim import ClaimStatus
from hakikisha.schemas.verdict import ProcessingOutcome, ProcessingResult

logger = logging.getLogger(__name__)

PROMPT_NAME = "fact_check"

# Statuses a forced re-run may pull back to pending
_REPROCESSABLE = (ClaimStatus.AI_APPROVED.value, ClaimStatus.HUMAN_REVIEW.value)


class AIProcessingService:
    def __init__(
        self,
        db: Session,
        claim_repo: ClaimRepository,
        ai_verdict_repo: AIVerdictRepository,
        lock_repo: ClaimLockRepository,
        llm_client: LLMClient,
        parser: AIResponseParser,
        prompt_manager: PromptManager,
        settings: Settings,
        notifier=None,
    ):
        self.db = db
        self.claims = claim_repo
        self.ai_verdicts = ai_verdict_repo
        self.locks = lock_repo
        self.llm = llm_client
        self.parser = parser
        self.prompts = prompt_manager
        self.settings = settings
        self.notifier = notifier

    def process(
        self,
        claim_id: int,
        force: bool = False,
        owner: str = "inline",
        now: Optional[datetime] = None,
        claim_text: Optional[str] = None,
    ) -> ProcessingResult:
        """Pre-screen one claim under its lock.

        ``owner`` names the caller; each call locks under its own token, so
        two calls from the same caller never share a lock. ``claim_text``
        overrides the title and description stored on the claim.
        """
        lock_owner = f"{owner}-{uuid.uuid4().hex}"
        with ClaimLock(self.locks, claim_id, lock_owner, self.settings.claim_lock_ttl_seconds) as acquired:
            if not acquired:
                return self._skipped_locked(claim_id)
            return self._process_locked(claim_id, force, now or utcnow(), lock_owner, claim_text)

    def _skipped_locked(self, claim_id: int) -> ProcessingResult:
        claim = self.claims.get_or_raise(claim_id)
        return ProcessingResult(claim_id=claim_id, outcome=ProcessingOutcome.SKIPPED_LOCKED, status=claim.status)

    def _process_locked(
        self, claim_id: int, force: bool, now: datetime, lock_owner: str, claim_text: Optional[str]
    ) -> ProcessingResult:
        claim = self.claims.get_or_raise(claim_id)
        version = self.prompts.resolve_version(PROMPT_NAME, self.settings.fact_check_prompt_version)
        system_prompt = self.prompts.get(PROMPT_NAME, version)

        if claim.status == ClaimStatus.AI_PROCESSING.value:
            # We hold the lock, so the previous attempt died mid-flight
            logger.warning("Claim %d found in ai_processing; resuming", claim.id)
        else:
            try:
                if force and claim.status in _REPROCESSABLE:
                    transition(claim, ClaimStatus.PENDING, now, reason="forced re-processing")
                    claim.assigned_fact_checker_id = None
                    claim.assigned_at = None
                if claim.status != ClaimStatus.PENDING.value:
                    logger.info("Claim %d is %s; nothing to process", claim.id, claim.status)
                    self.db.rollback()
                    return ProcessingResult(
                        claim_id=claim.id, outcome=ProcessingOutcome.SKIPPED_STATUS, status=claim.status
                    )
                transition(claim, ClaimStatus.AI_PROCESSING, now)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        try:
            raw = self.llm.fact_check(claim_text or claim.fact_check_text, system_prompt)
        except ExternalServiceError:
            self._revert_to_pending(claim_id)
            raise

        parsed = self.parser.parse(raw)

        # Renew before writing; refused only if another worker took over an expired lock
        if not self.locks.acquire(claim_id, lock_owner, self.settings.claim_lock_ttl_seconds):
            logger.warning("Lost the lock on claim %d during the model call; discarding the answer", claim_id)
            self.db.rollback()
            return self._skipped_locked(claim_id)

        try:
            ai_verdict = self.ai_verdicts.create(AIVerdictModel(
                claim_id=claim.id,
                verdict=parsed.verdict.value,
                confidence_score=parsed.confidence_score,
                explanation=parsed.explanation,
                evidence_sources=parsed.sources,
                model_version=f"{self.llm.model}:{PROMPT_NAME}/{version}",
                parse_fallback=parsed.fallback_reason,
                disclaimer=self.settings.ai_disclaimer,
            ))
            claim.ai_verdict_id = ai_verdict.id
            target = (
                ClaimStatus.HUMAN_REVIEW
                if parsed.confidence_score < self.settings.ai_confidence_threshold
                else ClaimStatus.AI_APPROVED
            )
            transition(claim, target, utcnow())
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._revert_to_pending(claim_id)
            raise

        logger.info(
            "Claim %d: AI verdict %s (confidence %.2f%s) → %s",
            claim.id, parsed.verdict.value, parsed.confidence_score,
            f", fallback={parsed.fallback_reason}" if parsed.fallback_reason else "",
            claim.status,
        )
        self._notify_submitter(claim, ai_verdict.id)

        return ProcessingResult(
            claim_id=claim.id,
            outcome=ProcessingOutcome.PROCESSED,
            status=claim.status,
            ai_verdict_id=ai_verdict.id,
            confidence_score=parsed.confidence_score,
            parse_fallback=parsed.fallback_reason,
        )

    def _revert_to_pending(self, claim_id: int) -> None:
        claim = self.claims.get_or_raise(claim_id)
        if claim.status != ClaimStatus.AI_PROCESSING.value:
            return
        try:
            transition(claim, ClaimStatus.PENDING, reason="AI processing failed")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.warning("Claim %d returned to pending after AI failure", claim_id)

    def _notify_submitter(self, claim, ai_verdict_id: int) -> None:
        if self.notifier is None:
            return
        if claim.status == ClaimStatus.AI_APPROVED.value:
            self.notifier.notify_ai_verdict_ready(claim, ai_verdict_id)
        else:
            self.notifier.notify_claim_under_review(claim, event_suffix=f":ai:{ai_verdict_id}")
