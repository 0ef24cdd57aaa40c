"""Per-claim advisory lock stored in the ``claim_locks`` table.

Only one worker may run AI processing for a claim at a time. A lock row
carries an expiry so a crashed worker cannot hold a claim forever: once
``expires_at`` passes, the next ``acquire`` takes the row over.

Usage::

    with ClaimLock(lock_repo, claim_id=7, owner="worker-1", ttl_seconds=60) as acquired:
        if not acquired:
            return
        ...
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hakikisha.database import utcnow
from hakikisha.models.job import ClaimLockModel

logger = logging.getLogger(__name__)


class ClaimLockRepository:
    """Acquire and release lock rows. Every call commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    def acquire(self, claim_id: int, owner: str, ttl_seconds: int, now=None) -> bool:
        now = now or utcnow()
        expires_at = now + timedelta(seconds=ttl_seconds)

        # Take over an expired row, or extend our own
        taken = (
            self.db.query(ClaimLockModel)
            .filter(
                ClaimLockModel.claim_id == claim_id,
                or_(ClaimLockModel.expires_at < now, ClaimLockModel.owner == owner),
            )
            .update(
                {ClaimLockModel.owner: owner, ClaimLockModel.expires_at: expires_at},
                synchronize_session=False,
            )
        )
        if taken:
            self.db.commit()
            return True

        if self.db.get(ClaimLockModel, claim_id) is not None:
            return False

        try:
            self.db.add(ClaimLockModel(claim_id=claim_id, owner=owner, expires_at=expires_at))
            self.db.commit()
        except IntegrityError:
            # Another worker inserted the row between our check and insert
            self.db.rollback()
            return False
        return True

    def release(self, claim_id: int, owner: str) -> bool:
        """Delete the lock row, but only if ``owner`` still holds it."""
        deleted = (
            self.db.query(ClaimLockModel)
            .filter(ClaimLockModel.claim_id == claim_id, ClaimLockModel.owner == owner)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted == 1

    def holder(self, claim_id: int, now=None) -> Optional[str]:
        now = now or utcnow()
        row = self.db.get(ClaimLockModel, claim_id)
        if row is None or row.expires_at < now:
            return None
        return row.owner


class ClaimLock:
    """Context manager around ``ClaimLockRepository``; yields whether it got the lock."""

    def __init__(self, repo: ClaimLockRepository, claim_id: int, owner: str, ttl_seconds: int = 60):
        self.repo = repo
        self.claim_id = claim_id
        self.owner = owner
        self.ttl_seconds = ttl_seconds
        self.acquired = False

    def __enter__(self) -> bool:
        self.acquired = self.repo.acquire(self.claim_id, self.owner, self.ttl_seconds)
        if not self.acquired:
            logger.info("Claim %d is locked by another worker; skipping", self.claim_id)
        return self.acquired

    def __exit__(self, exc_type, exc, tb):
        if self.acquired:
            try:
                self.repo.release(self.claim_id, self.owner)
            except Exception as release_exc:
                self.repo.db.rollback()
                logger.error("Failed to release lock on claim %d: %s", self.claim_id, release_exc)
        return False
