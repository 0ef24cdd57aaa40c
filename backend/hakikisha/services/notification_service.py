"""Notification fan-out: in-app rows first, then optional email and push.

The in-app row is the source of truth and is written (idempotently, by
``event_key``) and committed before any channel is tried. Channel failures
are logged as ``DownstreamEffectError`` and never reach the caller.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hakikisha.database import utcnow
from hakikisha.errors import DownstreamEffectError, NotFoundError, PermissionDenied, ValidationError
from hakikisha.models.claim import ClaimModel
from hakikisha.models.notification import NotificationModel
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.notification_repo import NotificationRepository
from hakikisha.repositories.user_repo import UserRepository
from hakikisha.repositories.verdict_repo import VerdictRepository
from hakikisha.schemas.claim import ClaimStatus
from hakikisha.schemas.notification import (
    DeliveryReport,
    Notification,
    NotificationPreferences,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        db: Session,
        notification_repo: NotificationRepository,
        user_repo: UserRepository,
        claim_repo: ClaimRepository,
        verdict_repo: VerdictRepository,
        email_client=None,
        push_client=None,
        batch_size: int = 100,
    ):
        self.db = db
        self.notifications = notification_repo
        self.users = user_repo
        self.claims = claim_repo
        self.verdicts = verdict_repo
        self.email = email_client
        self.push = push_client
        self.batch_size = batch_size

    # ══════════════════════════════════════════════════════════════════
    # CORE
    # ══════════════════════════════════════════════════════════════════

    def notify(self, request: NotificationRequest) -> DeliveryReport:
        """Write the notification (once per event key), then try channels.

        Raises on database failure so a queued caller can retry; a repeated
        event key returns the existing row with ``created=False``.
        """
        existing = self.notifications.get_by_event_key(request.event_key)
        if existing is not None:
            logger.debug("Notification %s already recorded", request.event_key)
            return DeliveryReport(notification_id=existing.id, created=False)

        user = self.users.get_or_raise(request.user_id)
        try:
            row = self.notifications.create(NotificationModel(
                user_id=request.user_id,
                type=request.type.value,
                title=request.title,
                message=request.message,
                related_entity_type=request.related_entity_type,
                related_entity_id=request.related_entity_id,
                priority=request.priority.value,
                event_key=request.event_key,
            ))
            self.db.commit()
        except IntegrityError:
            # Concurrent writer recorded the same event first
            self.db.rollback()
            existing = self.notifications.get_by_event_key(request.event_key)
            if existing is None:
                raise
            return DeliveryReport(notification_id=existing.id, created=False)
        except Exception:
            self.db.rollback()
            raise

        report = DeliveryReport(notification_id=row.id, created=True)
        self._deliver(user, row, request.type, report)
        logger.info(
            "Notification %d (%s) for user %d; channels=%s failed=%s",
            row.id, request.type.value, user.id, report.channels_attempted, report.channels_failed,
        )
        return report

    def notify_safely(self, request: NotificationRequest) -> Optional[DeliveryReport]:
        """``notify`` for inline callers: any failure is logged, never raised."""
        try:
            return self.notify(request)
        except Exception as exc:
            self.db.rollback()
            err = DownstreamEffectError("notification", str(exc))
            logger.error("Notification %s not recorded: %s", request.event_key, err)
            return None

    def _deliver(self, user, row: NotificationModel, ntype: NotificationType, report: DeliveryReport) -> None:
        prefs = self.get_preferences(user.id)
        if not prefs.allows(ntype):
            return

        channels = []
        if self.email is not None and self.email.enabled and prefs.email_notifications:
            channels.append(("email", self.email))
        if self.push is not None and self.push.enabled and prefs.push_notifications:
            channels.append(("push", self.push))

        for name, client in channels:
            report.channels_attempted.append(name)
            try:
                client.deliver(user, row)
            except Exception as exc:
                report.channels_failed.append(name)
                err = DownstreamEffectError(f"{name}_channel", str(exc))
                logger.warning("Delivery of notification %d failed: %s", row.id, err)

    # ══════════════════════════════════════════════════════════════════
    # WORKFLOW EVENTS
    # ══════════════════════════════════════════════════════════════════

    def notify_verdict_published(self, claim_id: int, verdict_id: int) -> DeliveryReport:
        """Tell the submitter their claim has a published verdict. Raises on failure."""
        claim = self.claims.get_or_raise(claim_id)
        verdict = self.verdicts.get_or_raise(verdict_id)
        report = self.notify(NotificationRequest(
            user_id=claim.submitter_id,
            type=NotificationType.VERDICT_READY,
            title="Verdict Ready",
            message=f'Your claim "{claim.title}" has been verified: {verdict.verdict}',
            related_entity_type="claim",
            related_entity_id=claim.id,
            priority=NotificationPriority.HIGH,
            event_key=f"verdict_ready:{verdict_id}",
        ))
        if report.created:
            claim.verdict_notified = True
            self.db.commit()
        return report

    def notify_assignment(self, claim: ClaimModel, fact_checker_id: int) -> Optional[DeliveryReport]:
        return self.notify_safely(NotificationRequest(
            user_id=fact_checker_id,
            type=NotificationType.CLAIM_ASSIGNED,
            title="New Claim Assigned",
            message=f'You have been assigned a new claim to verify: "{claim.title}"',
            related_entity_type="claim",
            related_entity_id=claim.id,
            priority=NotificationPriority.MEDIUM,
            event_key=f"claim_assigned:{claim.id}:{fact_checker_id}:{claim.assigned_at.isoformat() if claim.assigned_at else ''}",
        ))

    def notify_ai_verdict_ready(self, claim: ClaimModel, ai_verdict_id: int) -> Optional[DeliveryReport]:
        return self.notify_safely(NotificationRequest(
            user_id=claim.submitter_id,
            type=NotificationType.AI_VERDICT_READY,
            title="AI Verdict Available",
            message=f'An AI assessment of your claim "{claim.title}" is ready. A fact-checker may still review it.',
            related_entity_type="claim",
            related_entity_id=claim.id,
            event_key=f"ai_verdict_ready:{ai_verdict_id}",
        ))

    def notify_claim_under_review(self, claim: ClaimModel, event_suffix: str = "") -> Optional[DeliveryReport]:
        return self.notify_safely(NotificationRequest(
            user_id=claim.submitter_id,
            type=NotificationType.CLAIM_UNDER_REVIEW,
            title="Claim Under Review",
            message=f'Your claim "{claim.title}" has been sent to our fact-checkers for review.',
            related_entity_type="claim",
            related_entity_id=claim.id,
            event_key=f"claim_under_review:{claim.id}{event_suffix}",
        ))

    def notify_claim_rejected(self, claim: ClaimModel) -> Optional[DeliveryReport]:
        return self.notify_safely(NotificationRequest(
            user_id=claim.submitter_id,
            type=NotificationType.CLAIM_REJECTED,
            title="Claim Not Accepted",
            message=f'Your claim "{claim.title}" was not accepted for fact-checking: {claim.rejection_reason}',
            related_entity_type="claim",
            related_entity_id=claim.id,
            event_key=f"claim_rejected:{claim.id}",
        ))

    def broadcast(
        self,
        user_ids: Optional[Iterable[int]],
        *,
        title: str,
        message: str,
        alert_key: str,
        ntype: NotificationType = NotificationType.SYSTEM_ALERT,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> int:
        """Send the same notification to many users in batches.

        ``user_ids=None`` targets every active user. Returns how many new
        rows were written; already-notified users are skipped via the
        per-user event key, so a retried broadcast picks up where it stopped.
        """
        if user_ids is None:
            batches = self.users.iter_active_ids(self.batch_size)
        else:
            ids = list(dict.fromkeys(user_ids))
            batches = (ids[i:i + self.batch_size] for i in range(0, len(ids), self.batch_size))

        created = 0
        for batch in batches:
            for user_id in batch:
                report = self.notify(NotificationRequest(
                    user_id=user_id,
                    type=ntype,
                    title=title,
                    message=message,
                    priority=priority,
                    event_key=f"{alert_key}:{user_id}",
                ))
                created += int(report.created)
            logger.info("Broadcast %s: batch of %d processed", alert_key, len(batch))
        return created

    def notify_admins(self, *, title: str, message: str, alert_key: str) -> int:
        return self.broadcast(
            [u.id for u in self.users.get_admins()],
            title=title,
            message=message,
            alert_key=alert_key,
            priority=NotificationPriority.HIGH,
        )

    # ══════════════════════════════════════════════════════════════════
    # RECIPIENT OPERATIONS
    # ══════════════════════════════════════════════════════════════════

    def list_for_user(
        self, user_id: int, *, unread_only: bool = False, skip: int = 0, limit: int = 20
    ) -> List[Notification]:
        rows = self.notifications.list_for_user(user_id, unread_only=unread_only, skip=skip, limit=limit)
        return [Notification.model_validate(r) for r in rows]

    def unread_count(self, user_id: int) -> int:
        return self.notifications.count_unread(user_id)

    def mark_as_read(self, notification_id: int, user_id: int, now: Optional[datetime] = None) -> Notification:
        row = self.notifications.get_or_raise(notification_id)
        if row.user_id != user_id:
            raise PermissionDenied(f"notification {notification_id} does not belong to user {user_id}")
        if not row.is_read:
            row.is_read = True
            row.read_at = now or utcnow()
            self.db.commit()
        return Notification.model_validate(row)

    def mark_all_as_read(self, user_id: int, now: Optional[datetime] = None) -> int:
        updated = self.notifications.mark_all_read(user_id, now or utcnow())
        self.db.commit()
        return updated

    def mark_verdict_as_read(self, claim_id: int, user_id: int, now: Optional[datetime] = None) -> ClaimModel:
        """Record that the submitter has seen the verdict. Idempotent."""
        claim = self.claims.get_or_raise(claim_id)
        if claim.submitter_id != user_id:
            raise PermissionDenied(f"claim {claim_id} was not submitted by user {user_id}")
        if claim.status != ClaimStatus.PUBLISHED.value:
            raise ValidationError(f"claim {claim_id} has no published verdict yet")
        if claim.verdict_read_at is None:
            claim.verdict_read_at = now or utcnow()
            claim.verdict_notified = True
            self.db.commit()
        return claim

    def unread_verdict_count(self, user_id: int) -> int:
        return self.claims.count_unread_verdicts(user_id)

    # ══════════════════════════════════════════════════════════════════
    # PREFERENCES
    # ══════════════════════════════════════════════════════════════════

    def get_preferences(self, user_id: int) -> NotificationPreferences:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        stored = dict(user.notification_preferences or {})
        stored["email_notifications"] = user.email_notifications
        stored["push_notifications"] = user.push_notifications
        return NotificationPreferences.model_validate(stored)

    def update_preferences(self, user_id: int, changes: dict) -> NotificationPreferences:
        unknown = set(changes) - set(NotificationPreferences.model_fields)
        if unknown:
            raise ValidationError(f"Invalid preference key(s): {', '.join(sorted(unknown))}")
        bad = [k for k, v in changes.items() if not isinstance(v, bool)]
        if bad:
            raise ValidationError(f"Preference values must be booleans: {', '.join(sorted(bad))}")

        user = self.users.get_or_raise(user_id)
        prefs = self.get_preferences(user_id).model_copy(update=changes)
        user.email_notifications = prefs.email_notifications
        user.push_notifications = prefs.push_notifications
        user.notification_preferences = prefs.model_dump(exclude={"email_notifications", "push_notifications"})
        self.db.commit()
        logger.info("Notification preferences updated for user %d: %s", user_id, sorted(changes))
        return prefs
