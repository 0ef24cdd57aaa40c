"""Typed job payloads for the work queue.

Each ``JobKind`` has exactly one payload model; ``Job`` is the discriminated
union the worker dispatches on. Producers never pass bare job-name strings.

Usage::

    queue.enqueue(ProcessClaimJob(claim_id=7, claim_text="...", submitter_id=3))
    leased = queue.lease("w1", kinds=[JobKind.PROCESS_CLAIM])
    leased.job  # -> ProcessClaimJob
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from hakikisha.schemas.notification import NotificationPriority, NotificationType


class JobKind(str, Enum):
    PROCESS_CLAIM = "process_claim"
    NOTIFY_VERDICT = "notify_verdict"
    UPDATE_TRENDING = "update_trending"
    AWARD_POINTS = "award_points"
    SYSTEM_ALERT = "system_alert"


class JobStatus(str, Enum):
    QUEUED = "queued"
    LEASED = "leased"
    DONE = "done"
    DEAD = "dead"  # exceeded max attempts


class ProcessClaimJob(BaseModel):
    kind: Literal["process_claim"] = "process_claim"
    claim_id: int
    claim_text: str
    submitter_id: int
    force: bool = False


class NotifyVerdictJob(BaseModel):
    kind: Literal["notify_verdict"] = "notify_verdict"
    claim_id: int
    verdict_id: int


class UpdateTrendingJob(BaseModel):
    kind: Literal["update_trending"] = "update_trending"
    claim_id: int


class AwardPointsJob(BaseModel):
    kind: Literal["award_points"] = "award_points"
    user_id: int
    points: int
    action: str
    description: str
    claim_id: Optional[int] = None
    event_key: str


class SystemAlertJob(BaseModel):
    kind: Literal["system_alert"] = "system_alert"
    user_ids: Optional[list[int]] = None  # None → every active user
    type: NotificationType = NotificationType.SYSTEM_ALERT
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    alert_key: str


Job = Annotated[
    Union[ProcessClaimJob, NotifyVerdictJob, UpdateTrendingJob, AwardPointsJob, SystemAlertJob],
    Field(discriminator="kind"),
]

job_adapter: TypeAdapter = TypeAdapter(Job)


def parse_job(payload: dict):
    """Rebuild the typed job from its stored JSON payload."""
    return job_adapter.validate_python(payload)
