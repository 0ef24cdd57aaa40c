"""Claim lifecycle: the only place a claim's status may change.

Status flow::

    pending ─► ai_processing ─┬─► ai_approved ─┐
       │                      └─► human_review ◄┘ ◄──► under_review
       └────────────────────────► human_review ─► human_approved ─► published

``rejected`` is reachable from every state before publication.
``published`` and ``rejected`` are terminal.

Usage:
    from hakikisha.domain.lifecycle import transition
    from hakikisha.schemas.claim import ClaimStatus

    transition(claim, ClaimStatus.AI_PROCESSING)   # raises InvalidTransition if not allowed
"""

from datetime import datetime
from typing import Dict, FrozenSet, Optional

from hakikisha.database import utcnow
from hakikisha.errors import InvalidTransition
from hakikisha.schemas.claim import ClaimStatus

S = ClaimStatus

TRANSITIONS: Dict[ClaimStatus, FrozenSet[ClaimStatus]] = {
    S.PENDING: frozenset({S.AI_PROCESSING, S.HUMAN_REVIEW, S.REJECTED}),
    S.AI_PROCESSING: frozenset({S.AI_APPROVED, S.HUMAN_REVIEW, S.PENDING, S.REJECTED}),
    S.AI_APPROVED: frozenset({S.HUMAN_REVIEW, S.PENDING, S.REJECTED}),
    S.HUMAN_REVIEW: frozenset({S.UNDER_REVIEW, S.HUMAN_APPROVED, S.PENDING, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.HUMAN_REVIEW, S.HUMAN_APPROVED, S.REJECTED}),
    S.HUMAN_APPROVED: frozenset({S.PUBLISHED, S.HUMAN_REVIEW, S.REJECTED}),
    S.PUBLISHED: frozenset(),
    S.REJECTED: frozenset(),
}

# States from which a human verdict may be finalized
REVIEWABLE: FrozenSet[ClaimStatus] = frozenset({S.HUMAN_REVIEW, S.UNDER_REVIEW})


def allowed_targets(current: ClaimStatus) -> FrozenSet[ClaimStatus]:
    return TRANSITIONS[ClaimStatus(current)]


def can_transition(current: ClaimStatus, target: ClaimStatus) -> bool:
    """Examples:
        >>> can_transition(ClaimStatus.PENDING, ClaimStatus.AI_PROCESSING)
        True
        >>> can_transition(ClaimStatus.PUBLISHED, ClaimStatus.HUMAN_REVIEW)
        False
    """
    return ClaimStatus(target) in allowed_targets(current)


def is_terminal(status: ClaimStatus) -> bool:
    return not TRANSITIONS[ClaimStatus(status)]


def transition(claim, target: ClaimStatus, now: Optional[datetime] = None, reason: Optional[str] = None):
    """Move ``claim`` (a ClaimModel) to ``target`` or raise ``InvalidTransition``.

    Never coerces: an illegal edge is an error even when the target looks
    harmless. Leaving ``human_approved`` for another review round clears
    ``human_verdict_id`` so a claim under review never points at a verdict.
    """
    current = ClaimStatus(claim.status)
    target = ClaimStatus(target)
    if not can_transition(current, target):
        raise InvalidTransition(claim.id, current.value, target.value, reason)

    if current == S.HUMAN_APPROVED and target == S.HUMAN_REVIEW:
        claim.human_verdict_id = None

    claim.status = target.value
    claim.updated_at = now or utcnow()
    return claim
