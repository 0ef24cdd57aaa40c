"""Error taxonomy for the claim verification workflow.

Every service raises one of these; callers decide whether to surface,
retry or log. ``DownstreamEffectError`` is never raised out of a primary
operation, it only exists so fan-out failures are logged with a stable type.
"""

from typing import Optional


class HakikishaError(Exception):
    """Base class for all workflow errors."""


class ValidationError(HakikishaError):
    """Malformed claim or verdict input. Rejected synchronously, never enqueued."""


class NotFoundError(HakikishaError):
    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ExternalServiceError(HakikishaError):
    """AI or other collaborator transport/timeout failure. Eligible for re-enqueue."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class InvalidTransition(HakikishaError):
    """A claim lifecycle precondition did not hold."""

    def __init__(self, claim_id, current: str, target: str, reason: Optional[str] = None):
        self.claim_id = claim_id
        self.current = current
        self.target = target
        detail = f"claim {claim_id}: cannot move from {current} to {target}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail)


class AssignmentConflict(HakikishaError):
    """The claim is already held by another fact-checker."""

    def __init__(self, claim_id, holder_id):
        self.claim_id = claim_id
        self.holder_id = holder_id
        super().__init__(f"claim {claim_id} is already assigned to fact-checker {holder_id}")


class PermissionDenied(HakikishaError):
    """The acting user may not perform this operation."""


class DownstreamEffectError(HakikishaError):
    """A fan-out effect (notification, channel, trending, points, content) failed."""

    def __init__(self, effect: str, message: str):
        self.effect = effect
        super().__init__(f"{effect}: {message}")


class AIResponseError(HakikishaError):
    """The model's output could not be used as-is."""

    reason = "ai_response_error"


class MalformedAIResponse(AIResponseError):
    """The output contained no parseable JSON object."""

    reason = "malformed_json"


class UnexpectedAIResponse(AIResponseError):
    """Valid JSON, but the verdict is missing or outside the allowed set."""

    reason = "unexpected_verdict"
