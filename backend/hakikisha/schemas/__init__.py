"""Pydantic schemas for validation, payloads and domain types."""

from hakikisha.schemas.claim import (
    Claim,
    ClaimCreate,
    ClaimPriority,
    ClaimStatus,
    MediaType,
    SubmissionResult,
)
from hakikisha.schemas.jobs import (
    AwardPointsJob,
    Job,
    JobKind,
    JobStatus,
    NotifyVerdictJob,
    ProcessClaimJob,
    SystemAlertJob,
    UpdateTrendingJob,
    parse_job,
)
from hakikisha.schemas.notification import (
    DeliveryReport,
    Notification,
    NotificationPreferences,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
)
from hakikisha.schemas.review import (
    ApproveAIVerdict,
    AssignmentAction,
    AuthorVerdict,
    DecisionResult,
    RejectClaim,
    ReviewDecision,
    ReviewerStats,
    ReviewSession,
    SessionOutcome,
)
from hakikisha.schemas.trending import RiskLevel, TopicAssessment, TrendingTopic, TrendingUpdate
from hakikisha.schemas.verdict import (
    AIVerdict,
    AIVerdictCreate,
    ParsedAIVerdict,
    ProcessingOutcome,
    ProcessingResult,
    Responsibility,
    Verdict,
    VerdictCreate,
    VerdictLabel,
)

__all__ = [
    "Claim", "ClaimCreate", "ClaimPriority", "ClaimStatus", "MediaType", "SubmissionResult",
    "AIVerdict", "AIVerdictCreate", "ParsedAIVerdict", "Verdict", "VerdictCreate",
    "VerdictLabel", "Responsibility", "ProcessingOutcome", "ProcessingResult",
    "AssignmentAction", "ApproveAIVerdict", "AuthorVerdict", "RejectClaim", "ReviewDecision",
    "DecisionResult", "ReviewSession", "ReviewerStats", "SessionOutcome",
    "TrendingTopic", "TrendingUpdate", "TopicAssessment", "RiskLevel",
    "DeliveryReport", "Notification", "NotificationPreferences", "NotificationPriority",
    "NotificationRequest", "NotificationType",
    "Job", "JobKind", "JobStatus", "ProcessClaimJob", "NotifyVerdictJob",
    "UpdateTrendingJob", "AwardPointsJob", "SystemAlertJob", "parse_job",
]
