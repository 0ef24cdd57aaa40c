"""Service-layer orchestration modules."""

from hakikisha.services.ai_processing_service import AIProcessingService
from hakikisha.services.assignment_service import AssignmentService
from hakikisha.services.finalizer_service import VerdictFinalizer
from hakikisha.services.intake_service import ClaimIntakeService
from hakikisha.services.job_queue import JobQueue, LeasedJob
from hakikisha.services.notification_service import NotificationDispatcher
from hakikisha.services.points_service import PointsService
from hakikisha.services.review_service import ReviewService
from hakikisha.services.worker import ClaimWorker

__all__ = [
    "ClaimIntakeService",
    "AIProcessingService",
    "AssignmentService",
    "ReviewService",
    "VerdictFinalizer",
    "NotificationDispatcher",
    "PointsService",
    "JobQueue",
    "LeasedJob",
    "ClaimWorker",
]
