"""Data access repositories."""

from hakikisha.repositories.ai_verdict_repo import AIVerdictRepository
from hakikisha.repositories.base import BaseRepository
from hakikisha.repositories.claim_repo import ClaimRepository
from hakikisha.repositories.job_repo import JobRepository
from hakikisha.repositories.lock_repo import ClaimLock, ClaimLockRepository
from hakikisha.repositories.notification_repo import NotificationRepository
from hakikisha.repositories.points_repo import PointsRepository
from hakikisha.repositories.review_session_repo import ReviewSessionRepository
from hakikisha.repositories.trending_topic_repo import TrendingTopicRepository
from hakikisha.repositories.user_repo import UserRepository
from hakikisha.repositories.verdict_repo import VerdictRepository

__all__ = [
    "BaseRepository",
    "ClaimRepository",
    "AIVerdictRepository",
    "VerdictRepository",
    "TrendingTopicRepository",
    "NotificationRepository",
    "ReviewSessionRepository",
    "UserRepository",
    "PointsRepository",
    "JobRepository",
    "ClaimLockRepository",
    "ClaimLock",
]
