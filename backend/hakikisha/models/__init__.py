"""SQLAlchemy ORM models, imported here so Base.metadata sees them."""

from hakikisha.models.ai_verdict import AIVerdictModel
from hakikisha.models.claim import ClaimModel
from hakikisha.models.job import ClaimLockModel, JobModel
from hakikisha.models.notification import NotificationModel
from hakikisha.models.points import PointsEntryModel
from hakikisha.models.review_session import ReviewSessionModel
from hakikisha.models.trending_topic import TrendingTopicModel
from hakikisha.models.user import UserModel
from hakikisha.models.verdict import VerdictModel

__all__ = [
    "UserModel",
    "ClaimModel",
    "AIVerdictModel",
    "VerdictModel",
    "TrendingTopicModel",
    "NotificationModel",
    "ReviewSessionModel",
    "PointsEntryModel",
    "JobModel",
    "ClaimLockModel",
]
