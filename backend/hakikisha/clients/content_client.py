"""Client for the advisory-content service (blog/advisory drafting)."""

import logging

from hakikisha.clients.base_client import BaseHTTPClient
from hakikisha.domain.trending import recommended_action
from hakikisha.schemas.trending import TrendingTopic

logger = logging.getLogger(__name__)


class ContentServiceClient(BaseHTTPClient):
    service_name = "content"

    def request_advisory(self, topic: TrendingTopic) -> None:
        """Ask the content service to draft an advisory for a high-risk topic."""
        if not self.enabled:
            logger.info("Content service not configured; advisory for %r not requested", topic.topic)
            return
        self._post("/advisories", {
            "topic": topic.topic,
            "category": topic.category,
            "engagement_score": topic.engagement_score,
            "risk_level": topic.risk_level.value,
            "recommended_action": recommended_action(topic.risk_level),
            "related_claim_ids": topic.related_claim_ids,
        })
        logger.info("Advisory requested for topic %r", topic.topic)
