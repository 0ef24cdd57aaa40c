"""Email and push delivery webhooks.

Template rendering and provider specifics live behind the webhooks; these
clients only hand over the already-written notification text.
"""

import logging

from hakikisha.clients.base_client import BaseHTTPClient

logger = logging.getLogger(__name__)


class EmailChannelClient(BaseHTTPClient):
    service_name = "email"

    def deliver(self, user, notification) -> None:
        if not user.email:
            logger.debug("User %d has no email address; skipping", user.id)
            return
        self._post("/send", {
            "to": user.email,
            "subject": notification.title,
            "text": notification.message,
            "metadata": {
                "notification_id": notification.id,
                "type": notification.type,
            },
        })


class PushChannelClient(BaseHTTPClient):
    service_name = "push"

    def deliver(self, user, notification) -> None:
        self._post("/push", {
            "user_id": user.id,
            "title": notification.title,
            "body": notification.message,
            "data": {
                "notification_id": notification.id,
                "type": notification.type,
                "related_entity_type": notification.related_entity_type,
                "related_entity_id": notification.related_entity_id,
            },
        })
