"""Reusable base for the outbound HTTP collaborators (email, push, content)."""

import logging
from typing import Any, Optional

import httpx

from hakikisha.errors import ExternalServiceError
from hakikisha.utils.retry import with_retry

logger = logging.getLogger(__name__)


class BaseHTTPClient:
    """Thin wrapper around httpx with logging, error handling and retry.

    Subclasses only implement domain methods on top of ``_post``. An empty
    ``base_url`` means the collaborator is not configured: ``enabled`` is
    False and callers skip it.
    """

    service_name = "http"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        retry_max_attempts: int = 3,
        retry_initial_delay: float = 1.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.Client(timeout=timeout, headers=headers, transport=transport)
        self._retry_max_attempts = retry_max_attempts
        self._retry_initial_delay = retry_initial_delay

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    # ── HTTP helpers ─────────────────────────────────────────────────

    def _post(self, endpoint: str, payload: dict) -> Any:
        """POST JSON with retry.

        Retries on 5xx, 429, network errors and timeouts. A 4xx is not
        retried. Any final failure surfaces as ``ExternalServiceError``.
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            return self._post_with_retry(url, payload)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(self.service_name, f"POST {url} failed: {exc}") from exc

    def _post_with_retry(self, url: str, payload: dict) -> Any:
        @with_retry(
            max_attempts=self._retry_max_attempts,
            initial_delay=self._retry_initial_delay,
            retry_on=(
                httpx.HTTPStatusError,
                httpx.TimeoutException,
                httpx.NetworkError,
            ),
            reraise_on=(),
        )
        def _do_post():
            logger.debug("POST %s", url)
            resp = self._client.post(url, json=payload)

            if resp.status_code >= 500 or resp.status_code == 429:
                logger.warning("Retryable error %d from %s", resp.status_code, url)
                resp.raise_for_status()  # Triggers retry
            elif resp.status_code >= 400:
                raise ExternalServiceError(
                    self.service_name, f"client error {resp.status_code} from {url}"
                )

            if not resp.content:
                return None
            try:
                return resp.json()
            except ValueError:
                return resp.text

        return _do_post()

    # ── lifecycle ────────────────────────────────────────────────────

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
