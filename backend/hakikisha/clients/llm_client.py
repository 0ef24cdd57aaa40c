"""Wrapper around the Anthropic Claude API for claim pre-screening."""

import logging

import anthropic

from hakikisha.errors import ExternalServiceError
from hakikisha.utils.retry import with_retry

logger = logging.getLogger(__name__)

JSON_SHAPE = (
    "Reply with a single JSON object and nothing else: "
    '{"verdict": "true|false|misleading|satire|needs_context", '
    '"confidence_score": <float 0.0-1.0>, "explanation": "<string>", "sources": ["<url>", ...]}'
)


def user_prompt(claim_text: str) -> str:
    return f"Fact-check this claim:\n\n{claim_text}\n\n{JSON_SHAPE}"


class LLMClient:
    """Handles all LLM interactions.

    Responsibilities:
    - Send the claim with the versioned fact-check system prompt
    - Track token usage
    - Retry on transient failures
    - Report exhausted or fatal failures as ``ExternalServiceError``

    The raw text is returned unparsed; ``AIResponseParser`` owns validation.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 1024,
        retry_max_attempts: int = 3,
        timeout: float = 60.0,
        sdk_max_retries: int = 0,
        retry_initial_delay: float = 2.0,
    ):
        # Bounded so a call always finishes inside the claim lock TTL
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=sdk_max_retries)
        self.model = model
        self.max_tokens = max_tokens
        self.total_input_tokens: int = 0
        self.total_output_tokens: int = 0
        self._retry_max_attempts = retry_max_attempts
        self._retry_initial_delay = retry_initial_delay

    def fact_check(self, claim_text: str, system_prompt: str) -> str:
        """Return the model's raw answer for one claim.

        Raises:
            ExternalServiceError: API, transport or auth failure after retries
        """
        try:
            return self._create_message(claim_text, system_prompt)
        except anthropic.APIError as exc:
            logger.error("Claude request failed: %s", exc)
            raise ExternalServiceError("anthropic", str(exc)) from exc

    def _create_message(self, claim_text: str, system_prompt: str) -> str:
        @with_retry(
            max_attempts=self._retry_max_attempts,
            initial_delay=self._retry_initial_delay,
            retry_on=(
                anthropic.APITimeoutError,
                anthropic.APIConnectionError,
                anthropic.RateLimitError,
                anthropic.InternalServerError,
            ),
            reraise_on=(
                anthropic.BadRequestError,  # Invalid prompt - don't retry
                anthropic.AuthenticationError,  # Bad API key - don't retry
            ),
        )
        def _do_create() -> str:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt(claim_text)}],
            )
            self.total_input_tokens += message.usage.input_tokens
            self.total_output_tokens += message.usage.output_tokens
            return "".join(
                block.text for block in message.content if getattr(block, "type", "text") == "text"
            )

        return _do_create()
