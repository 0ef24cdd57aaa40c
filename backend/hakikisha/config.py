"""Application configuration loaded from environment variables."""

import os
from pathlib import Path
from pydantic import model_validator
from pydantic_settings import BaseSettings

from hakikisha.utils.retry import backoff_delay

# anthropic SDK caps its own retry sleep at this many seconds
SDK_MAX_RETRY_DELAY = 8.0

# Check if .env file exists and is readable
_env_file = None
try:
    env_path = Path(".env")
    if env_path.exists() and os.access(env_path, os.R_OK):
        _env_file = ".env"
except (OSError, PermissionError):
    # If we can't access .env, continue without it
    pass


class Settings(BaseSettings):
    """All configuration for the claim verification workflow.

    Values are loaded from environment variables or a .env file.
    """

    # Application
    app_name: str = "hakikisha"
    debug: bool = False
    json_logs: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/hakikisha.db"

    # Anthropic Claude API
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    ai_max_tokens: int = 1024
    ai_request_timeout: float = 60.0  # per HTTP request
    ai_sdk_max_retries: int = 0  # retries inside the SDK, on top of retry_max_attempts
    ai_retry_initial_delay: float = 2.0
    fact_check_prompt_version: str = "latest"
    ai_disclaimer: str = (
        "This is an AI-generated response. Please verify with fact-checkers."
    )

    # Routing thresholds
    ai_confidence_threshold: float = 0.7  # below → mandatory human review
    similarity_threshold: float = 0.8
    similarity_hash_length: int = 64
    similarity_scan_limit: int = 500  # candidate claims compared per submission

    # Trending
    trending_submission_threshold: int = 10
    trending_decay_hours: float = 168.0  # one-week window
    engagement_per_submission: float = 5.0
    engagement_cap: float = 100.0

    # Review
    min_explanation_length: int = 20
    min_evidence_sources: int = 1
    review_session_ttl_minutes: int = 120

    # Concurrency
    claim_lock_ttl_seconds: int = 300  # must outlast the slowest model call
    job_lease_seconds: int = 360
    job_max_attempts: int = 5
    job_retry_initial_delay: float = 5.0
    job_retry_max_delay: float = 600.0
    worker_poll_interval: float = 2.0
    maintenance_interval_seconds: float = 300.0

    # External collaborators (empty URL disables the channel)
    email_service_url: str = ""
    push_service_url: str = ""
    content_service_url: str = ""
    collaborator_api_key: str = ""
    http_timeout: float = 10.0
    retry_max_attempts: int = 3

    # Notifications
    notification_batch_size: int = 100

    @property
    def ai_call_budget_seconds(self) -> float:
        """Longest a single fact-check call can take, retries and backoff included."""
        per_attempt = (
            (1 + self.ai_sdk_max_retries) * self.ai_request_timeout
            + self.ai_sdk_max_retries * SDK_MAX_RETRY_DELAY
        )
        # jitter stretches each backoff sleep by up to 1.5x
        sleeps = sum(
            1.5 * backoff_delay(attempt, initial_delay=self.ai_retry_initial_delay)
            for attempt in range(1, self.retry_max_attempts)
        )
        return self.retry_max_attempts * per_attempt + sleeps

    @model_validator(mode="after")
    def check_lock_outlasts_model_call(self) -> "Settings":
        if self.ai_call_budget_seconds >= self.claim_lock_ttl_seconds:
            raise ValueError(
                f"claim_lock_ttl_seconds ({self.claim_lock_ttl_seconds}) must exceed the worst-case "
                f"model call ({self.ai_call_budget_seconds:.0f}s); lower ai_request_timeout or retries"
            )
        if self.job_lease_seconds < self.claim_lock_ttl_seconds:
            raise ValueError("job_lease_seconds must be at least claim_lock_ttl_seconds")
        return self

    model_config = {
        "env_file": _env_file,
        "env_file_encoding": "utf-8",
        "env_file_ignore_empty": True,
    }
