"""Retry utilities with exponential backoff and jitter.

Two consumers share the same backoff curve:

* ``with_retry`` wraps synchronous calls to flaky collaborators (the LLM,
  notification webhooks, the content service).
* ``backoff_delay`` is used by the job queue to schedule re-queued jobs.

Usage:
    @with_retry(max_attempts=3, retry_on=(anthropic.APIConnectionError,))
    def call_model():
        return client.messages.create(...)
"""

import logging
import random
import time
from functools import wraps
from typing import Callable, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = False,
) -> float:
    """Delay before retry number ``attempt`` (1-based).

    Examples:
        >>> backoff_delay(1, initial_delay=2.0)
        2.0
        >>> backoff_delay(3, initial_delay=2.0)
        8.0
        >>> backoff_delay(10, initial_delay=2.0, max_delay=30.0)
        30.0
    """
    attempt = max(attempt, 1)
    delay = min(initial_delay * (exponential_base ** (attempt - 1)), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


def with_retry(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retry_on: Tuple[Type[Exception], ...] = (Exception,),
    reraise_on: Tuple[Type[Exception], ...] = (),
):
    """Retry decorator with exponential backoff and jitter.

    Args:
        max_attempts: Maximum number of attempts (including first try)
        initial_delay: Starting delay in seconds (doubled each retry)
        max_delay: Cap on delay duration
        exponential_base: Multiplier for each retry (typically 2.0)
        jitter: Add randomness so workers do not retry in lockstep
        retry_on: Exception types that trigger retry
        reraise_on: Exception types that abort immediately (no retry)

    Returns:
        Decorated function that retries on failure

    Example:
        >>> @with_retry(
        ...     max_attempts=3,
        ...     retry_on=(httpx.TransportError,),
        ...     reraise_on=(httpx.HTTPStatusError,),
        ... )
        ... def post_advisory(payload):
        ...     return client.post("/advisories", json=payload)
    """

    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0

            while attempt < max_attempts:
                try:
                    return func(*args, **kwargs)
                except reraise_on:
                    raise
                except retry_on as exc:
                    attempt += 1

                    if attempt >= max_attempts:
                        logger.error(
                            "Max retries (%d) exceeded for %s: %s",
                            max_attempts,
                            getattr(func, "__name__", "unknown"),
                            exc,
                        )
                        raise

                    delay = backoff_delay(
                        attempt,
                        initial_delay=initial_delay,
                        max_delay=max_delay,
                        exponential_base=exponential_base,
                        jitter=jitter,
                    )
                    logger.warning(
                        "Retry %d/%d for %s after %.2fs: %s",
                        attempt,
                        max_attempts,
                        getattr(func, "__name__", "unknown"),
                        delay,
                        exc,
                    )
                    time.sleep(delay)

            func_name = getattr(func, "__name__", "unknown")
            raise RuntimeError(
                f"Retry logic error in {func_name}: "
                f"exhausted {max_attempts} attempts but no exception raised"
            )

        return wrapper

    return decorator
