"""Structured logging configuration using structlog.

JSON output for production log aggregation, a coloured console renderer for
development. Entry points (worker script, facade) log structured events;
library modules keep plain ``logging.getLogger(__name__)`` loggers, which
structlog's stdlib integration formats the same way.

Usage::

    from hakikisha.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("claim_submitted", claim_id=42, category="health")
    # Output: {"event": "claim_submitted", "claim_id": 42, "category": "health", ...}
"""

import logging
import sys
from typing import Any

import structlog


def setup_logging(json_logs: bool = False, log_level: str = "INFO") -> None:
    """Configure structured logging for the application.

    Args:
        json_logs: If True, output JSON format. If False, use human-readable format.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    common_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=common_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_claim_context(**values: Any) -> None:
    """Attach values (claim_id, job_id, worker…) to every log line in this context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_claim_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name, typically __name__ of the module.

    Returns:
        Structured logger instance with bound context.
    """
    return structlog.get_logger(name)
