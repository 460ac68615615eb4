"""Structured logging configuration for keencache.

This module provides structured logging using structlog. Logs are output as
JSON in production for log aggregators and as colored console lines in
development.

Configuration:
    Set via environment variables:
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - LOG_FORMAT: json, console (default: json in production, console in dev)
    - ENVIRONMENT: development, production (affects format default)

Usage:
    >>> from keencache.observability.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("query_completed", collection="purchases", elapsed_ms=84.2)

Standard Events:
    Query:
        - query_started: Keen IO query issued
        - query_completed: Response received, with elapsed time
        - query_failed: Transport or service failure

    Cache:
        - store_connected: Redis connection established
        - cache_hit: Result read from Redis
        - cache_miss: Key absent in Redis
        - cache_write: Result written with expiration
        - cache_write_skipped: No store configured, write was a no-op
        - cache_error: Store operation failed
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

# Module-level flag to track initialization
_configured = False


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
    is_production: bool | None = None,
) -> None:
    """Configure structured logging for the application.

    Should be called once at application startup. Safe to call multiple times
    (subsequent calls are no-ops).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Default from LOG_LEVEL env.
        log_format: Output format (json, console). Default based on environment.
        is_production: Override production detection. Default from ENVIRONMENT env.
    """
    global _configured
    if _configured:
        return

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

    if is_production is None:
        is_production = os.getenv("ENVIRONMENT", "development").lower() == "production"

    if log_format is None:
        log_format = os.getenv("LOG_FORMAT", "json" if is_production else "console")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Auto-configures logging on first call if not already configured.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.

    Returns:
        Configured structlog BoundLogger instance.
    """
    if not _configured:
        configure_logging()

    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to all subsequent log calls in this context.

    Useful for tagging every line of one query with its collection or cache key.

    Args:
        **kwargs: Context variables to bind.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


class LogEvents:
    """Standard event names for structured logging.

    Example:
        >>> logger.info(LogEvents.CACHE_HIT, key="daily:purchases")
    """

    # Query events
    QUERY_STARTED = "query_started"
    QUERY_COMPLETED = "query_completed"
    QUERY_FAILED = "query_failed"
    RESPONSE_RECEIVED = "response_received"
    RESPONSE_UNREADABLE = "response_unreadable"

    # Result events
    RESULT_DECODED = "result_decoded"
    RESULT_TRANSFORMED = "result_transformed"

    # Cache events
    STORE_CONNECTED = "store_connected"
    STORE_REPLACED = "store_replaced"
    STORE_CLOSED = "store_closed"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    CACHE_WRITE = "cache_write"
    CACHE_WRITE_SKIPPED = "cache_write_skipped"
    CACHE_ERROR = "cache_error"
