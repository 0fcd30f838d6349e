"""Logging and observability configuration using Pydantic Logfire.

This module provides standardized logging utilities and configuration.
All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_subscriber_context(logger, "info", "Message", subscriber="sk_abc123", tier="today")
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import mask_key, settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="taskhook",
        service_version="0.1.0",
        environment="production",
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str, **attributes: object) -> logfire.LogfireSpan:
    """Create a custom span around a unit of work.

    Usage:
        with span("watcher.poll", tier="today"):
            ...
    """
    return logfire.span(name, **attributes)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (tier, task_id, event, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_subscriber_context(
    logger: logging.Logger,
    level: str,
    message: str,
    subscriber: str | None = None,
    **extra: object,
) -> None:
    """Log a message with the (masked) subscriber key attached.

    Usage:
        log_with_subscriber_context(logger, "info", "Baseline stored", subscriber=key, tier="today")
    """
    context = {"subscriber": mask_key(subscriber), **extra} if subscriber else extra
    log_with_context(logger, level, message, **context)
