"""Observability setup for taskquest using Pydantic Logfire.

Modules log through the standard library (`logging.getLogger(__name__)`) with
structured `extra={...}` fields. `configure_logfire()` attaches a
`LogfireLoggingHandler` to the root logger so those records travel with the
request spans; without a token nothing leaves the process.

Service functions open a span per operation:

    with span("task_service.toggle_task"):
        ...

Events that carry several context fields use `log_with_context`:

    log_with_context(logger, "info", "Badge unlocked", badge_id="streak-3")
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import settings


SERVICE_NAME = "taskquest"
SERVICE_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def configure_logfire() -> None:
    """Configure Logfire and route standard logging records through it.

    In production a Logfire token is mandatory; elsewhere records are only
    shipped when a token happens to be configured.

    Raises:
        ValueError: If running in production without LOGFIRE_TOKEN
    """
    token = settings.require_credential("logfire_token", "Logfire") if settings.is_production else settings.logfire_token

    logfire.configure(
        token=token,
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    if not any(isinstance(handler, logfire.LogfireLoggingHandler) for handler in root.handlers):
        root.addHandler(logfire.LogfireLoggingHandler())

    logger.info("Logfire configured", extra={"environment": settings.environment, "level": settings.log_level})


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by the app."""
    logfire.instrument_fastapi(app)
    logger.debug("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Open a Logfire span named after the service operation."""
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level name ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Context fields attached to the record (task_id, badge_id, version, ...)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)
