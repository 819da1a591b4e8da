from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from leadcapture.core.config import Settings, settings as default_settings


def configure_structlog(settings: Optional[Settings] = None) -> None:
    settings = settings or default_settings
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_structlog_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_request_id(request_id: Optional[str] = None) -> None:
    """Set request ID in structlog context."""
    if request_id:
        structlog.contextvars.bind_contextvars(request_id=request_id)
    else:
        structlog.contextvars.clear_contextvars()


def get_security_logger(name: str = "security") -> structlog.stdlib.BoundLogger:
    """Logger for security events.

    Ignores ``LOG_LEVEL``: every event must reach the output, even when the
    rest of the application only logs errors.
    """
    stdlib_logger = logging.getLogger(name)
    stdlib_logger.setLevel(logging.INFO)
    return structlog.wrap_logger(
        stdlib_logger,
        wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    )
