"""
Centralized logging configuration for the hubode core service.

This module sets up structured logging with:
- Environment-based configuration (dev vs production)
- JSON formatting for production, pretty console for development
- Redaction of OTP codes, session secrets and payment signatures
- Sentry integration for error tracking

Logging must work before AppSettings exists (import-time failures in the
app factory still need a logger), so this module reads the environment
directly instead of taking LoggingSettings.
"""

import logging
import os
import sys
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, Processor


# Environment configuration
ENV = os.getenv("ENV", "development")
IS_PRODUCTION = ENV == "production"

# Log level configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if IS_PRODUCTION else "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if IS_PRODUCTION else "console")

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "password",
    "token",
    "api_key",
    "authorization",
    "cookie",
    "secret",
    "session_secret",
    "signature",
    "code",
    "otp",
    "otp_code",
    "key_secret",
}

# Substrings that mark a key as sensitive wherever they appear
_SENSITIVE_FRAGMENTS = ("password", "token", "secret", "signature", "otp")

# Structural keys that must never be masked
_PASSTHROUGH_KEYS = {"level", "event", "timestamp", "logger", "error_code"}


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _PASSTHROUGH_KEYS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            fragment in lowered for fragment in _SENSITIVE_FRAGMENTS
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def filter_exceptions(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Format exceptions properly for logging."""
    exc_info = event_dict.pop("exc_info", None)
    if exc_info:
        event_dict["exception"] = structlog.processors.format_exc_info(
            logger, method_name, {"exc_info": exc_info}
        )["exception"]
    return event_dict


def configure_structlog(log_format: str = LOG_FORMAT) -> None:
    """
    Configure structlog with appropriate processors for the environment.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        filter_exceptions,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors
        + [structlog.processors.format_exc_info, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = LOG_LEVEL) -> None:
    """
    Configure standard library logging to work with structlog.

    Sets up:
    - Log level from environment
    - Console handler for stdout
    - Quieter third-party loggers
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("pymongo.connection").setLevel(logging.WARNING)
    logging.getLogger("pymongo.serverSelection").setLevel(logging.WARNING)
    logging.getLogger("pymongo.topology").setLevel(logging.WARNING)


def setup_logging() -> None:
    """
    Initialize logging system for the application.

    This is the main entry point for logging configuration and runs once
    on import of shared.logging.
    """
    configure_stdlib_logging()
    configure_structlog()

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_initialized",
        env=ENV,
        log_level=LOG_LEVEL,
        log_format=LOG_FORMAT,
        sentry_enabled=bool(os.getenv("SENTRY_DSN")),
    )


# Initialize logging when module is imported
setup_logging()
