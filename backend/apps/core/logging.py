"""
Structured logging configuration using structlog.

Usage:
    from apps.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("otp_sent", account_id="abc123")

Conventions:
    - Event names are snake_case verbs describing what happened.
    - account_id is the correlation key across the OTP and passkey paths.
    - trace_id is bound per request by CorrelationIdMiddleware.
    - Secrets (OTP codes, session secrets, challenges) never reach the renderer;
      _redact_secrets masks them if a call site passes one by accident.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

REDACTED = "[redacted]"

SECRET_KEYS = frozenset(
    {
        "code",
        "password",
        "secret",
        "session_token",
        "session_jwt",
        "challenge",
        "credential_public_key",
    }
)


def _redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask values of secret-bearing keys."""
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _add_trace_id(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Expose correlation_id under the trace_id name and force it to a string."""
    if "correlation_id" in event_dict:
        event_dict["trace_id"] = str(event_dict.pop("correlation_id"))
    return event_dict


def configure_logging(json_format: bool = True, log_level: str = "INFO") -> None:
    """
    Configure structlog for the application.

    Uses stdlib integration so Django's and third-party loggers share the
    same renderer.

    Args:
        json_format: If True, output JSON (production). If False, pretty console output.
        log_level: Minimum log level to output.
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_trace_id,
        _redact_secrets,
    ]

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, typically with ``__name__``."""
    return structlog.get_logger(name)


def bind_contextvars(**kwargs: Any) -> None:
    """
    Bind key-value pairs to the current request/task context.

    Values are included in every log line until clear_contextvars() runs.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_contextvars() -> None:
    """Clear all bound context variables (end of request)."""
    structlog.contextvars.clear_contextvars()
