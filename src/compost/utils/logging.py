"""Structured logging configuration with secret sanitization.

compost writes its progress to stderr so that stdout stays free for
command output (the body printed by ``latest``). Two formats are supported:
- console: colored, human readable, the default for interactive and CI use
- json: one JSON object per line for log aggregation

Every event passes through a sanitizer that redacts platform tokens.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from typing import Any, cast

import structlog
from structlog.typing import WrappedLogger

from compost.utils.security import SecretRedactor


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


_redactor: SecretRedactor | None = None


def _get_redactor() -> SecretRedactor:
    """Return the redactor shared by every log event."""
    global _redactor
    if _redactor is None:
        _redactor = SecretRedactor(placeholder="[REDACTED]")
    return _redactor


def sanitize_log_value(value: Any) -> Any:
    """Redact platform tokens from a log value.

    Strings are redacted, dicts, lists and tuples are walked, and anything
    else is returned unchanged.
    """
    redactor = _get_redactor()

    if isinstance(value, str):
        return redactor.redact(value)
    elif isinstance(value, dict):
        return {k: sanitize_log_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(v) for v in value)
    else:
        return value


def secret_sanitizer(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor to sanitize secrets from log entries."""
    result = sanitize_log_value(event_dict)
    return cast(MutableMapping[str, Any], result)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.CONSOLE,
) -> None:
    """Route structlog through a stderr handler at the given level.

    Safe to call more than once: the CLI configures logging from its flags
    first and again once the config file has been loaded.

    Raises:
        ValueError: If the level or format is unknown
    """
    if isinstance(level, str):
        level = LogLevel(level.upper())
    if isinstance(log_format, str):
        log_format = LogFormat(log_format.lower())

    numeric_level = getattr(logging, level.value)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        secret_sanitizer,  # Always sanitize secrets
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == LogFormat.JSON:
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(), exception_formatter=structlog.dev.plain_traceback
            )
        )

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=[console_handler],
        force=True,
    )


def get_logger(name: str | None = None) -> WrappedLogger:
    """Get a structured logger instance."""
    return cast(WrappedLogger, structlog.get_logger(name))


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables for all subsequent log calls.

    Example:
        bind_context(platform="github", project="owner/repo")
        log.info("comment_created")  # Includes platform and project
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()
