"""Utility functions and helpers.

This module provides various utilities for compost:
- errors: Exception hierarchy
- security: Token redaction, input validation
- async_helpers: Transport retry policy, timeouts
- logging: Structured logging with secret sanitization
"""

from compost.utils.errors import (
    CompostError,
    DetectError,
    DetectorConfigError,
    EnvironmentNotDetectedError,
    HideNotSupportedError,
    InputValidationError,
    OperationTimeoutError,
    PlatformAPIError,
    UnsupportedPlatformError,
)
from compost.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from compost.utils.security import RedactionError, SecretRedactor, SecurityError

__all__ = [
    # Errors
    "CompostError",
    "DetectError",
    "DetectorConfigError",
    "EnvironmentNotDetectedError",
    "HideNotSupportedError",
    "InputValidationError",
    "OperationTimeoutError",
    "PlatformAPIError",
    "UnsupportedPlatformError",
    # Logging
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
]
