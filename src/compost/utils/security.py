"""Security utilities for token redaction and input validation.

Tokens for GitHub and GitLab flow through detector results, CLI flags and
HTTP headers. Everything that reaches a log line passes through
SecretRedactor first, and redaction fails closed.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()


class SecurityError(Exception):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """Raised when secret redaction fails."""


# GitHub "owner/repo" and GitLab "group/subgroup/project" paths
PROJECT_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+(/[a-zA-Z0-9_.-]+)+$")

MASK = "************"


class SecretRedactor:
    """Detects and redacts platform tokens from text.

    Usage:
        redactor = SecretRedactor()
        safe_text = redactor.redact(potentially_sensitive_text)

    Attributes:
        placeholder: The string to replace secrets with (default: "[REDACTED]").
    """

    DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
        (
            r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
            "Generic secret",
        ),
        # GitHub
        (r"ghp_[a-zA-Z0-9]{36}", "GitHub PAT"),
        (r"github_pat_[a-zA-Z0-9_]{22,}", "GitHub fine-grained PAT"),
        (r"gho_[a-zA-Z0-9]{36}", "GitHub OAuth token"),
        (r"ghu_[a-zA-Z0-9]{36}", "GitHub user-to-server token"),
        (r"ghs_[a-zA-Z0-9]{36}", "GitHub server-to-server token"),
        (r"ghr_[a-zA-Z0-9]{36}", "GitHub refresh token"),
        # GitLab
        (r"glpat-[\w-]{20,}", "GitLab PAT"),
        (r"gldt-[\w-]{20,}", "GitLab deploy token"),
        (r"glcbt-[\w-]{20,}", "GitLab CI job token"),
        # Authorization headers
        (r"(?i)(bearer|token)\s+[\w.-]{20,}", "Authorization header"),
    )

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize the SecretRedactor.

        Args:
            placeholder: String to replace detected secrets with.
            custom_patterns: Additional (pattern, name) tuples to detect.

        Raises:
            RedactionError: If any pattern fails to compile.
        """
        self.placeholder = placeholder
        self._pattern_names: dict[re.Pattern[str], str] = {}

        all_patterns = list(self.DEFAULT_PATTERNS)
        if custom_patterns:
            all_patterns.extend(custom_patterns)

        try:
            for pattern_str, name in all_patterns:
                compiled = re.compile(pattern_str)
                self._pattern_names[compiled] = name
        except re.error as e:
            msg = f"Failed to compile secret pattern '{pattern_str}': {e}"
            log.error("pattern_compilation_failed", pattern=pattern_str, error=str(e))
            raise RedactionError(msg) from e

    def redact(self, text: str) -> str:
        """Redact all secrets from the given text.

        Args:
            text: The text to scan and redact secrets from.

        Returns:
            The text with all detected secrets replaced with placeholder.

        Raises:
            RedactionError: If redaction fails for any reason.
        """
        if not text:
            return text

        try:
            result = text
            for pattern in self._pattern_names:
                result = pattern.sub(self.placeholder, result)
            return result
        except Exception as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e

    def has_secrets(self, text: str) -> bool:
        """Check if text contains any secrets."""
        if not text:
            return False

        try:
            return any(pattern.search(text) for pattern in self._pattern_names)
        except Exception as e:
            log.error("has_secrets_check_failed", error=str(e))
            raise RedactionError(f"Secret check failed: {e}") from e


def validate_project_path(project: str) -> bool:
    """Validate a GitHub "owner/repo" or GitLab "group/project" path.

    Args:
        project: The project path to validate.

    Returns:
        True if the path is valid, False otherwise.
    """
    if not project:
        return False

    return bool(PROJECT_PATH_PATTERN.match(project))


def mask_value(value: str, is_secret: bool) -> str:
    """Return a loggable form of an environment or config value."""
    if is_secret:
        return MASK

    return value
