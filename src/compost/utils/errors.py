"""Exception hierarchy for compost.

The hierarchy separates the failure classes callers react to differently:
- DetectError: a detector does not apply here, the chain moves on
- DetectorConfigError: a detector applies but is misconfigured, the chain stops
- UnsupportedPlatformError: no handler for a platform/target type pair
- HideNotSupportedError: the platform cannot hide comments
- PlatformAPIError: a platform API call failed
- InputValidationError: bad user input, raised before any network activity
"""

from __future__ import annotations


class CompostError(Exception):
    """Base exception for all compost errors."""


class DetectError(CompostError):
    """The current detector does not apply to this environment."""


class EnvironmentNotDetectedError(DetectError):
    """No registered detector recognised the environment."""


class DetectorConfigError(CompostError):
    """A detector applies but its environment is incomplete or invalid."""


class UnsupportedPlatformError(CompostError):
    """No platform handler is registered for a platform and target type.

    Attributes:
        platform: The requested platform.
        target_type: The requested target type.
    """

    def __init__(self, platform: str, target_type: str) -> None:
        super().__init__(f"{platform} ({target_type}) is not supported")
        self.platform = platform
        self.target_type = target_type


class HideNotSupportedError(CompostError, NotImplementedError):
    """The platform has no way to hide or minimize comments."""


class PlatformAPIError(CompostError):
    """A platform API request failed.

    Attributes:
        status_code: HTTP status code of the failed response, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InputValidationError(CompostError):
    """User supplied input is invalid."""


class OperationTimeoutError(CompostError):
    """An operation did not finish before its deadline."""
