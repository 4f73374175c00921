"""Environment variable probing shared by the CI detectors."""

from __future__ import annotations

import os
from collections.abc import Mapping

import structlog

from compost.utils.errors import DetectError
from compost.utils.security import mask_value

log = structlog.get_logger()


class EnvReader:
    """Reads CI variables from an environment mapping.

    Missing or unexpected values raise DetectError, which tells the detector
    chain to try the next detector.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def get(self, name: str) -> str:
        """Return the variable, or an empty string when unset."""
        return self._environ.get(name, "")

    def require(self, name: str, is_secret: bool = False) -> str:
        """Return the variable, raising DetectError when unset or empty."""
        value = self.get(name)
        if not value:
            raise DetectError(f"{name} environment variable is not set")

        log.debug("env_var_set", name=name, value=mask_value(value, is_secret))
        return value

    def require_value(self, name: str, expected: str, is_secret: bool = False) -> None:
        """Raise DetectError unless the variable equals ``expected``."""
        value = self.require(name, is_secret)
        if value != expected:
            raise DetectError(
                f"{name} environment variable is set to "
                f"{mask_value(value, is_secret)}, expected {expected}"
            )
