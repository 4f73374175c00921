"""Protocol for CI environment detectors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from compost.models.detect import DetectOptions, DetectResult


class Detector(Protocol):
    """Probes the current process environment for one CI system."""

    def display_name(self) -> str:
        """Name used in logs and output, e.g. "GitHub Actions"."""
        ...

    async def detect(self, options: DetectOptions) -> DetectResult:
        """
        Detect the platform, project and target from the environment.

        Args:
            options: Platform and target type filters requested by the caller

        Returns:
            The detected platform, project, target type and target ref

        Raises:
            DetectError: If this detector does not apply to the environment
            DetectorConfigError: If it applies but the environment is incomplete
        """
        ...
