"""Ordered chain of CI environment detectors.

Detectors are tried in registration order. A DetectError means the detector
does not apply and the next one is tried; any other exception stops the
chain. The first detector that succeeds wins.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from compost.utils.errors import DetectError, EnvironmentNotDetectedError

if TYPE_CHECKING:
    from compost.interfaces.detector import Detector
    from compost.models.detect import DetectOptions, DetectResult

log = structlog.get_logger()


@dataclass(frozen=True)
class _DetectorEntry:
    supported_platforms: frozenset[str]
    detector: Detector


class DetectorRegistry:
    """Registration-ordered list of detectors.

    Example:
        registry = DetectorRegistry()
        registry.register(GitHubActionsDetector(), ["github"])
        registry.register(GitLabCIDetector(), ["gitlab"])
        registry.freeze()

        result = await registry.detect_environment(DetectOptions(platform="gitlab"))
    """

    def __init__(self) -> None:
        self._entries: list[_DetectorEntry] = []
        self._frozen = False

    def register(self, detector: Detector, supported_platforms: Iterable[str]) -> None:
        """Append a detector for the given platforms.

        Raises:
            RuntimeError: If the registry has been frozen.
        """
        if self._frozen:
            raise RuntimeError("Detector registry is frozen")

        self._entries.append(_DetectorEntry(frozenset(supported_platforms), detector))

    def freeze(self) -> None:
        """Disallow any further registration."""
        self._frozen = True

    @property
    def detectors(self) -> list[Detector]:
        """Return the registered detectors in order."""
        return [entry.detector for entry in self._entries]

    async def detect_environment(self, options: DetectOptions) -> DetectResult:
        """Return the result of the first detector that recognises the environment.

        Args:
            options: Platform and target type filters

        Returns:
            The first successful detection result

        Raises:
            EnvironmentNotDetectedError: If no detector applies
            Exception: Any non-DetectError raised by a detector, unchanged
        """
        for entry in self._entries:
            if options.platform and options.platform not in entry.supported_platforms:
                continue

            detector = entry.detector
            name = detector.display_name()

            log.debug("checking_environment", detector=name)

            try:
                result = await detector.detect(options)
            except DetectError as e:
                log.debug("environment_not_detected", detector=name, reason=str(e))
                continue

            log.info(
                "environment_detected",
                detector=name,
                platform=result.platform,
                target_type=result.target_type,
                target_ref=result.target_ref,
            )
            return result

        raise EnvironmentNotDetectedError("Could not detect environment")
