"""Registry mapping (platform, target type) pairs to platform handler factories.

The registry is built once in the entry point, frozen, and then only read.
Tests build their own registries with fake factories.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from compost.utils.errors import UnsupportedPlatformError

if TYPE_CHECKING:
    from compost.interfaces.comment import PlatformHandler

log = structlog.get_logger()

# (project, target_ref, extra) -> PlatformHandler
PlatformHandlerFactory = Callable[[str, str, Any], "PlatformHandler"]


class PlatformHandlerRegistry:
    """Lookup table of platform handler factories.

    Example:
        registry = PlatformHandlerRegistry()
        registry.register("github", "pull-request", github_pull_request_handler)
        registry.freeze()

        handler = registry.create_handler("github", "pull-request", "owner/repo", "3", extra)
    """

    def __init__(self) -> None:
        self._factories: dict[tuple[str, str], PlatformHandlerFactory] = {}
        self._frozen = False

    def register(self, platform: str, target_type: str, factory: PlatformHandlerFactory) -> None:
        """Register the factory for a platform and target type.

        Raises:
            RuntimeError: If the registry has been frozen.
            ValueError: If the pair is already registered.
        """
        if self._frozen:
            raise RuntimeError("Platform handler registry is frozen")

        key = (platform, target_type)
        if key in self._factories:
            raise ValueError(f"{platform} ({target_type}) is already registered")

        self._factories[key] = factory

    def freeze(self) -> None:
        """Disallow any further registration."""
        self._frozen = True

    @property
    def supported(self) -> list[tuple[str, str]]:
        """Return the registered (platform, target type) pairs."""
        return list(self._factories)

    def get_factory(self, platform: str, target_type: str) -> PlatformHandlerFactory:
        """Return the factory for a platform and target type.

        Raises:
            UnsupportedPlatformError: If nothing is registered for the pair.
        """
        try:
            return self._factories[(platform, target_type)]
        except KeyError:
            raise UnsupportedPlatformError(platform, target_type) from None

    def create_handler(
        self,
        platform: str,
        target_type: str,
        project: str,
        target_ref: str,
        extra: Any = None,
    ) -> PlatformHandler:
        """Look up the factory for the pair and build a platform handler."""
        factory = self.get_factory(platform, target_type)

        log.debug(
            "creating_platform_handler",
            platform=platform,
            target_type=target_type,
            project=project,
            target_ref=target_ref,
        )
        return factory(project, target_ref, extra)
