"""Concrete platform handlers and the production registries."""

from __future__ import annotations

from collections.abc import Mapping

from ..core.detect import DetectorRegistry
from ..core.registry import PlatformHandlerRegistry
from ..detectors import GitHubActionsDetector, GitLabCIDetector
from ..models.detect import Platform, TargetType
from .github import (
    GitHubCommitHandler,
    GitHubPullRequestHandler,
    github_commit_handler,
    github_pull_request_handler,
)
from .gitlab import (
    GitLabCommitHandler,
    GitLabMergeRequestHandler,
    gitlab_commit_handler,
    gitlab_merge_request_handler,
)


def build_platform_registry() -> PlatformHandlerRegistry:
    """Return a frozen registry with the GitHub and GitLab handlers."""
    registry = PlatformHandlerRegistry()
    registry.register(Platform.GITHUB, TargetType.PULL_REQUEST, github_pull_request_handler)
    registry.register(Platform.GITHUB, TargetType.COMMIT, github_commit_handler)
    registry.register(Platform.GITLAB, TargetType.PULL_REQUEST, gitlab_merge_request_handler)
    registry.register(Platform.GITLAB, TargetType.COMMIT, gitlab_commit_handler)
    registry.freeze()
    return registry


def build_detector_registry(environ: Mapping[str, str] | None = None) -> DetectorRegistry:
    """Return a frozen registry with the CI detectors, GitHub Actions first."""
    registry = DetectorRegistry()
    registry.register(GitHubActionsDetector(environ), [Platform.GITHUB])
    registry.register(GitLabCIDetector(environ), [Platform.GITLAB])
    registry.freeze()
    return registry


__all__ = [
    "GitHubCommitHandler",
    "GitHubPullRequestHandler",
    "GitLabCommitHandler",
    "GitLabMergeRequestHandler",
    "build_detector_registry",
    "build_platform_registry",
]
