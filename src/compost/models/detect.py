"""Data models for environment detection."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Platform(StrEnum):
    """Supported code hosting platforms."""

    GITHUB = "github"
    GITLAB = "gitlab"


class TargetType(StrEnum):
    """What a comment is posted on."""

    PULL_REQUEST = "pull-request"
    COMMIT = "commit"


@dataclass(frozen=True)
class DetectOptions:
    """Filters for environment detection. Empty strings mean no filter."""

    platform: str = ""
    target_type: str = ""


@dataclass(frozen=True)
class DetectResult:
    """A detected platform and comment target."""

    platform: str
    project: str  # "owner/repo" on GitHub, "group/project" on GitLab
    target_type: str
    target_ref: str  # pull/merge request number or commit SHA

    # Platform-specific settings, e.g. token and API URL
    extra: Any = None
