"""CI environment detectors."""

from .github_actions import GitHubActionsDetector
from .gitlab_ci import GitLabCIDetector

__all__ = ["GitHubActionsDetector", "GitLabCIDetector"]
