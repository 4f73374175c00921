"""Configuration loading and validation."""

from .loader import load_config
from .schema import CompostConfig, GitHubConfig, GitLabConfig, LoggingConfig

__all__ = [
    # Loader
    "load_config",
    # Root config
    "CompostConfig",
    # Platform configs
    "GitHubConfig",
    "GitLabConfig",
    "LoggingConfig",
]
