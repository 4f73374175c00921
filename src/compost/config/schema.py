"""Pydantic models for configuration schema."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITLAB_SERVER_URL = "https://gitlab.com"


class GitHubConfig(BaseModel):
    """GitHub-specific configuration."""

    api_url: str = DEFAULT_GITHUB_API_URL
    token: str = ""
    request_timeout: float = Field(30.0, gt=0, description="Timeout for one HTTP request in seconds")

    @field_validator("api_url", mode="before")
    @classmethod
    def default_api_url(cls, v: str | None) -> str:
        """Fall back to github.com when the URL is empty."""
        return (v or DEFAULT_GITHUB_API_URL).rstrip("/")

    @property
    def graphql_url(self) -> str:
        """Return the GraphQL endpoint for the API URL.

        GitHub Enterprise serves REST under /api/v3 and GraphQL under /api/graphql.
        """
        if self.api_url.endswith("/v3"):
            return f"{self.api_url[:-3]}/graphql"
        return f"{self.api_url}/graphql"


class GitLabConfig(BaseModel):
    """GitLab-specific configuration."""

    server_url: str = DEFAULT_GITLAB_SERVER_URL
    token: str = ""
    request_timeout: float = Field(30.0, gt=0, description="Timeout for one HTTP request in seconds")

    @field_validator("server_url", mode="before")
    @classmethod
    def default_server_url(cls, v: str | None) -> str:
        """Fall back to gitlab.com when the URL is empty."""
        return (v or DEFAULT_GITLAB_SERVER_URL).rstrip("/")

    @property
    def api_url(self) -> str:
        """Return the REST API root."""
        return f"{self.server_url}/api/v4"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "console"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: str) -> str:
        """Accept lower case level names."""
        return v.upper() if isinstance(v, str) else v


class CompostConfig(BaseSettings):
    """Root configuration for compost.

    Values come from COMPOST_* environment variables, e.g. COMPOST_TAG or
    COMPOST_LOGGING__LEVEL, unless an optional config file sets them.
    """

    tag: str = ""
    timeout: float | None = Field(None, gt=0, description="Deadline for one command in seconds")
    logging: LoggingConfig = LoggingConfig()
    github: GitHubConfig = GitHubConfig()
    gitlab: GitLabConfig = GitLabConfig()

    model_config = SettingsConfigDict(
        env_prefix="COMPOST_",
        env_nested_delimiter="__",
    )
