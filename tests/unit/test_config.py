"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from compost.config.loader import load_config, substitute_env_vars
from compost.config.schema import (
    DEFAULT_GITHUB_API_URL,
    DEFAULT_GITLAB_SERVER_URL,
    CompostConfig,
    GitHubConfig,
    GitLabConfig,
    LoggingConfig,
)
from compost.utils.errors import InputValidationError


class TestSubstituteEnvVars:
    """Test environment variable substitution."""

    def test_substitute_single_var(self, monkeypatch):
        """Test substituting a single environment variable."""
        monkeypatch.setenv("TEST_VAR", "test_value")
        assert substitute_env_vars("Value is ${TEST_VAR}") == "Value is test_value"

    def test_substitute_multiple_vars(self, monkeypatch):
        """Test substituting multiple environment variables."""
        monkeypatch.setenv("VAR1", "value1")
        monkeypatch.setenv("VAR2", "value2")
        assert substitute_env_vars("${VAR1} and ${VAR2}") == "value1 and value2"

    def test_missing_env_var_raises(self, monkeypatch):
        """Test that missing environment variables raise ValueError."""
        monkeypatch.delenv("MISSING", raising=False)
        with pytest.raises(ValueError, match="Environment variable MISSING not found"):
            substitute_env_vars("Value is ${MISSING}")

    def test_no_substitution_needed(self):
        """Test text without environment variables passes through unchanged."""
        assert substitute_env_vars("plain text without vars") == "plain text without vars"


class TestGitHubConfig:
    """Test GitHubConfig validation."""

    def test_defaults(self):
        """Test the github.com defaults."""
        config = GitHubConfig()
        assert config.api_url == DEFAULT_GITHUB_API_URL
        assert config.graphql_url == "https://api.github.com/graphql"
        assert config.request_timeout == 30.0

    def test_empty_url_uses_default(self):
        """Test that an empty API URL falls back to github.com."""
        assert GitHubConfig(api_url="").api_url == DEFAULT_GITHUB_API_URL

    def test_enterprise_graphql_url(self):
        """Test that GitHub Enterprise GraphQL lives beside /v3."""
        config = GitHubConfig(api_url="https://ghe.example.com/api/v3/")
        assert config.api_url == "https://ghe.example.com/api/v3"
        assert config.graphql_url == "https://ghe.example.com/api/graphql"

    def test_invalid_request_timeout(self):
        """Test that a non-positive request timeout is rejected."""
        with pytest.raises(ValidationError):
            GitHubConfig(request_timeout=0)


class TestGitLabConfig:
    """Test GitLabConfig validation."""

    def test_defaults(self):
        """Test the gitlab.com defaults."""
        config = GitLabConfig()
        assert config.server_url == DEFAULT_GITLAB_SERVER_URL
        assert config.api_url == "https://gitlab.com/api/v4"

    def test_trailing_slash_stripped(self):
        """Test that the server URL is normalized."""
        assert GitLabConfig(server_url="https://gitlab.example.com/").server_url == (
            "https://gitlab.example.com"
        )


class TestLoggingConfig:
    """Test LoggingConfig validation."""

    def test_lower_case_level(self):
        """Test that lower case levels are accepted."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        """Test that unknown levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="verbose")

    def test_invalid_format(self):
        """Test that unknown formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")


class TestCompostConfig:
    """Test the root settings."""

    def test_defaults(self, clean_env):
        """Test the defaults without environment or file."""
        config = CompostConfig()
        assert config.tag == ""
        assert config.timeout is None
        assert config.logging.level == "INFO"

    def test_environment_variables(self, clean_env):
        """Test that COMPOST_ variables are read."""
        clean_env.setenv("COMPOST_TAG", "infracost")
        clean_env.setenv("COMPOST_TIMEOUT", "60")
        clean_env.setenv("COMPOST_LOGGING__LEVEL", "debug")
        clean_env.setenv("COMPOST_GITLAB__SERVER_URL", "https://gitlab.example.com")

        config = CompostConfig()

        assert config.tag == "infracost"
        assert config.timeout == 60.0
        assert config.logging.level == "DEBUG"
        assert config.gitlab.server_url == "https://gitlab.example.com"

    def test_invalid_timeout(self, clean_env):
        """Test that a non-positive deadline is rejected."""
        with pytest.raises(ValidationError):
            CompostConfig(timeout=0)


class TestLoadConfig:
    """Test loading the YAML config file."""

    def test_without_path(self, clean_env):
        """Test that no path gives environment and defaults only."""
        clean_env.setenv("COMPOST_TAG", "from-env")
        assert load_config(None).tag == "from-env"

    def test_load_file(self, clean_env, tmp_path: Path):
        """Test loading a complete file."""
        path = tmp_path / "compost.yaml"
        path.write_text(
            "tag: my-tag\n"
            "timeout: 30\n"
            "logging:\n"
            "  level: warning\n"
            "  format: json\n"
            "github:\n"
            "  api_url: https://ghe.example.com/api/v3\n"
        )

        config = load_config(path)

        assert config.tag == "my-tag"
        assert config.timeout == 30.0
        assert config.logging.level == "WARNING"
        assert config.logging.format == "json"
        assert config.github.api_url == "https://ghe.example.com/api/v3"

    def test_file_substitutes_env_vars(self, clean_env, tmp_path: Path):
        """Test that ${VAR} references are resolved."""
        clean_env.setenv("MY_GITLAB_TOKEN", "glpat-from-env")
        path = tmp_path / "compost.yaml"
        path.write_text("gitlab:\n  token: ${MY_GITLAB_TOKEN}\n")

        assert load_config(path).gitlab.token == "glpat-from-env"

    def test_file_overrides_environment(self, clean_env, tmp_path: Path):
        """Test that file values take precedence over COMPOST_ variables."""
        clean_env.setenv("COMPOST_TAG", "from-env")
        path = tmp_path / "compost.yaml"
        path.write_text("tag: from-file\n")

        assert load_config(path).tag == "from-file"

    def test_empty_file(self, clean_env, tmp_path: Path):
        """Test that an empty file gives the defaults."""
        path = tmp_path / "compost.yaml"
        path.write_text("")

        assert load_config(path).tag == ""

    def test_missing_file(self, tmp_path: Path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path: Path):
        """Test that a non-mapping document is rejected."""
        path = tmp_path / "compost.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path: Path):
        """Test that malformed YAML is an input error."""
        path = tmp_path / "compost.yaml"
        path.write_text("tag: [unclosed\n")

        with pytest.raises(InputValidationError, match="Invalid YAML"):
            load_config(path)

    def test_directory_path(self, tmp_path: Path):
        """Test that a directory passed as the config file is an input error."""
        with pytest.raises(InputValidationError, match="Failed to read configuration file"):
            load_config(tmp_path)

    def test_invalid_value(self, clean_env, tmp_path: Path):
        """Test that invalid values fail validation."""
        path = tmp_path / "compost.yaml"
        path.write_text("logging:\n  format: xml\n")

        with pytest.raises(ValidationError):
            load_config(path)
