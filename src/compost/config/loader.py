"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path

import yaml

from ..utils.errors import InputValidationError
from .schema import CompostConfig


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR_NAME} patterns with environment variable values.

    Args:
        text: Text containing ${VAR_NAME} patterns

    Returns:
        Text with environment variables substituted

    Raises:
        ValueError: If a referenced environment variable is not found
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(f"Environment variable {var_name} not found")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def load_config(path: Path | None = None) -> CompostConfig:
    """
    Load configuration, optionally from a YAML file.

    Without a path the configuration comes from COMPOST_* environment
    variables and defaults only. Values in the file take precedence over
    the environment.

    Args:
        path: Path to YAML configuration file, or None

    Returns:
        Validated CompostConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        InputValidationError: If the file cannot be read or is not valid YAML
        ValueError: If environment variables are missing or config is invalid
    """
    if path is None:
        return CompostConfig()

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open() as f:
            raw_yaml = f.read()
    except OSError as e:
        raise InputValidationError(f"Failed to read configuration file {path}: {e}") from e

    yaml_with_env = substitute_env_vars(raw_yaml)

    try:
        config_dict = yaml.safe_load(yaml_with_env) or {}
    except yaml.YAMLError as e:
        raise InputValidationError(f"Invalid YAML in configuration file {path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")

    return CompostConfig(**config_dict)
