"""GitHub Actions environment detector."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from compost.config.schema import GitHubConfig
from compost.detectors.env import EnvReader
from compost.models.detect import DetectOptions, DetectResult, Platform, TargetType
from compost.utils.errors import DetectorConfigError

log = structlog.get_logger()


class GitHubActionsDetector:
    """Detects a GitHub Actions job.

    In the context of a pull request the target is the pull request number,
    otherwise it is the commit SHA. The pull request number and head SHA are
    read from the event payload at GITHUB_EVENT_PATH.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._env = EnvReader(environ)

    def display_name(self) -> str:
        return "GitHub Actions"

    def _load_event(self) -> dict[str, Any]:
        """Load the workflow event payload, or an empty dict without one."""
        event_path = self._env.get("GITHUB_EVENT_PATH")
        if not event_path:
            return {}

        try:
            event = json.loads(Path(event_path).read_text())
        except OSError as e:
            raise DetectorConfigError(f"Could not read GitHub event file {event_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise DetectorConfigError(f"Could not parse GitHub event file {event_path}: {e}") from e

        if not isinstance(event, dict):
            raise DetectorConfigError(f"GitHub event file {event_path} does not contain an object")
        return event

    def _event_object(self, parent: dict[str, Any], key: str) -> dict[str, Any]:
        """Return a nested event object, or an empty dict when it is absent."""
        value = parent.get(key) or {}
        if not isinstance(value, dict):
            raise DetectorConfigError(f"GitHub event field {key} is not an object")
        return value

    async def detect(self, options: DetectOptions) -> DetectResult:
        self._env.require_value("GITHUB_ACTIONS", "true")
        token = self._env.require("GITHUB_TOKEN", is_secret=True)
        project = self._env.require("GITHUB_REPOSITORY")
        api_url = self._env.get("GITHUB_API_URL")

        pull_request = self._event_object(self._load_event(), "pull_request")

        target_type = ""
        target_ref = ""

        if options.target_type in ("", TargetType.PULL_REQUEST):
            number = pull_request.get("number")
            if number:
                target_type = TargetType.PULL_REQUEST
                target_ref = str(number)

        if not target_ref and options.target_type in ("", TargetType.COMMIT):
            target_type = TargetType.COMMIT
            head = self._event_object(pull_request, "head")
            target_ref = head.get("sha") or self._env.get("GITHUB_SHA")

        if not target_ref:
            raise DetectorConfigError(
                f"Could not determine the {options.target_type or 'target'} ref "
                "from the GitHub Actions environment"
            )

        return DetectResult(
            platform=Platform.GITHUB,
            project=project,
            target_type=target_type,
            target_ref=target_ref,
            extra=GitHubConfig(api_url=api_url, token=token),
        )
