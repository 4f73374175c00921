"""GitLab CI environment detector."""

from __future__ import annotations

from collections.abc import Mapping

from compost.config.schema import GitLabConfig
from compost.detectors.env import EnvReader
from compost.models.detect import DetectOptions, DetectResult, Platform, TargetType
from compost.utils.errors import DetectorConfigError


class GitLabCIDetector:
    """Detects a GitLab CI job.

    In a merge request pipeline the target is the merge request IID,
    otherwise it is the commit SHA.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._env = EnvReader(environ)

    def display_name(self) -> str:
        return "GitLab CI"

    async def detect(self, options: DetectOptions) -> DetectResult:
        self._env.require_value("GITLAB_CI", "true")
        token = self._env.require("GITLAB_TOKEN", is_secret=True)
        project = self._env.require("CI_PROJECT_PATH")
        server_url = self._env.get("CI_SERVER_URL")

        target_type = ""
        target_ref = ""

        if options.target_type in ("", TargetType.PULL_REQUEST):
            target_ref = self._env.get("CI_MERGE_REQUEST_IID")
            if target_ref:
                target_type = TargetType.PULL_REQUEST

        if not target_ref and options.target_type in ("", TargetType.COMMIT):
            target_type = TargetType.COMMIT
            target_ref = self._env.get("CI_COMMIT_SHA")

        if not target_ref:
            raise DetectorConfigError(
                f"Could not determine the {options.target_type or 'target'} ref "
                "from the GitLab CI environment"
            )

        return DetectResult(
            platform=Platform.GITLAB,
            project=project,
            target_type=target_type,
            target_ref=target_ref,
            extra=GitLabConfig(server_url=server_url, token=token),
        )
