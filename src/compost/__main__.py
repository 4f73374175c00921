"""Command line entry point for compost.

This module provides the ``compost`` command. It handles:
- Argument parsing and input validation
- Logging setup with secret sanitization
- Configuration loading
- Platform handler construction, directly or through environment detection
- Running one reconciliation operation under an optional deadline

Examples:
    compost github update owner/repo pr 3 --body "my comment"
    compost gitlab delete-and-new group/project commit 2ca7182 --body-file comment.md
    compost autodetect hide-and-new --body "my new comment"
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Any

import structlog

from compost._version import __version__
from compost.config.schema import CompostConfig, GitHubConfig, GitLabConfig
from compost.core.comment_handler import CommentHandler
from compost.core.detect import DetectorRegistry
from compost.core.registry import PlatformHandlerRegistry
from compost.models.detect import DetectOptions, Platform, TargetType
from compost.utils.errors import CompostError, InputValidationError
from compost.utils.logging import bind_context, clear_context

log = structlog.get_logger()

TARGET_TYPES = {
    "pr": TargetType.PULL_REQUEST,
    "pull-request": TargetType.PULL_REQUEST,
    "mr": TargetType.PULL_REQUEST,
    "merge-request": TargetType.PULL_REQUEST,
    "commit": TargetType.COMMIT,
}

PLATFORMS = {
    "github": Platform.GITHUB,
    "gitlab": Platform.GITLAB,
}

# Commands that post a body, mapped to the CommentHandler method they run
POST_COMMANDS = {
    "update": "update_comment",
    "new": "new_comment",
    "hide-and-new": "hide_and_new_comment",
    "delete-and-new": "delete_and_new_comment",
}

COMMAND_HELP = {
    "update": "Update the previously posted comment, or create it if it doesn't exist",
    "new": "Post a new comment",
    "hide-and-new": "Hide previously posted comments and post a new comment",
    "delete-and-new": "Delete previously posted comments and post a new comment",
    "latest": "Print the body of the latest posted comment",
}


def process_target_type(value: str | None, allow_empty: bool = False) -> str:
    """Map a target type or one of its aliases to its canonical form.

    Raises:
        InputValidationError: If the target type is not recognised.
    """
    if allow_empty and not value:
        return ""

    try:
        return TARGET_TYPES[value or ""]
    except KeyError:
        raise InputValidationError(
            f"Invalid target type '{value}', valid options are 'pull-request' ('pr'), "
            "'merge-request' ('mr'), 'commit'"
        ) from None


def process_platform(value: str | None, allow_empty: bool = False) -> str:
    """Validate a platform name.

    Raises:
        InputValidationError: If the platform is not recognised.
    """
    if allow_empty and not value:
        return ""

    try:
        return PLATFORMS[value or ""]
    except KeyError:
        raise InputValidationError(
            f"Invalid platform '{value}', valid options are 'github', 'gitlab'"
        ) from None


def read_body(args: argparse.Namespace) -> str:
    """Return the comment body from --body or --body-file.

    Raises:
        InputValidationError: If neither or both flags are set, or the file
            cannot be read.
    """
    if args.body is None and args.body_file is None:
        raise InputValidationError("--body or --body-file must be set")

    if args.body is not None and args.body_file is not None:
        raise InputValidationError("--body and --body-file cannot be set at the same time")

    if args.body is not None:
        return str(args.body)

    try:
        return Path(args.body_file).read_text()
    except OSError as e:
        raise InputValidationError(f"Failed to read body file: {e}") from e


def platform_extra(args: argparse.Namespace, config: CompostConfig, platform: str) -> Any:
    """Build the platform settings from CLI flags, config and CI token variables."""
    if platform == Platform.GITHUB:
        return GitHubConfig(
            api_url=args.github_api_url or config.github.api_url,
            token=args.github_token or config.github.token or os.environ.get("GITHUB_TOKEN", ""),
            request_timeout=config.github.request_timeout,
        )

    return GitLabConfig(
        server_url=args.gitlab_server_url or config.gitlab.server_url,
        token=args.gitlab_token or config.gitlab.token or os.environ.get("GITLAB_TOKEN", ""),
        request_timeout=config.gitlab.request_timeout,
    )


def detected_extra(extra: Any, config: CompostConfig) -> Any:
    """Fill settings the CI environment does not provide from the config.

    Detectors supply the token and URL. The per-request timeout only comes
    from configuration.
    """
    if isinstance(extra, GitHubConfig):
        return extra.model_copy(update={"request_timeout": config.github.request_timeout})
    if isinstance(extra, GitLabConfig):
        return extra.model_copy(update={"request_timeout": config.gitlab.request_timeout})
    return extra


async def build_comment_handler(
    args: argparse.Namespace,
    config: CompostConfig,
    platform_registry: PlatformHandlerRegistry,
    detector_registry: DetectorRegistry,
) -> CommentHandler:
    """Resolve the platform and target and wrap its handler in a CommentHandler.

    For ``autodetect`` the target comes from the detector chain, otherwise
    from the positional arguments.
    """
    tag = args.tag or config.tag

    if args.platform_cmd == "autodetect":
        options = DetectOptions(
            platform=process_platform(args.platform_filter, allow_empty=True),
            target_type=process_target_type(args.target_type_filter, allow_empty=True),
        )
        result = await detector_registry.detect_environment(options)
        bind_context(
            platform=result.platform,
            project=result.project,
            target_type=result.target_type,
            target_ref=result.target_ref,
        )

        platform_handler = platform_registry.create_handler(
            result.platform,
            result.target_type,
            result.project,
            result.target_ref,
            detected_extra(result.extra, config),
        )
    else:
        platform = process_platform(args.platform_cmd)
        target_type = process_target_type(args.target_type)
        bind_context(
            platform=platform,
            project=args.project,
            target_type=target_type,
            target_ref=args.target_ref,
        )

        platform_handler = platform_registry.create_handler(
            platform,
            target_type,
            args.project,
            args.target_ref,
            platform_extra(args, config, platform),
        )

    return CommentHandler(platform_handler, tag)


async def run_command(
    args: argparse.Namespace,
    config: CompostConfig,
    platform_registry: PlatformHandlerRegistry,
    detector_registry: DetectorRegistry,
) -> None:
    """Run one command end to end."""
    # Validate the body before anything touches the network
    body = read_body(args) if args.command in POST_COMMANDS else None

    handler = await build_comment_handler(args, config, platform_registry, detector_registry)

    try:
        if args.command == "latest":
            comment = await handler.latest_matching_comment()
            if comment is not None and comment.body:
                print(comment.body)
            return

        method = getattr(handler, POST_COMMANDS[args.command])
        result = await method(body)

        log.info(
            "command_complete",
            command=args.command,
            action=result.action.value,
            ref=result.ref,
            hidden=result.hidden,
            already_hidden=result.already_hidden,
            deleted=result.deleted,
        )
    finally:
        await handler.platform_handler.aclose()


def _add_command_parsers(
    subparsers: Any,
    commands: list[str],
    positional: bool,
    parents: list[argparse.ArgumentParser],
) -> None:
    """Add one parser per command to a platform's subparsers."""
    for command in commands:
        parser = subparsers.add_parser(command, help=COMMAND_HELP[command], parents=parents)

        if positional:
            parser.add_argument("project", help="Repository, e.g. owner/repo or group/project")
            parser.add_argument(
                "target_type",
                help="pull-request (pr), merge-request (mr) or commit",
            )
            parser.add_argument("target_ref", help="Pull/merge request number or commit SHA")

        if command in POST_COMMANDS:
            parser.add_argument(
                "--body",
                default=None,
                help="Body of comment to post, mutually exclusive with --body-file",
            )
            parser.add_argument(
                "--body-file",
                default=None,
                help="File containing body of comment to post, mutually exclusive with --body",
            )


def _add_platform_options(parser: argparse.ArgumentParser, platform: str, default: Any) -> None:
    """Add the options a platform accepts both before and after its command.

    Command-level copies default to SUPPRESS, which leaves a value given
    before the command in place.
    """
    parser.add_argument(
        "--tag",
        default=default,
        help="Customize the embedded tag used to find comments posted by compost",
    )

    if platform == "github":
        parser.add_argument("--github-api-url", default=default, help="GitHub API URL")
        parser.add_argument("--github-token", default=default, help="GitHub token")
    elif platform == "gitlab":
        parser.add_argument("--gitlab-server-url", default=default, help="GitLab server URL")
        parser.add_argument("--gitlab-token", default=default, help="GitLab token")
    else:
        parser.add_argument(
            "--platform",
            dest="platform_filter",
            default=default,
            help="Limit the auto-detection to a specific platform: github, gitlab",
        )
        parser.add_argument(
            "--target-type",
            dest="target_type_filter",
            default=default,
            help="Limit the auto-detection to pull-request (pr), merge-request (mr) or commit",
        )


def _add_platform_parser(
    platforms: Any,
    name: str,
    help_text: str,
    commands: list[str],
    positional: bool,
) -> None:
    platform_parser = platforms.add_parser(name, help=help_text)
    _add_platform_options(platform_parser, name, None)

    command_options = argparse.ArgumentParser(add_help=False)
    _add_platform_options(command_options, name, argparse.SUPPRESS)

    _add_command_parsers(
        platform_parser.add_subparsers(dest="command", metavar="COMMAND", required=True),
        commands,
        positional=positional,
        parents=[command_options],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="compost",
        description="Post pull request comments from multiple CI platforms",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: info)",
    )

    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=None,
        help="Log output format (default: console)",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML configuration file",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort the command after this many seconds",
    )

    platforms = parser.add_subparsers(dest="platform_cmd", metavar="PLATFORM", required=True)

    _add_platform_parser(
        platforms,
        "github",
        "Post a comment to a GitHub pull request or commit",
        ["update", "new", "hide-and-new", "delete-and-new", "latest"],
        positional=True,
    )
    _add_platform_parser(
        platforms,
        "gitlab",
        "Post a comment to a GitLab merge request or commit",
        ["update", "new", "delete-and-new", "latest"],
        positional=True,
    )
    _add_platform_parser(
        platforms,
        "autodetect",
        "Detect the CI platform and target, then post a comment",
        ["update", "new", "hide-and-new", "delete-and-new", "latest"],
        positional=False,
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    from compost.adapters import build_detector_registry, build_platform_registry
    from compost.config.loader import load_config
    from compost.utils.async_helpers import with_timeout
    from compost.utils.logging import configure_logging

    args = build_parser().parse_args(argv)

    configure_logging(level=args.log_level or "info", log_format=args.log_format or "console")

    try:
        config = load_config(args.config)

        # Reconfigure logging from config file settings unless flags override them
        configure_logging(
            level=args.log_level or config.logging.level,
            log_format=args.log_format or config.logging.format,
        )

        timeout = args.timeout if args.timeout is not None else config.timeout

        asyncio.run(
            with_timeout(
                run_command(args, config, build_platform_registry(), build_detector_registry()),
                timeout,
            )
        )
        return 0

    except (CompostError, FileNotFoundError, ValueError) as e:
        log.error("command_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        log.info("interrupted")
        return 1
    except Exception as e:
        log.exception("fatal_error", error=str(e))
        return 1
    finally:
        clear_context()


if __name__ == "__main__":
    sys.exit(main())
