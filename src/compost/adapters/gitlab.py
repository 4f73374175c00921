"""GitLab platform handlers for merge requests and commits.

This module implements the PlatformHandler protocol for GitLab using the
REST API v4. Merge request comments are notes; commit comments are notes
inside commit discussions. GitLab has no way to hide a note, so
call_hide_comment always raises HideNotSupportedError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
import structlog

from ..config.schema import GitLabConfig
from ..core.markdown import has_markdown_tag
from ..utils.async_helpers import api_retry
from ..utils.errors import HideNotSupportedError, InputValidationError, PlatformAPIError
from ..utils.security import validate_project_path
from .http import parse_timestamp, raise_for_status

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ..interfaces.comment import Comment

log = structlog.get_logger()

PAGE_SIZE = 100


@dataclass(frozen=True)
class GitLabNote:
    """A note on a merge request or in a commit discussion."""

    id: int
    url: str
    body: str
    created_at: datetime
    discussion_id: str | None = None  # Set for commit discussion notes

    @property
    def ref(self) -> str:
        return self.url

    @property
    def is_hidden(self) -> bool:
        return False

    def __lt__(self, other: Comment) -> bool:
        # Most recent first; the note ID breaks ties between equal timestamps
        if not isinstance(other, GitLabNote):
            return NotImplemented
        return (self.created_at, self.id) > (other.created_at, other.id)


def _as_gitlab_note(comment: Comment) -> GitLabNote:
    if not isinstance(comment, GitLabNote):
        raise TypeError(f"Expected a GitLab note, got {type(comment).__name__}")
    return comment


class GitLabClient:
    """Thin async client for the GitLab REST API."""

    def __init__(
        self,
        config: GitLabConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitLab client.

        Args:
            config: Server URL, token and request timeout.
            transport: Optional httpx transport, used by tests.
        """
        self.server_url = config.server_url

        headers = {"Accept": "application/json"}
        if config.token:
            headers["PRIVATE-TOKEN"] = config.token

        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers=headers,
            timeout=config.request_timeout,
            transport=transport,
        )

    @api_retry
    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.request(method, url, **kwargs)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._send(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise PlatformAPIError(f"GitLab API request {method} {url} failed: {e}") from e

        raise_for_status(response, "GitLab")
        return response

    async def rest(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        """Call an endpoint and return the decoded JSON body, if any."""
        response = await self._request(method, path, json=json)
        if not response.content:
            return None
        return response.json()

    async def paginate(
        self, path: str, params: dict[str, Any] | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield every item of a list endpoint, following the Link header."""
        url: str | None = path
        query: dict[str, Any] | None = {"per_page": PAGE_SIZE, **(params or {})}

        while url:
            response = await self._request("GET", url, params=query)
            for item in response.json():
                yield item

            next_link = response.links.get("next")
            url = next_link["url"] if next_link else None
            # The next link already carries the query string
            query = None

    async def aclose(self) -> None:
        await self._client.aclose()


def _check_project(project: str) -> None:
    if not validate_project_path(project):
        raise InputValidationError(
            f"Invalid GitLab project '{project}', expected format group/project"
        )


def _is_tagged_user_note(note: dict[str, Any], tag: str) -> bool:
    return not note.get("system") and has_markdown_tag(note.get("body") or "", tag)


class GitLabMergeRequestHandler:
    """Posts notes on a GitLab merge request."""

    supports_hide = False

    def __init__(self, project: str, mr_iid: int, client: GitLabClient) -> None:
        _check_project(project)
        self._project = project
        self._mr_iid = mr_iid
        self._client = client
        self._notes_path = f"/projects/{quote(project, safe='')}/merge_requests/{mr_iid}/notes"

    def _note(self, data: dict[str, Any]) -> GitLabNote:
        return GitLabNote(
            id=data["id"],
            url=(
                f"{self._client.server_url}/{self._project}"
                f"/-/merge_requests/{self._mr_iid}#note_{data['id']}"
            ),
            body=data.get("body") or "",
            created_at=parse_timestamp(data.get("created_at")),
        )

    async def call_find_matching_comments(self, tag: str) -> list[Comment]:
        comments: list[Comment] = [
            self._note(note)
            async for note in self._client.paginate(
                self._notes_path, {"sort": "asc", "order_by": "created_at"}
            )
            if _is_tagged_user_note(note, tag)
        ]

        log.debug("gitlab_notes_fetched", matching=len(comments))
        return comments

    async def call_create_comment(self, body: str) -> Comment:
        data = await self._client.rest("POST", self._notes_path, json={"body": body})
        return self._note(data)

    async def call_update_comment(self, comment: Comment, body: str) -> None:
        note = _as_gitlab_note(comment)
        await self._client.rest("PUT", f"{self._notes_path}/{note.id}", json={"body": body})

    async def call_delete_comment(self, comment: Comment) -> None:
        note = _as_gitlab_note(comment)
        await self._client.rest("DELETE", f"{self._notes_path}/{note.id}")

    async def call_hide_comment(self, comment: Comment) -> None:
        raise HideNotSupportedError("Hiding comments is not supported on GitLab")

    async def aclose(self) -> None:
        await self._client.aclose()


class GitLabCommitHandler:
    """Posts notes on a GitLab commit."""

    supports_hide = False

    def __init__(self, project: str, commit_sha: str, client: GitLabClient) -> None:
        _check_project(project)
        self._project = project
        self._commit_sha = commit_sha
        self._client = client
        self._discussions_path = (
            f"/projects/{quote(project, safe='')}/repository/commits/{commit_sha}/discussions"
        )

    def _note(self, data: dict[str, Any], discussion_id: str) -> GitLabNote:
        return GitLabNote(
            id=data["id"],
            url=(
                f"{self._client.server_url}/{self._project}"
                f"/-/commit/{self._commit_sha}#note_{data['id']}"
            ),
            body=data.get("body") or "",
            created_at=parse_timestamp(data.get("created_at")),
            discussion_id=discussion_id,
        )

    def _note_path(self, note: GitLabNote) -> str:
        return f"{self._discussions_path}/{note.discussion_id}/notes/{note.id}"

    async def call_find_matching_comments(self, tag: str) -> list[Comment]:
        comments: list[Comment] = []
        async for discussion in self._client.paginate(self._discussions_path):
            for note in discussion.get("notes") or []:
                if _is_tagged_user_note(note, tag):
                    comments.append(self._note(note, discussion["id"]))

        log.debug("gitlab_notes_fetched", matching=len(comments))
        return comments

    async def call_create_comment(self, body: str) -> Comment:
        discussion = await self._client.rest("POST", self._discussions_path, json={"body": body})
        notes = discussion.get("notes") or []
        if not notes:
            raise PlatformAPIError("GitLab created a commit discussion without a note")
        return self._note(notes[0], discussion["id"])

    async def call_update_comment(self, comment: Comment, body: str) -> None:
        note = _as_gitlab_note(comment)
        await self._client.rest("PUT", self._note_path(note), json={"body": body})

    async def call_delete_comment(self, comment: Comment) -> None:
        note = _as_gitlab_note(comment)
        await self._client.rest("DELETE", self._note_path(note))

    async def call_hide_comment(self, comment: Comment) -> None:
        raise HideNotSupportedError("Hiding comments is not supported on GitLab")

    async def aclose(self) -> None:
        await self._client.aclose()


def _gitlab_config(extra: Any) -> GitLabConfig:
    if extra is None:
        return GitLabConfig()
    if not isinstance(extra, GitLabConfig):
        raise TypeError(f"Expected GitLabConfig, got {type(extra).__name__}")
    return extra


def gitlab_merge_request_handler(
    project: str, target_ref: str, extra: Any = None
) -> GitLabMergeRequestHandler:
    """Create the handler for a GitLab merge request IID."""
    try:
        mr_iid = int(target_ref)
    except ValueError:
        raise InputValidationError(f"Invalid merge request IID '{target_ref}'") from None

    _check_project(project)
    return GitLabMergeRequestHandler(project, mr_iid, GitLabClient(_gitlab_config(extra)))


def gitlab_commit_handler(project: str, target_ref: str, extra: Any = None) -> GitLabCommitHandler:
    """Create the handler for a GitLab commit SHA."""
    if not target_ref:
        raise InputValidationError("Commit SHA must not be empty")

    _check_project(project)
    return GitLabCommitHandler(project, target_ref, GitLabClient(_gitlab_config(extra)))
