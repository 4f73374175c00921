"""GitHub platform handlers for pull requests and commits.

This module implements the PlatformHandler protocol for GitHub using the
REST API for writes and the GraphQL API for reads and minimizing, since only
GraphQL exposes whether a comment is minimized.

Pull request comments are issue comments on the pull request, not review
comments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from ..config.schema import GitHubConfig
from ..core.markdown import has_markdown_tag
from ..utils.async_helpers import api_retry
from ..utils.errors import InputValidationError, PlatformAPIError
from ..utils.security import validate_project_path
from .http import parse_timestamp, raise_for_status

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..interfaces.comment import Comment

log = structlog.get_logger()

PAGE_SIZE = 100

_COMMENT_FIELDS = """
nodes {
  id
  databaseId
  url
  body
  createdAt
  isMinimized
}
pageInfo {
  endCursor
  hasNextPage
}
"""

PULL_REQUEST_COMMENTS_QUERY = f"""
query($owner: String!, $name: String!, $number: Int!, $first: Int!, $after: String) {{
  repository(owner: $owner, name: $name) {{
    pullRequest(number: $number) {{
      comments(first: $first, after: $after) {{
        {_COMMENT_FIELDS}
      }}
    }}
  }}
}}
"""

COMMIT_COMMENTS_QUERY = f"""
query($owner: String!, $name: String!, $expression: String!, $first: Int!, $after: String) {{
  repository(owner: $owner, name: $name) {{
    object(expression: $expression) {{
      ... on Commit {{
        comments(first: $first, after: $after) {{
          {_COMMENT_FIELDS}
        }}
      }}
    }}
  }}
}}
"""

MINIMIZE_COMMENT_MUTATION = """
mutation($id: ID!) {
  minimizeComment(input: {subjectId: $id, classifier: OUTDATED}) {
    minimizedComment {
      isMinimized
    }
  }
}
"""


@dataclass(frozen=True)
class GitHubComment:
    """An issue comment on a pull request, or a commit comment."""

    id: str  # GraphQL node ID
    database_id: int  # REST ID
    url: str
    body: str
    created_at: datetime
    is_minimized: bool = False

    @property
    def ref(self) -> str:
        return self.url

    @property
    def is_hidden(self) -> bool:
        return self.is_minimized

    def __lt__(self, other: Comment) -> bool:
        # Most recent first; the REST ID breaks ties between equal timestamps
        if not isinstance(other, GitHubComment):
            return NotImplemented
        return (self.created_at, self.database_id) > (other.created_at, other.database_id)

    @classmethod
    def from_graphql(cls, node: dict[str, Any]) -> GitHubComment:
        return cls(
            id=node.get("id", ""),
            database_id=node.get("databaseId") or 0,
            url=node.get("url", ""),
            body=node.get("body") or "",
            created_at=parse_timestamp(node.get("createdAt")),
            is_minimized=bool(node.get("isMinimized")),
        )

    @classmethod
    def from_rest(cls, data: dict[str, Any]) -> GitHubComment:
        return cls(
            id=data.get("node_id", ""),
            database_id=data.get("id") or 0,
            url=data.get("html_url", ""),
            body=data.get("body") or "",
            created_at=parse_timestamp(data.get("created_at")),
        )


def _as_github_comment(comment: Comment) -> GitHubComment:
    if not isinstance(comment, GitHubComment):
        raise TypeError(f"Expected a GitHub comment, got {type(comment).__name__}")
    return comment


class GitHubClient:
    """Thin async client for the GitHub REST and GraphQL APIs."""

    def __init__(
        self,
        config: GitHubConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            config: API URL, token and request timeout.
            transport: Optional httpx transport, used by tests.
        """
        self._config = config

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"

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
            raise PlatformAPIError(f"GitHub API request {method} {url} failed: {e}") from e

        raise_for_status(response, "GitHub")
        return response

    async def rest(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        """Call a REST endpoint and return the decoded JSON body, if any."""
        response = await self._request(method, path, json=json)
        if not response.content:
            return None
        return response.json()

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL query or mutation and return its data."""
        response = await self._request(
            "POST",
            self._config.graphql_url,
            json={"query": query, "variables": variables},
        )

        payload = response.json()
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            raise PlatformAPIError(f"GitHub GraphQL request failed: {messages}")

        return payload.get("data") or {}

    async def find_comments(
        self,
        query: str,
        variables: dict[str, Any],
        connection: Callable[[dict[str, Any]], dict[str, Any] | None],
    ) -> list[GitHubComment]:
        """Fetch every comment of a paginated GraphQL comments connection.

        Args:
            query: Query taking $first and $after pagination variables.
            variables: The remaining query variables.
            connection: Extracts the comments connection from the query data.
        """
        comments: list[GitHubComment] = []
        after: str | None = None

        while True:
            data = await self.graphql(query, {**variables, "first": PAGE_SIZE, "after": after})

            conn = connection(data)
            if conn is None:
                raise PlatformAPIError("GitHub comment target not found")

            comments.extend(GitHubComment.from_graphql(node) for node in conn.get("nodes") or [])

            page_info = conn.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return comments
            after = page_info.get("endCursor")

    async def minimize_comment(self, node_id: str) -> None:
        await self.graphql(MINIMIZE_COMMENT_MUTATION, {"id": node_id})

    async def aclose(self) -> None:
        await self._client.aclose()


def _split_project(project: str) -> tuple[str, str]:
    """Split "owner/repo" into its parts.

    Raises:
        InputValidationError: If the project is not in owner/repo format.
    """
    if project.count("/") != 1 or not validate_project_path(project):
        raise InputValidationError(
            f"Invalid GitHub repository '{project}', expected format owner/repo"
        )
    owner, name = project.split("/")
    return owner, name


class GitHubPullRequestHandler:
    """Posts comments on a GitHub pull request."""

    supports_hide = True

    def __init__(self, project: str, pr_number: int, client: GitHubClient) -> None:
        self._owner, self._name = _split_project(project)
        self._project = project
        self._pr_number = pr_number
        self._client = client

    async def call_find_matching_comments(self, tag: str) -> list[Comment]:
        def connection(data: dict[str, Any]) -> dict[str, Any] | None:
            pull_request = (data.get("repository") or {}).get("pullRequest")
            return pull_request.get("comments") if pull_request else None

        comments = await self._client.find_comments(
            PULL_REQUEST_COMMENTS_QUERY,
            {"owner": self._owner, "name": self._name, "number": self._pr_number},
            connection,
        )
        matching = [c for c in comments if has_markdown_tag(c.body, tag)]

        log.debug("github_comments_fetched", total=len(comments), matching=len(matching))
        return matching

    async def call_create_comment(self, body: str) -> Comment:
        data = await self._client.rest(
            "POST",
            f"/repos/{self._project}/issues/{self._pr_number}/comments",
            json={"body": body},
        )
        return GitHubComment.from_rest(data)

    async def call_update_comment(self, comment: Comment, body: str) -> None:
        gh_comment = _as_github_comment(comment)
        await self._client.rest(
            "PATCH",
            f"/repos/{self._project}/issues/comments/{gh_comment.database_id}",
            json={"body": body},
        )

    async def call_delete_comment(self, comment: Comment) -> None:
        gh_comment = _as_github_comment(comment)
        await self._client.rest(
            "DELETE",
            f"/repos/{self._project}/issues/comments/{gh_comment.database_id}",
        )

    async def call_hide_comment(self, comment: Comment) -> None:
        await self._client.minimize_comment(_as_github_comment(comment).id)

    async def aclose(self) -> None:
        await self._client.aclose()


class GitHubCommitHandler:
    """Posts comments on a GitHub commit."""

    supports_hide = True

    def __init__(self, project: str, commit_sha: str, client: GitHubClient) -> None:
        self._owner, self._name = _split_project(project)
        self._project = project
        self._commit_sha = commit_sha
        self._client = client

    async def call_find_matching_comments(self, tag: str) -> list[Comment]:
        def connection(data: dict[str, Any]) -> dict[str, Any] | None:
            commit = (data.get("repository") or {}).get("object")
            return commit.get("comments") if commit else None

        comments = await self._client.find_comments(
            COMMIT_COMMENTS_QUERY,
            {"owner": self._owner, "name": self._name, "expression": self._commit_sha},
            connection,
        )
        matching = [c for c in comments if has_markdown_tag(c.body, tag)]

        log.debug("github_comments_fetched", total=len(comments), matching=len(matching))
        return matching

    async def call_create_comment(self, body: str) -> Comment:
        data = await self._client.rest(
            "POST",
            f"/repos/{self._project}/commits/{self._commit_sha}/comments",
            json={"body": body},
        )
        return GitHubComment.from_rest(data)

    async def call_update_comment(self, comment: Comment, body: str) -> None:
        gh_comment = _as_github_comment(comment)
        await self._client.rest(
            "PATCH",
            f"/repos/{self._project}/comments/{gh_comment.database_id}",
            json={"body": body},
        )

    async def call_delete_comment(self, comment: Comment) -> None:
        gh_comment = _as_github_comment(comment)
        await self._client.rest(
            "DELETE",
            f"/repos/{self._project}/comments/{gh_comment.database_id}",
        )

    async def call_hide_comment(self, comment: Comment) -> None:
        await self._client.minimize_comment(_as_github_comment(comment).id)

    async def aclose(self) -> None:
        await self._client.aclose()


def _github_config(extra: Any) -> GitHubConfig:
    if extra is None:
        return GitHubConfig()
    if not isinstance(extra, GitHubConfig):
        raise TypeError(f"Expected GitHubConfig, got {type(extra).__name__}")
    return extra


def github_pull_request_handler(
    project: str, target_ref: str, extra: Any = None
) -> GitHubPullRequestHandler:
    """Create the handler for a GitHub pull request number."""
    try:
        pr_number = int(target_ref)
    except ValueError:
        raise InputValidationError(f"Invalid pull request number '{target_ref}'") from None

    _split_project(project)
    return GitHubPullRequestHandler(project, pr_number, GitHubClient(_github_config(extra)))


def github_commit_handler(project: str, target_ref: str, extra: Any = None) -> GitHubCommitHandler:
    """Create the handler for a GitHub commit SHA."""
    if not target_ref:
        raise InputValidationError("Commit SHA must not be empty")

    _split_project(project)
    return GitHubCommitHandler(project, target_ref, GitHubClient(_github_config(extra)))
