"""Shared test fixtures for compost."""

from __future__ import annotations

import itertools
import os
from dataclasses import dataclass, field, replace
from typing import Any

import pytest

from compost.core.markdown import add_markdown_tag, has_markdown_tag
from compost.utils.errors import HideNotSupportedError, PlatformAPIError


@dataclass(frozen=True)
class FakeComment:
    """In-memory comment ordered by a sequence number, newest first."""

    id: int
    body: str
    created_at: int
    hidden: bool = False

    @property
    def ref(self) -> str:
        return f"fake://comments/{self.id}"

    @property
    def is_hidden(self) -> bool:
        return self.hidden

    def __lt__(self, other: FakeComment) -> bool:
        return (self.created_at, self.id) > (other.created_at, other.id)


@dataclass
class FakePlatformHandler:
    """Stateful PlatformHandler that records every call.

    Attributes:
        fail_on: Operation name ("find", "create", "update", "delete", "hide")
            that raises PlatformAPIError.
        fail_after: Number of successful calls of ``fail_on`` before it fails.
    """

    comments: list[FakeComment] = field(default_factory=list)
    supports_hide: bool = True
    fail_on: str | None = None
    fail_after: int = 0
    calls: list[tuple[str, Any]] = field(default_factory=list)
    closed: bool = False

    def __post_init__(self) -> None:
        start = max((c.id for c in self.comments), default=0) + 1
        self._ids = itertools.count(start)

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def _record(self, operation: str, arg: Any) -> None:
        if self.fail_on == operation and self.count(operation) >= self.fail_after:
            raise PlatformAPIError(f"{operation} failed", status_code=500)
        self.calls.append((operation, arg))

    async def call_find_matching_comments(self, tag: str) -> list[FakeComment]:
        self._record("find", tag)
        return [c for c in self.comments if has_markdown_tag(c.body, tag)]

    async def call_create_comment(self, body: str) -> FakeComment:
        self._record("create", body)
        comment_id = next(self._ids)
        comment = FakeComment(id=comment_id, body=body, created_at=comment_id)
        self.comments.append(comment)
        return comment

    async def call_update_comment(self, comment: FakeComment, body: str) -> None:
        self._record("update", (comment.id, body))
        self.comments = [replace(c, body=body) if c.id == comment.id else c for c in self.comments]

    async def call_delete_comment(self, comment: FakeComment) -> None:
        self._record("delete", comment.id)
        self.comments = [c for c in self.comments if c.id != comment.id]

    async def call_hide_comment(self, comment: FakeComment) -> None:
        if not self.supports_hide:
            raise HideNotSupportedError("hide not supported")
        self._record("hide", comment.id)
        self.comments = [replace(c, hidden=True) if c.id == comment.id else c for c in self.comments]

    async def aclose(self) -> None:
        self.closed = True


def tagged(
    comment_id: int,
    body: str = "old",
    tag: str = "compost-comment",
    created_at: int | None = None,
    hidden: bool = False,
) -> FakeComment:
    """Build a FakeComment carrying the tag marker."""
    return FakeComment(
        id=comment_id,
        body=add_markdown_tag(body, tag),
        created_at=comment_id if created_at is None else created_at,
        hidden=hidden,
    )


@pytest.fixture
def make_comment() -> Any:
    """Return a factory for tagged fake comments."""
    return tagged


@pytest.fixture
def make_handler() -> Any:
    """Return a factory for fake platform handlers."""
    return FakePlatformHandler


@pytest.fixture
def platform_handler() -> FakePlatformHandler:
    """Return an empty fake platform handler."""
    return FakePlatformHandler()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove CI variables that would leak the host environment into tests."""
    for name in (
        "GITHUB_ACTIONS",
        "GITHUB_TOKEN",
        "GITHUB_REPOSITORY",
        "GITHUB_API_URL",
        "GITHUB_EVENT_PATH",
        "GITHUB_SHA",
        "GITLAB_CI",
        "GITLAB_TOKEN",
        "CI_PROJECT_PATH",
        "CI_SERVER_URL",
        "CI_MERGE_REQUEST_IID",
        "CI_COMMIT_SHA",
    ):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("COMPOST_"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
