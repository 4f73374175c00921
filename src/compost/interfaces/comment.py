"""Protocols for platform comments and platform handlers."""

from __future__ import annotations

from typing import Protocol


class Comment(Protocol):
    """A comment on any platform.

    Each platform wraps its own comment payload in a type satisfying this
    protocol. The reconciliation engine reads comments but never mutates them.
    """

    @property
    def body(self) -> str:
        """The body of the comment."""
        ...

    @property
    def ref(self) -> str:
        """A stable reference to the comment, usually its HTML URL."""
        ...

    @property
    def is_hidden(self) -> bool:
        """True if the comment is hidden or minimized."""
        ...

    def __lt__(self, other: Comment) -> bool:
        """Return True if this comment sorts before ``other``.

        The first comment after sorting is the most recent one. Platforms
        define recency; the order must be total so that sorting does not
        depend on the order the API returned the comments in.
        """
        ...


class PlatformHandler(Protocol):
    """Calls the platform APIs for one pull/merge request or commit.

    This protocol defines the contract that every platform backend
    (GitHub, GitLab, ...) must implement for each target type it supports.
    """

    # False when call_hide_comment always raises HideNotSupportedError
    supports_hide: bool

    async def call_find_matching_comments(self, tag: str) -> list[Comment]:
        """
        Find the comments whose body contains the marker for ``tag``.

        Args:
            tag: Tag embedded in comments posted by compost

        Returns:
            Matching comments, in any order

        Raises:
            PlatformAPIError: If the API request fails
        """
        ...

    async def call_create_comment(self, body: str) -> Comment:
        """
        Create a new comment.

        Args:
            body: Body of the comment, posted as-is

        Returns:
            The created comment

        Raises:
            PlatformAPIError: If the API request fails
        """
        ...

    async def call_update_comment(self, comment: Comment, body: str) -> None:
        """
        Replace the body of an existing comment.

        Raises:
            PlatformAPIError: If the API request fails
        """
        ...

    async def call_delete_comment(self, comment: Comment) -> None:
        """
        Delete an existing comment.

        Raises:
            PlatformAPIError: If the API request fails
        """
        ...

    async def call_hide_comment(self, comment: Comment) -> None:
        """
        Hide (minimize) an existing comment.

        Raises:
            HideNotSupportedError: If the platform cannot hide comments
            PlatformAPIError: If the API request fails
        """
        ...

    async def aclose(self) -> None:
        """Release the HTTP client owned by the handler."""
        ...
