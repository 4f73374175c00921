"""Reconciliation of the tagged status comment.

This module implements the CommentHandler class that decides, from the
comments a previous run left behind, whether to update, create, hide or
delete. Matching is delegated to the platform handler; ordering is defined
by the platform's Comment type.

Steps run strictly in sequence. The first failing platform call aborts the
operation and propagates; mutations already applied are not rolled back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from compost.core.markdown import DEFAULT_TAG, add_markdown_tag
from compost.models.comment import ReconcileAction, ReconcileResult
from compost.utils.errors import HideNotSupportedError

if TYPE_CHECKING:
    from compost.interfaces.comment import Comment, PlatformHandler

log = structlog.get_logger()


class CommentHandler:
    """Finds, creates, updates, hides and deletes compost comments.

    Example:
        handler = CommentHandler(platform_handler, tag="infracost")
        result = await handler.update_comment("## Cost estimate\\n...")
        if result.action is ReconcileAction.UNCHANGED:
            # Nothing was written to the platform
            pass
    """

    def __init__(self, platform_handler: PlatformHandler, tag: str = "") -> None:
        """Initialize the CommentHandler.

        Args:
            platform_handler: Handler for one pull/merge request or commit
            tag: Tag embedded in posted comments, defaults to "compost-comment"
        """
        self.platform_handler = platform_handler
        self.tag = tag or DEFAULT_TAG

    async def _matching_comments(self) -> list[Comment]:
        """Return all comments carrying the tag."""
        log.info("finding_matching_comments", tag=self.tag)

        comments = await self.platform_handler.call_find_matching_comments(self.tag)

        log.info("found_matching_comments", count=len(comments))
        return comments

    async def latest_matching_comment(self) -> Comment | None:
        """Return the most recent comment carrying the tag.

        Returns:
            The comment sorted first by the platform's ordering, or None if
            no comment carries the tag
        """
        comments = await self._matching_comments()
        if not comments:
            return None

        return sorted(comments)[0]

    async def update_comment(self, body: str) -> ReconcileResult:
        """Update the latest tagged comment, or create one if none exists.

        The latest comment is left alone when its body already equals the
        rendered body, so repeated runs with the same content write nothing.
        Older tagged comments are never touched.

        Args:
            body: Comment body, the tag marker is appended to it

        Returns:
            What was done and the reference of the resulting comment
        """
        body_with_tag = add_markdown_tag(body, self.tag)

        latest = await self.latest_matching_comment()

        if latest is None:
            log.info("creating_comment")
            comment = await self.platform_handler.call_create_comment(body_with_tag)
            log.info("comment_created", ref=comment.ref)
            return ReconcileResult(action=ReconcileAction.CREATED, ref=comment.ref)

        if latest.body == body_with_tag:
            log.info("comment_unchanged", ref=latest.ref)
            return ReconcileResult(action=ReconcileAction.UNCHANGED, ref=latest.ref)

        log.info("updating_comment", ref=latest.ref)
        await self.platform_handler.call_update_comment(latest, body_with_tag)
        log.info("comment_updated", ref=latest.ref)
        return ReconcileResult(action=ReconcileAction.UPDATED, ref=latest.ref)

    async def new_comment(self, body: str) -> ReconcileResult:
        """Post a new comment with ``body`` as-is."""
        log.info("creating_comment")

        comment = await self.platform_handler.call_create_comment(body)

        log.info("comment_created", ref=comment.ref)
        return ReconcileResult(action=ReconcileAction.CREATED, ref=comment.ref)

    async def hide_and_new_comment(self, body: str) -> ReconcileResult:
        """Hide all visible tagged comments, then post a new comment.

        Raises:
            HideNotSupportedError: If the platform cannot hide comments
        """
        if not self.platform_handler.supports_hide:
            raise HideNotSupportedError("Hiding comments is not supported on this platform")

        comments = await self._matching_comments()

        hidden, already_hidden = await self._hide_comments(comments)

        result = await self.new_comment(body)
        return ReconcileResult(
            action=result.action,
            ref=result.ref,
            hidden=hidden,
            already_hidden=already_hidden,
        )

    async def _hide_comments(self, comments: list[Comment]) -> tuple[int, int]:
        """Hide the visible comments.

        Returns:
            Number of comments hidden and number that were already hidden
        """
        visible = [c for c in comments if not c.is_hidden]
        already_hidden = len(comments) - len(visible)

        if already_hidden:
            log.info("comments_already_hidden", count=already_hidden)

        log.info("hiding_comments", count=len(visible))

        for comment in visible:
            log.info("hiding_comment", ref=comment.ref)
            await self.platform_handler.call_hide_comment(comment)

        return len(visible), already_hidden

    async def delete_and_new_comment(self, body: str) -> ReconcileResult:
        """Delete all tagged comments, hidden or not, then post a new comment."""
        comments = await self._matching_comments()

        deleted = await self._delete_comments(comments)

        result = await self.new_comment(body)
        return ReconcileResult(action=result.action, ref=result.ref, deleted=deleted)

    async def _delete_comments(self, comments: list[Comment]) -> int:
        log.info("deleting_comments", count=len(comments))

        for comment in comments:
            log.info("deleting_comment", ref=comment.ref)
            await self.platform_handler.call_delete_comment(comment)

        return len(comments)
