"""Tests for the comment reconciliation engine."""

from __future__ import annotations

import itertools

import pytest

from compost.core.comment_handler import CommentHandler
from compost.core.markdown import DEFAULT_TAG, add_markdown_tag
from compost.models.comment import ReconcileAction
from compost.utils.errors import HideNotSupportedError, PlatformAPIError


class TestCommentHandlerInit:
    """Test CommentHandler construction."""

    def test_default_tag(self, platform_handler) -> None:
        """Test that an empty tag falls back to the default tag."""
        handler = CommentHandler(platform_handler, "")
        assert handler.tag == DEFAULT_TAG

    def test_custom_tag(self, platform_handler) -> None:
        """Test that a custom tag is kept."""
        handler = CommentHandler(platform_handler, "infracost")
        assert handler.tag == "infracost"


class TestLatestMatchingComment:
    """Test finding the latest matching comment."""

    async def test_returns_none_without_comments(self, platform_handler) -> None:
        """Test that no matching comments gives None, not an error."""
        handler = CommentHandler(platform_handler)

        assert await handler.latest_matching_comment() is None
        assert platform_handler.count("find") == 1

    async def test_returns_most_recent(self, make_handler, make_comment) -> None:
        """Test that the comment sorted first is returned."""
        platform = make_handler(
            comments=[make_comment(1), make_comment(3), make_comment(2)],
        )
        handler = CommentHandler(platform)

        latest = await handler.latest_matching_comment()

        assert latest is not None
        assert latest.id == 3

    async def test_stable_under_permutation(self, make_handler, make_comment) -> None:
        """Test that the result does not depend on the API's order."""
        comments = [
            make_comment(1, created_at=10),
            make_comment(2, created_at=30),
            make_comment(3, created_at=30),
            make_comment(4, created_at=20),
        ]

        for permutation in itertools.permutations(comments):
            handler = CommentHandler(make_handler(comments=list(permutation)))
            latest = await handler.latest_matching_comment()
            assert latest is not None
            assert latest.id == 3

    async def test_ignores_other_tags(self, make_handler, make_comment) -> None:
        """Test that comments with a different tag are not matched."""
        platform = make_handler(comments=[make_comment(1, tag="other")])
        handler = CommentHandler(platform)

        assert await handler.latest_matching_comment() is None

    async def test_find_failure_propagates(self, make_handler) -> None:
        """Test that a failing find call is surfaced."""
        handler = CommentHandler(make_handler(fail_on="find"))

        with pytest.raises(PlatformAPIError):
            await handler.latest_matching_comment()


class TestUpdateComment:
    """Test updating the tagged comment."""

    async def test_creates_when_missing(self, platform_handler) -> None:
        """Test that a comment is created when none exists."""
        handler = CommentHandler(platform_handler)

        result = await handler.update_comment("hello")

        assert result.action is ReconcileAction.CREATED
        assert platform_handler.calls[-1] == ("create", add_markdown_tag("hello", DEFAULT_TAG))

    async def test_unchanged_body_makes_no_calls(self, make_handler, make_comment) -> None:
        """Test that an identical body does not write to the platform."""
        platform = make_handler(comments=[make_comment(1, body="hello")])
        handler = CommentHandler(platform)

        result = await handler.update_comment("hello")

        assert result.action is ReconcileAction.UNCHANGED
        assert result.ref == "fake://comments/1"
        assert platform.count("create") == 0
        assert platform.count("update") == 0

    async def test_updates_latest_only(self, make_handler, make_comment) -> None:
        """Test that only the most recent matching comment is updated."""
        platform = make_handler(comments=[make_comment(1), make_comment(2), make_comment(3)])
        handler = CommentHandler(platform)

        result = await handler.update_comment("new body")

        assert result.action is ReconcileAction.UPDATED
        assert platform.calls[-1] == ("update", (3, add_markdown_tag("new body", DEFAULT_TAG)))
        assert platform.count("update") == 1
        assert platform.count("create") == 0

    async def test_idempotent_across_invocations(self, platform_handler) -> None:
        """Test that two identical updates write exactly once."""
        await CommentHandler(platform_handler).update_comment("hello")
        await CommentHandler(platform_handler).update_comment("hello")

        writes = platform_handler.count("create") + platform_handler.count("update")
        assert writes == 1

    async def test_second_body_updates_in_place(self, platform_handler) -> None:
        """Test that a changed body updates the existing comment."""
        await CommentHandler(platform_handler).update_comment("first")
        result = await CommentHandler(platform_handler).update_comment("second")

        assert result.action is ReconcileAction.UPDATED
        assert platform_handler.count("create") == 1
        assert platform_handler.count("update") == 1
        assert len(platform_handler.comments) == 1

    async def test_custom_tag_is_embedded(self, platform_handler) -> None:
        """Test that the handler's tag is appended to the body."""
        await CommentHandler(platform_handler, "infracost").update_comment("hello")

        assert platform_handler.calls[-1] == ("create", "hello\n\n[//]: <> (infracost)")

    async def test_update_failure_propagates(self, make_handler, make_comment) -> None:
        """Test that a failing update call is surfaced."""
        platform = make_handler(comments=[make_comment(1)], fail_on="update")

        with pytest.raises(PlatformAPIError):
            await CommentHandler(platform).update_comment("new body")


class TestNewComment:
    """Test posting a new comment."""

    async def test_posts_body_as_is(self, make_handler, make_comment) -> None:
        """Test that the body is posted without the tag marker."""
        platform = make_handler(comments=[make_comment(1)])

        result = await CommentHandler(platform).new_comment("plain")

        assert result.action is ReconcileAction.CREATED
        assert platform.calls[-1] == ("create", "plain")
        assert platform.count("find") == 0


class TestHideAndNewComment:
    """Test hiding old comments and posting a new one."""

    async def test_hides_only_visible(self, make_handler, make_comment) -> None:
        """Test that already hidden comments are skipped and counted."""
        platform = make_handler(
            comments=[
                make_comment(1, hidden=True),
                make_comment(2),
                make_comment(3, hidden=True),
                make_comment(4),
                make_comment(5),
            ],
        )

        result = await CommentHandler(platform).hide_and_new_comment("new")

        assert platform.count("hide") == 3
        assert platform.count("create") == 1
        assert result.hidden == 3
        assert result.already_hidden == 2
        assert [name for name, _ in platform.calls][-1] == "create"

    async def test_no_matches_still_posts(self, platform_handler) -> None:
        """Test that a new comment is posted when nothing matches."""
        result = await CommentHandler(platform_handler).hide_and_new_comment("new")

        assert result.action is ReconcileAction.CREATED
        assert platform_handler.count("hide") == 0
        assert platform_handler.count("create") == 1

    async def test_unsupported_platform_raises(self, make_handler, make_comment) -> None:
        """Test that a platform without hide support fails before posting."""
        platform = make_handler(comments=[make_comment(1)], supports_hide=False)

        with pytest.raises(HideNotSupportedError):
            await CommentHandler(platform).hide_and_new_comment("new")

        assert platform.calls == []

    async def test_unsupported_is_not_implemented(self, make_handler) -> None:
        """Test that the capability error is a NotImplementedError."""
        platform = make_handler(supports_hide=False)

        with pytest.raises(NotImplementedError):
            await CommentHandler(platform).hide_and_new_comment("new")

    async def test_failure_aborts_remaining_steps(self, make_handler, make_comment) -> None:
        """Test that a failing hide stops further hides and the create."""
        platform = make_handler(
            comments=[make_comment(1), make_comment(2), make_comment(3)],
            fail_on="hide",
            fail_after=1,
        )

        with pytest.raises(PlatformAPIError):
            await CommentHandler(platform).hide_and_new_comment("new")

        assert platform.count("hide") == 1
        assert platform.count("create") == 0


class TestDeleteAndNewComment:
    """Test deleting old comments and posting a new one."""

    async def test_deletes_all_regardless_of_hidden(self, make_handler, make_comment) -> None:
        """Test that every matching comment is deleted."""
        platform = make_handler(
            comments=[
                make_comment(1, hidden=True),
                make_comment(2),
                make_comment(3),
                make_comment(4, hidden=True),
            ],
        )

        result = await CommentHandler(platform).delete_and_new_comment("new")

        assert platform.count("delete") == 4
        assert platform.count("create") == 1
        assert result.deleted == 4
        assert [c.body for c in platform.comments] == ["new"]

    async def test_leaves_other_tags(self, make_handler, make_comment) -> None:
        """Test that comments with another tag survive."""
        platform = make_handler(comments=[make_comment(1), make_comment(2, tag="other")])

        await CommentHandler(platform).delete_and_new_comment("new")

        assert platform.count("delete") == 1
        assert len(platform.comments) == 2

    async def test_failure_aborts_create(self, make_handler, make_comment) -> None:
        """Test that a failing delete stops the create."""
        platform = make_handler(comments=[make_comment(1)], fail_on="delete")

        with pytest.raises(PlatformAPIError):
            await CommentHandler(platform).delete_and_new_comment("new")

        assert platform.count("create") == 0
