"""Tests for CommentService.

Covers:
- Retrieval with and without status filters
- Spam-gated creation and container linking
- Status transitions, updates and deletion
- Closing and enabling comments per content item
"""

from unittest.mock import AsyncMock, Mock

import pytest

from src.comments.models import ClosedComments, Comment, CommentStatus
from src.comments.service import (
    CommentNotFoundError,
    CommentService,
    sanitize_content,
)
from src.content.models import ContentItem
from src.core.repository import InMemoryRepository, RepositoryError


@pytest.fixture
async def blog_post(content_repository: InMemoryRepository[ContentItem]) -> ContentItem:
    """Blog post 42 living in blog 7."""
    return await content_repository.create(
        ContentItem(
            id=42,
            content_type="BlogPost",
            display_text="Hello World",
            slug="hello-world",
            container_id=7,
        )
    )


def make_comment(commented_on: int = 42, text: str = "Great post, thanks!") -> Comment:
    return Comment(
        author="Ana",
        email="ana@example.com",
        comment_text=text,
        commented_on=commented_on,
    )


class TestCreateComment:
    """Tests for create_comment."""

    @pytest.mark.asyncio
    async def test_valid_comment_is_pending_and_linked_to_container(
        self, comment_service: CommentService, blog_post: ContentItem
    ):
        """First comment on post 42 gets id 1, pending status and container 7."""
        comment = await comment_service.create_comment(make_comment())

        assert comment.id == 1
        assert comment.status == CommentStatus.PENDING
        assert comment.commented_on == 42
        assert comment.commented_on_container == 7

        stored = await comment_service.get_comment(1)
        assert stored is not None
        assert stored.status == CommentStatus.PENDING
        assert stored.commented_on_container == 7

    @pytest.mark.asyncio
    async def test_rejected_comment_is_stored_as_spam(
        self, comment_service: CommentService, blog_post: ContentItem
    ):
        """A comment the validator rejects is persisted with spam status."""
        comment = await comment_service.create_comment(
            make_comment(text="Visit my casino for free money")
        )

        assert comment.status == CommentStatus.SPAM
        stored = await comment_service.get_comment(comment.id)
        assert stored is not None
        assert stored.status == CommentStatus.SPAM

    @pytest.mark.asyncio
    async def test_comment_on_missing_content_has_no_container(
        self, comment_service: CommentService
    ):
        comment = await comment_service.create_comment(make_comment(commented_on=999))

        assert comment.id == 1
        assert comment.commented_on_container is None

    @pytest.mark.asyncio
    async def test_requested_status_is_overridden(
        self, comment_service: CommentService, blog_post: ContentItem
    ):
        """Callers cannot create pre-approved comments."""
        candidate = make_comment()
        candidate.status = CommentStatus.APPROVED

        comment = await comment_service.create_comment(candidate)

        assert comment.status == CommentStatus.PENDING

    @pytest.mark.asyncio
    async def test_validator_sees_the_comment(
        self,
        comment_repository: InMemoryRepository[Comment],
        closed_repository: InMemoryRepository[ClosedComments],
        content_manager,
    ):
        validator = AsyncMock()
        validator.validate_comment = AsyncMock(return_value=False)
        service = CommentService(
            comment_repository, closed_repository, validator, content_manager
        )

        comment = await service.create_comment(make_comment(commented_on=5))

        validator.validate_comment.assert_awaited_once()
        assert validator.validate_comment.await_args.args[0].commented_on == 5
        assert comment.status == CommentStatus.SPAM

    @pytest.mark.asyncio
    async def test_validator_error_persists_nothing(
        self,
        comment_repository: InMemoryRepository[Comment],
        closed_repository: InMemoryRepository[ClosedComments],
        content_manager,
    ):
        validator = Mock(
            validate_comment=AsyncMock(side_effect=RuntimeError("redis down")),
            record_comment=AsyncMock(),
        )
        service = CommentService(
            comment_repository, closed_repository, validator, content_manager
        )

        with pytest.raises(RuntimeError):
            await service.create_comment(make_comment())

        assert await service.get_comments() == []
        validator.record_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_content_lookup_error_persists_nothing(
        self,
        comment_repository: InMemoryRepository[Comment],
        closed_repository: InMemoryRepository[ClosedComments],
    ):
        validator = Mock(
            validate_comment=AsyncMock(return_value=True),
            record_comment=AsyncMock(),
        )
        content = Mock(
            try_get_container_of=AsyncMock(side_effect=RuntimeError("cms down"))
        )
        service = CommentService(comment_repository, closed_repository, validator, content)

        with pytest.raises(RuntimeError):
            await service.create_comment(make_comment())

        assert await service.get_comments() == []
        validator.record_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validator_records_only_stored_comments(
        self,
        closed_repository: InMemoryRepository[ClosedComments],
        content_manager,
    ):
        """A failed save must not leave a duplicate fingerprint behind."""
        validator = Mock(
            validate_comment=AsyncMock(return_value=True),
            record_comment=AsyncMock(),
        )
        comments = Mock(create=AsyncMock(side_effect=RepositoryError("write failed")))
        service = CommentService(comments, closed_repository, validator, content_manager)

        with pytest.raises(RepositoryError):
            await service.create_comment(make_comment())

        validator.record_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validator_records_created_comment(
        self,
        comment_repository: InMemoryRepository[Comment],
        closed_repository: InMemoryRepository[ClosedComments],
        content_manager,
    ):
        validator = Mock(
            validate_comment=AsyncMock(return_value=True),
            record_comment=AsyncMock(),
        )
        service = CommentService(
            comment_repository, closed_repository, validator, content_manager
        )

        comment = await service.create_comment(make_comment())

        validator.record_comment.assert_awaited_once()
        assert validator.record_comment.await_args.args[0].id == comment.id

    @pytest.mark.asyncio
    async def test_comment_text_is_sanitized(
        self, comment_service: CommentService, blog_post: ContentItem
    ):
        comment = await comment_service.create_comment(
            make_comment(text="<b>Nice</b> <script>alert(1)</script>")
        )

        assert comment.comment_text == "<b>Nice</b> &lt;script&gt;alert(1)&lt;/script&gt;"

    @pytest.mark.asyncio
    async def test_ids_are_sequential(
        self, comment_service: CommentService, blog_post: ContentItem
    ):
        first = await comment_service.create_comment(make_comment())
        second = await comment_service.create_comment(make_comment(text="Another one here"))

        assert (first.id, second.id) == (1, 2)


class TestGetComments:
    """Tests for comment retrieval."""

    @pytest.fixture
    async def seeded(self, comment_service: CommentService, blog_post: ContentItem):
        """Two pending comments on 42, one spam on 42, one pending on 43."""
        await comment_service.create_comment(make_comment(text="First comment here"))
        await comment_service.create_comment(make_comment(text="Second comment here"))
        await comment_service.create_comment(make_comment(text="buy now cheap pills"))
        await comment_service.create_comment(
            make_comment(commented_on=43, text="Comment on another post")
        )
        return comment_service

    @pytest.mark.asyncio
    async def test_get_comments_returns_all(self, seeded: CommentService):
        comments = await seeded.get_comments()
        assert {comment.id for comment in comments} == {1, 2, 3, 4}

    @pytest.mark.asyncio
    async def test_get_comments_filters_by_status(self, seeded: CommentService):
        pending = await seeded.get_comments(CommentStatus.PENDING)
        spam = await seeded.get_comments(CommentStatus.SPAM)
        approved = await seeded.get_comments(CommentStatus.APPROVED)

        assert {comment.id for comment in pending} == {1, 2, 4}
        assert [comment.id for comment in spam] == [3]
        assert approved == []

    @pytest.mark.asyncio
    async def test_get_comments_for_content(self, seeded: CommentService):
        comments = await seeded.get_comments_for_commented_content(42)
        assert {comment.id for comment in comments} == {1, 2, 3}
        assert all(comment.commented_on == 42 for comment in comments)

    @pytest.mark.asyncio
    async def test_get_comments_for_content_with_status(self, seeded: CommentService):
        comments = await seeded.get_comments_for_commented_content(
            42, CommentStatus.PENDING
        )
        assert {comment.id for comment in comments} == {1, 2}

    @pytest.mark.asyncio
    async def test_get_comments_for_content_without_comments(
        self, seeded: CommentService
    ):
        assert await seeded.get_comments_for_commented_content(1000) == []

    @pytest.mark.asyncio
    async def test_get_comment_missing_returns_none(self, comment_service: CommentService):
        assert await comment_service.get_comment(999) is None


class TestGetDisplay:
    """Tests for get_display_for_commented_content."""

    @pytest.mark.asyncio
    async def test_returns_content_metadata(
        self, comment_service: CommentService, blog_post: ContentItem
    ):
        metadata = await comment_service.get_display_for_commented_content(42)

        assert metadata is not None
        assert metadata.content_id == 42
        assert metadata.display_text == "Hello World"
        assert metadata.display_url == "/BlogPost/hello-world"
        assert metadata.edit_url == "/admin/contents/42/edit"

    @pytest.mark.asyncio
    async def test_missing_content_returns_none(self, comment_service: CommentService):
        assert await comment_service.get_display_for_commented_content(999) is None


class TestModeration:
    """Tests for status transitions, updates and deletion."""

    @pytest.fixture
    async def comment(self, comment_service: CommentService, blog_post: ContentItem):
        return await comment_service.create_comment(make_comment())

    @pytest.mark.asyncio
    async def test_approve_comment(self, comment_service: CommentService, comment: Comment):
        result = await comment_service.approve_comment(comment.id)

        assert result.status == CommentStatus.APPROVED
        stored = await comment_service.get_comment(comment.id)
        assert stored.status == CommentStatus.APPROVED

    @pytest.mark.asyncio
    async def test_pend_comment(self, comment_service: CommentService, comment: Comment):
        await comment_service.approve_comment(comment.id)

        await comment_service.pend_comment(comment.id)

        stored = await comment_service.get_comment(comment.id)
        assert stored.status == CommentStatus.PENDING

    @pytest.mark.asyncio
    async def test_mark_comment_as_spam(
        self, comment_service: CommentService, comment: Comment
    ):
        await comment_service.mark_comment_as_spam(comment.id)

        stored = await comment_service.get_comment(comment.id)
        assert stored.status == CommentStatus.SPAM

    @pytest.mark.asyncio
    async def test_transitions_keep_other_fields(
        self, comment_service: CommentService, comment: Comment
    ):
        await comment_service.approve_comment(comment.id)

        stored = await comment_service.get_comment(comment.id)
        assert stored.author == comment.author
        assert stored.comment_text == comment.comment_text
        assert stored.commented_on_container == 7

    @pytest.mark.asyncio
    async def test_update_comment_overwrites_fields(
        self, comment_service: CommentService, comment: Comment
    ):
        await comment_service.update_comment(
            comment.id,
            name="Ana Maria",
            email=None,
            site_name="https://ana.example.com",
            comment_text="Edited text",
            status=CommentStatus.APPROVED,
        )

        stored = await comment_service.get_comment(comment.id)
        assert stored.author == "Ana Maria"
        assert stored.email is None
        assert stored.site_name == "https://ana.example.com"
        assert stored.comment_text == "Edited text"
        assert stored.status == CommentStatus.APPROVED
        assert stored.commented_on == 42

    @pytest.mark.asyncio
    async def test_update_with_stored_text_keeps_it_unchanged(
        self, comment_service: CommentService, blog_post: ContentItem
    ):
        """Saving a comment back as read must not escape it a second time."""
        created = await comment_service.create_comment(
            make_comment(text="Tom & Jerry <b>rock</b>")
        )
        stored = await comment_service.get_comment(created.id)

        for _ in range(2):
            await comment_service.update_comment(
                stored.id,
                name=stored.author,
                email=stored.email,
                site_name=stored.site_name,
                comment_text=stored.comment_text,
                status=CommentStatus.APPROVED,
            )

        updated = await comment_service.get_comment(created.id)
        assert updated.comment_text == "Tom &amp; Jerry <b>rock</b>"
        assert updated.comment_text == stored.comment_text

    @pytest.mark.asyncio
    async def test_delete_comment(self, comment_service: CommentService, comment: Comment):
        await comment_service.delete_comment(comment.id)

        assert await comment_service.get_comment(comment.id) is None
        assert await comment_service.get_comments() == []

    @pytest.mark.parametrize(
        "operation",
        ["approve_comment", "pend_comment", "mark_comment_as_spam", "delete_comment"],
    )
    @pytest.mark.asyncio
    async def test_unknown_comment_raises_not_found(
        self, comment_service: CommentService, operation: str
    ):
        with pytest.raises(CommentNotFoundError) as exc_info:
            await getattr(comment_service, operation)(999)

        assert exc_info.value.code == "comment_not_found"

    @pytest.mark.asyncio
    async def test_update_unknown_comment_raises_not_found(
        self, comment_service: CommentService
    ):
        with pytest.raises(CommentNotFoundError):
            await comment_service.update_comment(
                999,
                name="Ana",
                email=None,
                site_name=None,
                comment_text="text",
                status=CommentStatus.PENDING,
            )


class TestClosedComments:
    """Tests for closing and enabling comments."""

    @pytest.mark.asyncio
    async def test_comments_open_by_default(self, comment_service: CommentService):
        assert await comment_service.comments_closed_for_commented_content(42) is False

    @pytest.mark.asyncio
    async def test_close_comments(self, comment_service: CommentService):
        await comment_service.close_comments_for_commented_content(42)

        assert await comment_service.comments_closed_for_commented_content(42) is True
        assert await comment_service.comments_closed_for_commented_content(43) is False

    @pytest.mark.asyncio
    async def test_enable_comments(self, comment_service: CommentService):
        await comment_service.close_comments_for_commented_content(42)

        await comment_service.enable_comments_for_commented_content(42)

        assert await comment_service.comments_closed_for_commented_content(42) is False

    @pytest.mark.asyncio
    async def test_enable_open_content_is_noop(
        self,
        comment_service: CommentService,
        closed_repository: InMemoryRepository[ClosedComments],
    ):
        await comment_service.enable_comments_for_commented_content(42)

        assert await comment_service.comments_closed_for_commented_content(42) is False
        assert len(closed_repository) == 0

    @pytest.mark.asyncio
    async def test_closing_twice_adds_second_marker(
        self,
        comment_service: CommentService,
        closed_repository: InMemoryRepository[ClosedComments],
    ):
        """A second close inserts another marker; one enable removes only one."""
        await comment_service.close_comments_for_commented_content(42)
        await comment_service.close_comments_for_commented_content(42)

        assert len(closed_repository) == 2

        await comment_service.enable_comments_for_commented_content(42)

        assert await comment_service.comments_closed_for_commented_content(42) is True

        await comment_service.enable_comments_for_commented_content(42)

        assert await comment_service.comments_closed_for_commented_content(42) is False

    @pytest.mark.asyncio
    async def test_service_does_not_block_creation_on_closed_content(
        self, comment_service: CommentService
    ):
        """Closed state is enforced by callers, not by create_comment."""
        await comment_service.close_comments_for_commented_content(42)

        comment = await comment_service.create_comment(make_comment())

        assert comment.id == 1


class TestSanitizeContent:
    """Tests for sanitize_content."""

    def test_escapes_script_tags(self):
        assert sanitize_content("<script>x</script>") == "&lt;script&gt;x&lt;/script&gt;"

    def test_keeps_basic_formatting(self):
        assert sanitize_content("<em>a</em> <code>b</code>") == "<em>a</em> <code>b</code>"

    def test_escapes_quotes(self):
        assert sanitize_content('say "hi"') == "say &quot;hi&quot;"

    def test_sanitized_text_is_unchanged(self):
        once = sanitize_content('Tom & Jerry <i>"rock"</i> <script>')
        assert sanitize_content(once) == once
