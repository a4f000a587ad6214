"""Comment moderation service layer.

Business logic for:
- Comment retrieval (all, by status, by commented content)
- Creation gated by spam validation
- Status transitions (approve, pend, mark as spam) and deletion
- Per-content "comments closed" markers
"""

import html

import structlog

from src.content.models import ContentItemMetadata
from src.content.service import ContentLookup
from src.core.repository import Repository

from .models import ClosedComments, Comment, CommentStatus
from .validators import CommentValidator


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CommentNotFoundError(CommentError):
    """Comment not found."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class CommentsClosedError(CommentError):
    """Commenting is disabled for the content item."""

    def __init__(self, message: str = "Comments are closed for this content"):
        super().__init__(message, "comments_closed")


# ==============================================================================
# Content Sanitization
# ==============================================================================


# Allowed HTML tags (basic formatting only)
ALLOWED_TAGS = {"b", "i", "em", "strong", "code", "pre"}


def sanitize_content(content: str) -> str:
    """Escape HTML, re-enabling only the basic formatting tags.

    Already sanitized text comes back unchanged, so a comment read from the
    store can be written back without double escaping.
    """
    escaped = html.escape(html.unescape(content))

    for tag in ALLOWED_TAGS:
        escaped = escaped.replace(f"&lt;{tag}&gt;", f"<{tag}>")
        escaped = escaped.replace(f"&lt;/{tag}&gt;", f"</{tag}>")

    return escaped


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for comment moderation."""

    def __init__(
        self,
        comments: Repository[Comment],
        closed_comments: Repository[ClosedComments],
        validator: CommentValidator,
        content: ContentLookup,
    ):
        self.comments = comments
        self.closed_comments = closed_comments
        self.validator = validator
        self.content = content

    # ==========================================================================
    # Retrieval
    # ==========================================================================

    async def get_comments(self, status: CommentStatus | None = None) -> list[Comment]:
        """All comments, optionally only those with ``status``."""
        if status is None:
            return await self.comments.fetch()
        return await self.comments.fetch(lambda comment: comment.status == status)

    async def get_comments_for_commented_content(
        self, content_id: int, status: CommentStatus | None = None
    ) -> list[Comment]:
        """Comments left on one content item, optionally filtered by status."""
        return await self.comments.fetch(
            lambda comment: comment.commented_on == content_id
            and (status is None or comment.status == status)
        )

    async def get_comment(self, comment_id: int) -> Comment | None:
        return await self.comments.get(comment_id)

    async def get_display_for_commented_content(
        self, content_id: int
    ) -> ContentItemMetadata | None:
        """Display metadata of the commented item, None if it no longer exists."""
        item = await self.content.get(content_id)
        if item is None:
            return None
        return await self.content.get_item_metadata(item)

    # ==========================================================================
    # Creation and updates
    # ==========================================================================

    async def create_comment(self, comment: Comment) -> Comment:
        """Validate, link to the content's container, and persist a comment.

        Comments failing validation are kept, with status spam.
        """
        is_valid = await self.validator.validate_comment(comment)
        comment.status = CommentStatus.PENDING if is_valid else CommentStatus.SPAM

        # Store the container id for coarse-grained queries, e.g. a whole blog
        container_id = await self.content.try_get_container_of(comment.commented_on)
        if container_id is not None:
            comment.commented_on_container = container_id

        comment.comment_text = sanitize_content(comment.comment_text)

        comment = await self.comments.create(comment)
        await self.validator.record_comment(comment)

        logger.info(
            "comment_created",
            comment_id=comment.id,
            commented_on=comment.commented_on,
            commented_on_container=comment.commented_on_container,
            status=comment.status.value,
        )
        return comment

    async def _get_existing(self, comment_id: int) -> Comment:
        comment = await self.comments.get(comment_id)
        if comment is None:
            raise CommentNotFoundError(f"Comment {comment_id} not found")
        return comment

    async def update_comment(
        self,
        comment_id: int,
        name: str,
        email: str | None,
        site_name: str | None,
        comment_text: str,
        status: CommentStatus,
    ) -> Comment:
        """Overwrite every mutable field of a comment."""
        comment = await self._get_existing(comment_id)
        comment.author = name
        comment.email = email
        comment.site_name = site_name
        comment.comment_text = sanitize_content(comment_text)
        comment.status = status

        comment = await self.comments.update(comment)
        logger.info("comment_updated", comment_id=comment_id, status=status.value)
        return comment

    async def _set_status(self, comment_id: int, status: CommentStatus) -> Comment:
        comment = await self._get_existing(comment_id)
        previous = comment.status
        comment.status = status

        comment = await self.comments.update(comment)
        logger.info(
            "comment_status_changed",
            comment_id=comment_id,
            previous_status=previous.value,
            status=status.value,
        )
        return comment

    async def approve_comment(self, comment_id: int) -> Comment:
        return await self._set_status(comment_id, CommentStatus.APPROVED)

    async def pend_comment(self, comment_id: int) -> Comment:
        return await self._set_status(comment_id, CommentStatus.PENDING)

    async def mark_comment_as_spam(self, comment_id: int) -> Comment:
        return await self._set_status(comment_id, CommentStatus.SPAM)

    async def delete_comment(self, comment_id: int) -> None:
        comment = await self._get_existing(comment_id)
        await self.comments.delete(comment)
        logger.info("comment_deleted", comment_id=comment_id)

    # ==========================================================================
    # Closed comments
    # ==========================================================================

    async def _find_closed_marker(self, content_id: int) -> ClosedComments | None:
        return await self.closed_comments.find(
            lambda marker: marker.content_item_id == content_id
        )

    async def comments_closed_for_commented_content(self, content_id: int) -> bool:
        return await self._find_closed_marker(content_id) is not None

    async def close_comments_for_commented_content(self, content_id: int) -> None:
        """Insert a closed marker for the content item.

        Closing already-closed content inserts another marker.
        """
        if await self._find_closed_marker(content_id) is not None:
            logger.warning("comments_already_closed", content_id=content_id)

        await self.closed_comments.create(ClosedComments(content_item_id=content_id))
        logger.info("comments_closed", content_id=content_id)

    async def enable_comments_for_commented_content(self, content_id: int) -> None:
        """Remove the closed marker, if any."""
        marker = await self._find_closed_marker(content_id)
        if marker is not None:
            await self.closed_comments.delete(marker)
            logger.info("comments_enabled", content_id=content_id)
