"""Pydantic schemas for comment moderation.

Request/Response models with validation for:
- Comment creation and updates
- Comment listings
- Commented content display and closed state
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Comment, CommentStatus


# ==============================================================================
# Request Schemas
# ==============================================================================


def _strip_required(value: str, field_name: str) -> str:
    value = value.strip()
    if not value:
        msg = f"{field_name} cannot be empty"
        raise ValueError(msg)
    return value


class CreateCommentRequest(BaseModel):
    """Request to comment on a content item."""

    commented_on: int = Field(..., ge=1, description="Content item id")
    author: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    site_name: str | None = Field(None, max_length=255)
    comment_text: str = Field(..., min_length=1, max_length=10000)

    @field_validator("author")
    @classmethod
    def validate_author(cls, v: str) -> str:
        return _strip_required(v, "Author")

    @field_validator("comment_text")
    @classmethod
    def validate_comment_text(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _strip_required(v, "Comment text")

    def to_comment(self) -> Comment:
        return Comment(
            author=self.author,
            email=self.email,
            site_name=self.site_name,
            comment_text=self.comment_text,
            commented_on=self.commented_on,
        )


class UpdateCommentRequest(BaseModel):
    """Request to overwrite a comment's fields."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    site_name: str | None = Field(None, max_length=255)
    comment_text: str = Field(..., min_length=1, max_length=10000)
    status: CommentStatus

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v, "Name")

    @field_validator("comment_text")
    @classmethod
    def validate_comment_text(cls, v: str) -> str:
        return _strip_required(v, "Comment text")


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Response for a single comment."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    author: str
    email: str | None = None
    site_name: str | None = None
    comment_text: str
    status: CommentStatus
    commented_on: int
    commented_on_container: int | None = None
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Any) -> "CommentResponse":
        """Create response from Comment entity."""
        return cls(
            id=comment.id,
            author=comment.author,
            email=comment.email,
            site_name=comment.site_name,
            comment_text=comment.comment_text,
            status=comment.status,
            commented_on=comment.commented_on,
            commented_on_container=comment.commented_on_container,
            created_at=comment.created_at,
        )


class CommentListResponse(BaseModel):
    """List of comments."""

    items: list[CommentResponse]
    total: int

    @classmethod
    def from_comments(cls, comments: list[Any]) -> "CommentListResponse":
        return cls(
            items=[CommentResponse.from_comment(comment) for comment in comments],
            total=len(comments),
        )


class ContentDisplayResponse(BaseModel):
    """Display metadata of a commented content item."""

    model_config = ConfigDict(from_attributes=True)

    content_id: int
    content_type: str
    display_text: str
    display_url: str
    edit_url: str


class CommentsClosedResponse(BaseModel):
    """Whether commenting is closed on a content item."""

    content_id: int
    closed: bool
