"""Database models for comment moderation.

Cassandra table definitions for:
- Comments: one row per comment, with the commented content and its container
- Closed comments: markers whose presence disables commenting on a content item
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar


class CommentStatus(str, Enum):
    """Moderation status of a comment."""

    PENDING = "pending"
    APPROVED = "approved"
    SPAM = "spam"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    id INT PRIMARY KEY,
    author TEXT,
    email TEXT,
    site_name TEXT,
    comment_text TEXT,
    status TEXT,
    commented_on INT,
    commented_on_container INT,
    created_at TIMESTAMP
)
"""

CLOSED_COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.closed_comments (
    id INT PRIMARY KEY,
    content_item_id INT
)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    CLOSED_COMMENTS_TABLE_CQL,
]

COMMENT_COLUMNS = [
    "id",
    "author",
    "email",
    "site_name",
    "comment_text",
    "status",
    "commented_on",
    "commented_on_container",
    "created_at",
]

CLOSED_COMMENTS_COLUMNS = ["id", "content_item_id"]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment left on a content item."""

    TABLE_NAME: ClassVar[str] = "comments"

    author: str
    comment_text: str
    commented_on: int
    email: str | None = None
    site_name: str | None = None
    status: CommentStatus = CommentStatus.PENDING
    # Container of the commented content, for queries across a whole blog
    commented_on_container: int | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls(
            id=row.id,
            author=row.author or "",
            email=row.email,
            site_name=row.site_name,
            comment_text=row.comment_text or "",
            status=CommentStatus(row.status),
            commented_on=row.commented_on,
            commented_on_container=row.commented_on_container,
            created_at=row.created_at,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author": self.author,
            "email": self.email,
            "site_name": self.site_name,
            "comment_text": self.comment_text,
            "status": self.status.value,
            "commented_on": self.commented_on,
            "commented_on_container": self.commented_on_container,
            "created_at": self.created_at,
        }


@dataclass
class ClosedComments:
    """Marker disabling new comments on a content item."""

    TABLE_NAME: ClassVar[str] = "closed_comments"

    content_item_id: int
    id: int | None = None

    @classmethod
    def from_row(cls, row: Any) -> "ClosedComments":
        """Create ClosedComments from Cassandra row."""
        return cls(id=row.id, content_item_id=row.content_item_id)

    def to_row(self) -> dict[str, Any]:
        return {"id": self.id, "content_item_id": self.content_item_id}
