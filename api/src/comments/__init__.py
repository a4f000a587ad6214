"""Comment moderation module.

Provides:
- Comment retrieval by status and by commented content
- Spam-gated comment creation
- Moderation transitions (approve, pend, spam) and deletion
- Per-content closed comments markers

Note: Router is not exported here to avoid circular imports.
Import directly from src.comments.router when needed.
"""

from .models import (
    COMMENTS_TABLES_CQL,
    ClosedComments,
    Comment,
    CommentStatus,
)
from .service import (
    CommentError,
    CommentNotFoundError,
    CommentsClosedError,
    CommentService,
)
from .validators import CommentValidator, build_comment_validator


__all__ = [
    "COMMENTS_TABLES_CQL",
    "ClosedComments",
    "Comment",
    "CommentError",
    "CommentNotFoundError",
    "CommentService",
    "CommentStatus",
    "CommentValidator",
    "CommentsClosedError",
    "build_comment_validator",
]
