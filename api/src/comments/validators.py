"""Spam validation for new comments.

A validator answers one question: is this comment legitimate? ``True`` keeps
the comment in the moderation queue as pending, ``False`` files it as spam.
"""

import hashlib
import html
import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

import structlog

from src.core.redis import recent_comments_key

from .models import Comment


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from src.config.settings import Settings


logger = structlog.get_logger(__name__)

URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)


class CommentValidator(Protocol):
    """Classifies a candidate comment as legitimate or spam."""

    async def validate_comment(self, comment: Comment) -> bool: ...

    async def record_comment(self, comment: Comment) -> None:
        """Called once the comment is stored."""
        ...


def content_hash(content: str) -> str:
    """Fingerprint comment text for duplicate detection.

    Entities are decoded first, so raw and sanitized text hash the same.
    """
    return hashlib.sha256(html.unescape(content).encode()).hexdigest()[:32]


def author_key(comment: Comment) -> str:
    """Identity used to group an author's comments (email, else name)."""
    return (comment.email or comment.author).strip().lower()


class SpamKeywordValidator:
    """Keyword and link heuristics.

    Checks:
    - Minimum word count (shorter comments always pass)
    - Maximum URL count
    - Spam keyword presence
    """

    def __init__(self, keywords: Iterable[str], max_urls: int = 3, min_words: int = 2):
        self.keywords = {keyword.lower() for keyword in keywords}
        self.max_urls = max_urls
        self.min_words = min_words

    def is_spam(self, text: str) -> bool:
        if len(text.split()) < self.min_words:
            return False

        if len(URL_PATTERN.findall(text)) > self.max_urls:
            return True

        text_lower = text.lower()
        return any(keyword in text_lower for keyword in self.keywords)

    async def validate_comment(self, comment: Comment) -> bool:
        return not self.is_spam(comment.comment_text)

    async def record_comment(self, comment: Comment) -> None:
        return None


class DuplicateCommentValidator:
    """Rejects text an author already posted within the window.

    Keeps the last ``history_size`` text hashes per author in a Redis list
    that expires ``window_seconds`` after the latest comment. Hashes are only
    recorded for stored comments, so a failed save does not poison a retry.
    """

    def __init__(self, redis: "Redis", window_seconds: int = 3600, history_size: int = 10):
        self.redis = redis
        self.window_seconds = window_seconds
        self.history_size = history_size

    async def validate_comment(self, comment: Comment) -> bool:
        key = recent_comments_key(author_key(comment))
        hash_value = content_hash(comment.comment_text)

        recent = await self.redis.lrange(key, 0, -1)
        if hash_value in recent:
            logger.info("duplicate_comment_detected", commented_on=comment.commented_on)
            return False
        return True

    async def record_comment(self, comment: Comment) -> None:
        key = recent_comments_key(author_key(comment))
        await self.redis.lpush(key, content_hash(comment.comment_text))
        await self.redis.ltrim(key, 0, self.history_size - 1)
        await self.redis.expire(key, self.window_seconds)


class CompositeCommentValidator:
    """Legitimate only when every validator agrees; stops at the first rejection."""

    def __init__(self, validators: Sequence[CommentValidator]):
        self.validators = list(validators)

    async def validate_comment(self, comment: Comment) -> bool:
        for validator in self.validators:
            if not await validator.validate_comment(comment):
                logger.debug(
                    "comment_rejected_by_validator",
                    validator=type(validator).__name__,
                )
                return False
        return True

    async def record_comment(self, comment: Comment) -> None:
        for validator in self.validators:
            await validator.record_comment(comment)


def build_comment_validator(
    settings: "Settings", redis: "Redis | None" = None
) -> CompositeCommentValidator:
    """Assemble the validator chain from settings.

    The duplicate check is only added when a Redis client is available.
    """
    validators: list[CommentValidator] = [
        SpamKeywordValidator(
            keywords=settings.comments_spam_keywords,
            max_urls=settings.comments_max_urls,
            min_words=settings.comments_min_words,
        )
    ]
    if redis is not None:
        validators.append(
            DuplicateCommentValidator(
                redis,
                window_seconds=settings.comments_duplicate_window_seconds,
                history_size=settings.comments_duplicate_history_size,
            )
        )
    return CompositeCommentValidator(validators)
