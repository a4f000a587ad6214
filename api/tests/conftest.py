"""Shared fixtures.

The app under test uses the in-memory storage backend and no Redis.
"""

import os
import tempfile
from collections.abc import Iterator

import pytest


os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="comment-moderation-logs-"))

from fastapi.testclient import TestClient  # noqa: E402

from src.comments.models import ClosedComments, Comment  # noqa: E402
from src.comments.service import CommentService  # noqa: E402
from src.comments.validators import SpamKeywordValidator  # noqa: E402
from src.content.models import ContentItem  # noqa: E402
from src.content.service import ContentManager  # noqa: E402
from src.core.repository import InMemoryRepository  # noqa: E402


SPAM_KEYWORDS = ["casino", "buy now", "free money"]


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client with the application lifespan running."""
    from src.main import app  # noqa: PLC0415

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def content_repository() -> InMemoryRepository[ContentItem]:
    return InMemoryRepository("content_items")


@pytest.fixture
def comment_repository() -> InMemoryRepository[Comment]:
    return InMemoryRepository("comments")


@pytest.fixture
def closed_repository() -> InMemoryRepository[ClosedComments]:
    return InMemoryRepository("closed_comments")


@pytest.fixture
def content_manager(content_repository: InMemoryRepository[ContentItem]) -> ContentManager:
    return ContentManager(content_repository)


@pytest.fixture
def comment_service(
    comment_repository: InMemoryRepository[Comment],
    closed_repository: InMemoryRepository[ClosedComments],
    content_manager: ContentManager,
) -> CommentService:
    """CommentService over in-memory repositories and the keyword validator."""
    return CommentService(
        comments=comment_repository,
        closed_comments=closed_repository,
        validator=SpamKeywordValidator(SPAM_KEYWORDS),
        content=content_manager,
    )
