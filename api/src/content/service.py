"""Content lookup used by the comment service."""

from typing import Protocol

import structlog

from src.core.repository import Repository

from .models import ContentItem, ContentItemMetadata


logger = structlog.get_logger(__name__)


class ContentLookup(Protocol):
    """Read-only view of the host CMS content items."""

    async def get(self, content_id: int) -> ContentItem | None: ...

    async def get_item_metadata(self, item: ContentItem) -> ContentItemMetadata: ...

    async def try_get_container_of(self, content_id: int) -> int | None: ...


class ContentManager:
    """Resolves content items through a repository.

    Display and edit URLs are rendered from templates that may reference
    ``content_id``, ``content_type`` and ``slug``.
    """

    def __init__(
        self,
        repository: Repository[ContentItem],
        display_url_template: str = "/{content_type}/{slug}",
        edit_url_template: str = "/admin/contents/{content_id}/edit",
    ):
        self.repository = repository
        self.display_url_template = display_url_template
        self.edit_url_template = edit_url_template

    async def get(self, content_id: int) -> ContentItem | None:
        """Get a content item, or None if it no longer exists."""
        return await self.repository.get(content_id)

    async def get_item_metadata(self, item: ContentItem) -> ContentItemMetadata:
        """Build display metadata for a content item."""
        values = {
            "content_id": item.id,
            "content_type": item.content_type,
            # Items without a slug are addressed by id
            "slug": item.slug or item.id,
        }
        return ContentItemMetadata(
            content_id=item.id,
            content_type=item.content_type,
            display_text=item.display_text,
            display_url=self.display_url_template.format(**values),
            edit_url=self.edit_url_template.format(**values),
        )

    async def try_get_container_of(self, content_id: int) -> int | None:
        """Id of the item's container, if the item exists and has one."""
        item = await self.repository.get(content_id)
        if item is None:
            logger.debug("content_item_missing", content_id=content_id)
            return None
        return item.container_id
