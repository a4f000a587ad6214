"""Tests for ContentManager."""

import pytest

from src.content.models import ContentItem
from src.content.service import ContentManager
from src.core.repository import InMemoryRepository


@pytest.fixture
async def repository() -> InMemoryRepository[ContentItem]:
    repository: InMemoryRepository[ContentItem] = InMemoryRepository("content_items")
    await repository.create(
        ContentItem(id=7, content_type="Blog", display_text="Cooking Blog", slug="cooking")
    )
    await repository.create(
        ContentItem(
            id=42,
            content_type="BlogPost",
            display_text="Hello World",
            slug="hello-world",
            container_id=7,
        )
    )
    await repository.create(ContentItem(id=50, content_type="Page", display_text="About"))
    return repository


@pytest.mark.asyncio
async def test_get(repository):
    manager = ContentManager(repository)

    item = await manager.get(42)

    assert item.display_text == "Hello World"
    assert await manager.get(999) is None


@pytest.mark.asyncio
async def test_try_get_container_of(repository):
    manager = ContentManager(repository)

    assert await manager.try_get_container_of(42) == 7
    assert await manager.try_get_container_of(7) is None
    assert await manager.try_get_container_of(999) is None


@pytest.mark.asyncio
async def test_item_metadata_uses_templates(repository):
    manager = ContentManager(
        repository,
        display_url_template="https://site.example/{slug}",
        edit_url_template="/edit/{content_type}/{content_id}",
    )

    metadata = await manager.get_item_metadata(await manager.get(42))

    assert metadata.content_id == 42
    assert metadata.content_type == "BlogPost"
    assert metadata.display_url == "https://site.example/hello-world"
    assert metadata.edit_url == "/edit/BlogPost/42"


@pytest.mark.asyncio
async def test_item_metadata_without_slug_uses_id(repository):
    manager = ContentManager(repository)

    metadata = await manager.get_item_metadata(await manager.get(50))

    assert metadata.display_url == "/Page/50"
