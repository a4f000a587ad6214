"""Content item models.

Content items belong to the host CMS; this service only reads them to resolve
display metadata and the container ("common aspect") of commented content.
"""

from dataclasses import dataclass
from typing import Any, ClassVar


CONTENT_ITEM_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.content_items (
    id INT PRIMARY KEY,
    content_type TEXT,
    display_text TEXT,
    slug TEXT,
    container_id INT
)
"""

CONTENT_TABLES_CQL = [CONTENT_ITEM_TABLE_CQL]

CONTENT_ITEM_COLUMNS = ["id", "content_type", "display_text", "slug", "container_id"]


@dataclass
class ContentItem:
    """A content item comments can attach to (e.g. a blog post)."""

    TABLE_NAME: ClassVar[str] = "content_items"

    id: int | None
    content_type: str
    display_text: str
    slug: str | None = None
    # Parent grouping, e.g. the blog a post belongs to
    container_id: int | None = None

    @classmethod
    def from_row(cls, row: Any) -> "ContentItem":
        """Create ContentItem from Cassandra row."""
        return cls(
            id=row.id,
            content_type=row.content_type,
            display_text=row.display_text or "",
            slug=row.slug,
            container_id=row.container_id,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content_type": self.content_type,
            "display_text": self.display_text,
            "slug": self.slug,
            "container_id": self.container_id,
        }


@dataclass(frozen=True)
class ContentItemMetadata:
    """How a content item is shown and where it is edited."""

    content_id: int
    content_type: str
    display_text: str
    display_url: str
    edit_url: str
