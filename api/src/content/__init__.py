"""Content lookup module.

Read-only access to host CMS content items:
- Display metadata for commented content
- Container resolution for coarse-grained comment queries
"""

from .models import CONTENT_TABLES_CQL, ContentItem, ContentItemMetadata
from .service import ContentLookup, ContentManager


__all__ = [
    "CONTENT_TABLES_CQL",
    "ContentItem",
    "ContentItemMetadata",
    "ContentLookup",
    "ContentManager",
]
