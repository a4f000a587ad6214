"""Generic repository interface and in-memory adapter.

Services depend on ``Repository[T]`` only; the backing store (an in-memory
map or a Cassandra table) is chosen at startup. Entities are dataclasses with
an integer ``id`` that the repository assigns on ``create`` when it is
``None``.
"""

import dataclasses
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar

import structlog


logger = structlog.get_logger(__name__)


class Entity(Protocol):
    """Anything stored through a repository."""

    id: int | None


T = TypeVar("T", bound=Entity)

Predicate = Callable[[Any], bool]


class RepositoryError(Exception):
    """Storage failure surfaced by a repository adapter."""

    def __init__(self, message: str, code: str = "repository_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class Repository(Protocol[T]):
    """Storage contract shared by every adapter."""

    async def create(self, entity: T) -> T:
        """Persist a new entity, assigning its id when missing."""
        ...

    async def get(self, entity_id: int) -> T | None:
        """Point lookup by id."""
        ...

    async def update(self, entity: T) -> T:
        """Persist changes to an existing entity."""
        ...

    async def delete(self, entity: T) -> None:
        """Remove an entity."""
        ...

    async def fetch(self, predicate: Predicate | None = None) -> list[T]:
        """Scan all entities, keeping those matching ``predicate``."""
        ...

    async def find(self, predicate: Predicate) -> T | None:
        """First entity matching ``predicate``."""
        ...


class InMemoryRepository(Generic[T]):
    """Dict-backed repository with sequential ids starting at 1.

    Entities are copied on the way in and out, so mutations are only
    visible after ``update``.
    """

    def __init__(self, name: str = "entities") -> None:
        self.name = name
        self._items: dict[int, T] = {}
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._items)

    async def create(self, entity: T) -> T:
        if entity.id is None:
            self._last_id += 1
            entity.id = self._last_id
        else:
            self._last_id = max(self._last_id, entity.id)
        self._items[entity.id] = dataclasses.replace(entity)
        logger.debug("entity_created", repository=self.name, entity_id=entity.id)
        return entity

    async def get(self, entity_id: int) -> T | None:
        stored = self._items.get(entity_id)
        return dataclasses.replace(stored) if stored is not None else None

    async def update(self, entity: T) -> T:
        if entity.id not in self._items:
            raise RepositoryError(
                f"{self.name} entity {entity.id} does not exist", "entity_missing"
            )
        self._items[entity.id] = dataclasses.replace(entity)
        return entity

    async def delete(self, entity: T) -> None:
        self._items.pop(entity.id, None)

    async def fetch(self, predicate: Predicate | None = None) -> list[T]:
        return [
            dataclasses.replace(item)
            for item in self._items.values()
            if predicate is None or predicate(item)
        ]

    async def find(self, predicate: Predicate) -> T | None:
        for item in self._items.values():
            if predicate(item):
                return dataclasses.replace(item)
        return None
