"""Cassandra adapter for the generic repository.

One table per entity type, keyed by an integer ``id``. Ids come from the
``id_sequences`` table through lightweight transactions (compare-and-set), so
concurrent writers never receive the same id.
"""

from typing import TYPE_CHECKING, Any, ClassVar, Generic, Protocol, TypeVar

import structlog

from src.core.repository import Predicate, RepositoryError


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


ID_SEQUENCES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.id_sequences (
    name TEXT PRIMARY KEY,
    last_id INT
)
"""


class CassandraEntity(Protocol):
    """Entity that knows its table and how to map to/from rows."""

    TABLE_NAME: ClassVar[str]
    id: int | None

    def to_row(self) -> dict[str, Any]: ...

    @classmethod
    def from_row(cls, row: Any) -> "CassandraEntity": ...


E = TypeVar("E", bound=CassandraEntity)


class CassandraRepository(Generic[E]):
    """Repository storing one entity type in one Cassandra table."""

    # Compare-and-set attempts before giving up on id allocation
    MAX_ID_ATTEMPTS = 10

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        entity_type: type[E],
        columns: list[str],
    ):
        """Initialize with Cassandra session, keyspace and column layout.

        Args:
            session: Session with ``aexecute`` (cassandra-asyncio-driver)
            keyspace: Keyspace holding the entity table
            entity_type: Entity class providing ``TABLE_NAME``/``from_row``
            columns: Table columns in insert order, ``id`` first
        """
        self.session = session
        self.keyspace = keyspace
        self.entity_type = entity_type
        self.table = entity_type.TABLE_NAME
        self.columns = columns
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        column_list = ", ".join(self.columns)
        placeholders = ", ".join("?" for _ in self.columns)

        self._insert = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.{self.table} ({column_list})
            VALUES ({placeholders})
        """)

        self._select_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.{self.table}
            WHERE id = ?
        """)

        self._select_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.{self.table}
        """)

        self._delete = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.{self.table}
            WHERE id = ?
        """)

        # Id allocation
        self._select_sequence = self.session.prepare(f"""
            SELECT last_id FROM {self.keyspace}.id_sequences
            WHERE name = ?
        """)

        self._init_sequence = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.id_sequences (name, last_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)

        self._advance_sequence = self.session.prepare(f"""
            UPDATE {self.keyspace}.id_sequences
            SET last_id = ?
            WHERE name = ?
            IF last_id = ?
        """)

    def _row_values(self, entity: E) -> list[Any]:
        row = entity.to_row()
        return [row[column] for column in self.columns]

    async def _next_id(self) -> int:
        """Allocate the next id for this table."""
        for _ in range(self.MAX_ID_ATTEMPTS):
            result = await self.session.aexecute(self._select_sequence, [self.table])
            row = result.one()

            if row is None:
                applied = await self.session.aexecute(
                    self._init_sequence, [self.table, 1]
                )
                if applied.was_applied:
                    return 1
                continue

            next_id = row.last_id + 1
            applied = await self.session.aexecute(
                self._advance_sequence, [next_id, self.table, row.last_id]
            )
            if applied.was_applied:
                return next_id

            logger.debug("id_allocation_contended", table=self.table)

        logger.error("id_allocation_failed", table=self.table)
        raise RepositoryError(
            f"Could not allocate an id for {self.table}", "id_allocation_failed"
        )

    async def create(self, entity: E) -> E:
        if entity.id is None:
            entity.id = await self._next_id()
        await self.session.aexecute(self._insert, self._row_values(entity))
        return entity

    async def get(self, entity_id: int) -> E | None:
        result = await self.session.aexecute(self._select_by_id, [entity_id])
        row = result.one()
        return self.entity_type.from_row(row) if row else None

    async def update(self, entity: E) -> E:
        if entity.id is None:
            raise RepositoryError(
                f"Cannot update unsaved {self.table} entity", "entity_missing"
            )
        # Cassandra inserts are upserts
        await self.session.aexecute(self._insert, self._row_values(entity))
        return entity

    async def delete(self, entity: E) -> None:
        await self.session.aexecute(self._delete, [entity.id])

    async def fetch(self, predicate: Predicate | None = None) -> list[E]:
        rows = await self.session.aexecute(self._select_all)
        entities = [self.entity_type.from_row(row) for row in rows]
        if predicate is None:
            return entities
        return [entity for entity in entities if predicate(entity)]

    async def find(self, predicate: Predicate) -> E | None:
        for entity in await self.fetch(predicate):
            return entity
        return None
