"""Database connection module."""

from src.core.database.async_cassandra import (
    AsyncCassandraConnection,
    init_async_cassandra,
    shutdown_async_cassandra,
)
from src.core.database.repository import CassandraRepository


__all__ = [
    "AsyncCassandraConnection",
    "CassandraRepository",
    "init_async_cassandra",
    "shutdown_async_cassandra",
]
