"""
PostgreSQL Entity Store Base

One row per entity keyed by its identifier. Existence is checked
read-before-write under a per-store asyncio lock rather than relying on
table constraints; the check only serializes callers within this process.
Side rows are deleted before the entity row, so a failed removal leaves the
entity resolvable.
"""

# Standard library imports
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

# Local imports
from system_model.application.interfaces.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    StoreUnavailableError,
)
from system_model.infrastructure.database.adapter import PostgreSQLAdapter

logger = logging.getLogger(__name__)

V = TypeVar("V")


class PostgreSQLEntityStore(Generic[V]):
    """
    Base class for single-table PostgreSQL stores.

    Subclasses name the table, its key column and its data columns, and map
    between rows and entities. SQL is assembled from these class constants
    only, never from caller input.
    """

    entity_type = "Entity"
    table = ""
    key_column = ""
    columns: tuple[str, ...] = ()

    def __init__(self, adapter: PostgreSQLAdapter) -> None:
        """
        Initialize store with database adapter.

        Args:
            adapter: PostgreSQL database adapter
        """
        self.adapter = adapter
        self._lock = asyncio.Lock()

    # Mapping
    def _key(self, entity: V) -> str:
        raise NotImplementedError

    def _map_entity_to_values(self, entity: V) -> tuple[Any, ...]:
        """Values for ``columns``, in order, excluding the key."""
        raise NotImplementedError

    def _map_record_to_entity(self, record: dict[str, Any]) -> V:
        raise NotImplementedError

    # SQL
    @property
    def _select_sql(self) -> str:
        names = ", ".join((self.key_column, *self.columns))
        return f"SELECT {names} FROM {self.table} WHERE {self.key_column} = %s"  # nosec B608

    @property
    def _insert_sql(self) -> str:
        names = ", ".join((self.key_column, *self.columns))
        placeholders = ", ".join(["%s"] * (len(self.columns) + 1))
        return f"INSERT INTO {self.table} ({names}) VALUES ({placeholders})"  # nosec B608

    @property
    def _update_sql(self) -> str:
        assignments = ", ".join(f"{column} = %s" for column in self.columns)
        return f"UPDATE {self.table} SET {assignments} WHERE {self.key_column} = %s"  # nosec B608

    @asynccontextmanager
    async def _locked(self, **identifiers: str) -> AsyncIterator[None]:
        """Hold the store lock. Unavailable errors raised inside carry ``identifiers``."""
        async with self._lock:
            try:
                yield
            except StoreUnavailableError as e:
                e.identifiers = {**identifiers, **e.identifiers}
                raise

    def _identifiers(self, key: str) -> dict[str, str]:
        return {f"{self.entity_type.lower()}_id": key}

    # Operations
    async def _exists_unlocked(self, key: str) -> bool:
        record = await self.adapter.fetch_one(
            f"SELECT 1 AS found FROM {self.table} WHERE {self.key_column} = %s",  # nosec B608
            key,
        )
        return record is not None

    async def _require_unlocked(self, key: str) -> None:
        if not await self._exists_unlocked(key):
            raise EntityNotFoundError(self.entity_type, key)

    async def add(self, entity: V) -> None:
        """
        Insert a new entity.

        Raises:
            DuplicateEntityError: If the key is already present
            StoreUnavailableError: If the database cannot be reached
        """
        key = self._key(entity)
        async with self._locked(**self._identifiers(key)):
            if await self._exists_unlocked(key):
                raise DuplicateEntityError(self.entity_type, key)
            await self.adapter.execute_query(
                self._insert_sql, key, *self._map_entity_to_values(entity)
            )
        logger.debug(f"Inserted {self.entity_type.lower()} {key}")

    async def update(self, entity: V) -> None:
        """
        Replace an existing entity.

        Raises:
            EntityNotFoundError: If the key is absent
            StoreUnavailableError: If the database cannot be reached
        """
        key = self._key(entity)
        async with self._locked(**self._identifiers(key)):
            await self._require_unlocked(key)
            await self.adapter.execute_query(
                self._update_sql, *self._map_entity_to_values(entity), key
            )
        logger.debug(f"Updated {self.entity_type.lower()} {key}")

    async def exists(self, key: str) -> bool:
        async with self._locked(**self._identifiers(key)):
            return await self._exists_unlocked(key)

    async def get(self, key: str) -> V:
        """
        Retrieve an entity by its identifier.

        Raises:
            EntityNotFoundError: If the key is absent
            StoreUnavailableError: If the database cannot be reached
        """
        async with self._locked(**self._identifiers(key)):
            record = await self.adapter.fetch_one(self._select_sql, key)
            if record is None:
                raise EntityNotFoundError(self.entity_type, key)
            return await self._load_unlocked(record)

    async def _load_unlocked(self, record: dict[str, Any]) -> V:
        """Build an entity from its row, reading side tables where needed."""
        return self._map_record_to_entity(record)

    async def remove(self, key: str) -> None:
        """
        Delete an entity.

        Raises:
            EntityNotFoundError: If the key is absent
            StoreUnavailableError: If the database cannot be reached
        """
        async with self._locked(**self._identifiers(key)):
            await self._require_unlocked(key)
            await self._remove_side_rows_unlocked(key)
            await self.adapter.execute_query(
                f"DELETE FROM {self.table} WHERE {self.key_column} = %s", key  # nosec B608
            )
        logger.debug(f"Deleted {self.entity_type.lower()} {key}")

    async def _remove_side_rows_unlocked(self, key: str) -> None:
        pass

    async def clear(self) -> None:
        async with self._locked():
            for table in self._tables():
                await self.adapter.execute_query(f"DELETE FROM {table}")  # nosec B608
        logger.info(f"Cleared {self.entity_type.lower()} store")

    def _tables(self) -> tuple[str, ...]:
        return (self.table,)
