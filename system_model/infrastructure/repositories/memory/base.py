"""
In-memory entity store.

One dict per store guarded by one asyncio lock covering every operation.
Records are deep-copied on the way in and on the way out so callers never
share mutable state with the store.
"""

import asyncio
import copy
from typing import Generic, TypeVar

from system_model.application.interfaces.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
)

V = TypeVar("V")


class InMemoryEntityStore(Generic[V]):
    """Dict-backed store keyed by the entity's string identifier."""

    entity_type = "Entity"
    key_attribute = "id"

    def __init__(self) -> None:
        self._records: dict[str, V] = {}
        self._lock = asyncio.Lock()

    def _key(self, entity: V) -> str:
        return getattr(entity, self.key_attribute)

    def _to_stored(self, entity: V) -> V:
        return copy.deepcopy(entity)

    def _from_stored(self, key: str, stored: V) -> V:
        return copy.deepcopy(stored)

    async def add(self, entity: V) -> None:
        async with self._lock:
            key = self._key(entity)
            if key in self._records:
                raise DuplicateEntityError(self.entity_type, key)
            self._records[key] = self._to_stored(entity)
            self._on_added(key)

    async def update(self, entity: V) -> None:
        async with self._lock:
            key = self._key(entity)
            if key not in self._records:
                raise EntityNotFoundError(self.entity_type, key)
            self._records[key] = self._to_stored(entity)

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return key in self._records

    async def get(self, key: str) -> V:
        async with self._lock:
            return self._get_locked(key)

    async def remove(self, key: str) -> None:
        async with self._lock:
            if key not in self._records:
                raise EntityNotFoundError(self.entity_type, key)
            del self._records[key]
            self._on_removed(key)

    async def clear(self) -> None:
        async with self._lock:
            self._records.clear()
            self._on_cleared()

    def _get_locked(self, key: str) -> V:
        stored = self._records.get(key)
        if stored is None:
            raise EntityNotFoundError(self.entity_type, key)
        return self._from_stored(key, stored)

    # Hooks for stores keeping side tables next to the records
    def _on_added(self, key: str) -> None:
        pass

    def _on_removed(self, key: str) -> None:
        pass

    def _on_cleared(self) -> None:
        pass
