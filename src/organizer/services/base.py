"""Shared plumbing for entity services.

Every service reads through the named caches and, after each committed
store write, hands the mutation to the invalidation coordinator. Reads
never write to the store; writes never populate a cache.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

from pydantic import TypeAdapter

from organizer.cache import (
    CacheManager,
    EntityFamily,
    InvalidationCoordinator,
    ReadThroughAccessor,
    Scope,
    cache_name_for,
    key_for,
)
from organizer.domain.models import Entity
from organizer.persistence.store import Store
from organizer.services.errors import DuplicateTitleError, EntityNotFoundError

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


class Timer:
    """Elapsed wall time in milliseconds, for operation logs."""

    def __init__(self) -> None:
        self.started = time.perf_counter()

    @property
    def ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)


class EntityService(Generic[EntityT]):
    """Cached reads and invalidating writes for one entity family."""

    family: ClassVar[EntityFamily]
    model: ClassVar[type[Entity]]

    def __init__(self, store: Store, cache: CacheManager):
        self.store = store
        self.cache = cache
        self.accessor = ReadThroughAccessor(cache)
        self.invalidation = InvalidationCoordinator(cache)

    @property
    def _one(self) -> TypeAdapter[EntityT]:
        return _adapter(self.model)

    @property
    def _many(self) -> TypeAdapter[list[EntityT]]:
        return _adapter(list[self.model])

    @property
    def _name(self) -> str:
        return self.family.value

    async def _require(self, family: EntityFamily, entity_id: UUID) -> Any:
        entity = await self.store.load_by_id(family, entity_id)
        if entity is None:
            raise EntityNotFoundError(family.value, entity_id)
        return entity

    async def _ensure_unique_title(self, title: str) -> None:
        if await self.store.exists_by_title(self.family, title):
            raise DuplicateTitleError(self._name, title)

    async def get_by_id(self, entity_id: UUID) -> EntityT:
        logger.info("Fetching %s with id %s", self._name, entity_id)
        timer = Timer()

        async def load() -> EntityT:
            return await self._require(self.family, entity_id)

        entity = await self.accessor.read(
            cache_name_for(self.family, Scope.BY_ID),
            key_for(Scope.BY_ID, entity_id),
            load,
            self._one,
        )
        logger.info("Found %s %s in %d ms", self._name, entity_id, timer.ms)
        return entity

    async def get_all(self) -> list[EntityT]:
        logger.info("Fetching all %ss", self._name)
        timer = Timer()

        async def load() -> list[Any]:
            return await self.store.load_all(self.family)

        entities = await self.accessor.read(
            cache_name_for(self.family, Scope.ALL),
            key_for(Scope.ALL),
            load,
            self._many,
        )
        logger.info("Found %d %ss in %d ms", len(entities), self._name, timer.ms)
        return entities

    async def filter(self, criteria: Any) -> list[EntityT]:
        """Query the store directly; filter results are never cached."""
        logger.info("Filtering %ss with %s", self._name, criteria)
        timer = Timer()
        entities = await self.store.filter(self.family, criteria)
        logger.info("Found %d %ss in %d ms", len(entities), self._name, timer.ms)
        return entities  # type: ignore[return-value]
