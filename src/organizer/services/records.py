"""Event, task and note operations.

All three behave the same way: each item belongs to a calendar and may
carry a category, and both must exist when the item is written.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from uuid import UUID

from organizer.cache import EntityFamily, MutationContext, Operation, Scope, cache_name_for, key_for
from organizer.domain.models import Event, Note, Record, Task
from organizer.services.base import EntityService, Timer

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Record)


class RecordService(EntityService[RecordT]):
    """Cached CRUD for items that live in a calendar."""

    async def _check_parents(self, record: Record) -> None:
        await self._require(EntityFamily.CALENDAR, record.calendar_id)
        if record.category_id is not None:
            await self._require(EntityFamily.CATEGORY, record.category_id)

    def _context(self, record: Record) -> MutationContext:
        return MutationContext(
            entity_id=record.id,
            calendar_id=record.calendar_id,
            category_id=record.category_id,
        )

    async def create(self, record: RecordT) -> RecordT:
        logger.info("Creating %s %r", self._name, getattr(record, "title", None))
        timer = Timer()

        await self._check_parents(record)
        created = await self.store.save(self.family, record.model_copy(update={"id": None}))
        await self.invalidation.apply_rules(
            Operation.CREATE, self.family, self._context(created)
        )

        logger.info("Created %s %s in %d ms", self._name, created.id, timer.ms)
        return created

    async def update(self, record_id: UUID, record: RecordT) -> RecordT:
        logger.info("Updating %s %s", self._name, record_id)
        timer = Timer()

        await self._require(self.family, record_id)
        await self._check_parents(record)
        updated = await self.store.save(self.family, record.model_copy(update={"id": record_id}))
        await self.invalidation.apply_rules(
            Operation.UPDATE, self.family, self._context(updated)
        )

        logger.info("Updated %s %s in %d ms", self._name, record_id, timer.ms)
        return updated

    async def delete(self, record_id: UUID) -> None:
        logger.info("Deleting %s %s", self._name, record_id)
        timer = Timer()

        existing = await self._require(self.family, record_id)
        await self.store.delete(self.family, record_id)
        await self.invalidation.apply_rules(Operation.DELETE, self.family, self._context(existing))

        logger.info("Deleted %s %s in %d ms", self._name, record_id, timer.ms)

    async def get_all_by_calendar_id(self, calendar_id: UUID) -> list[RecordT]:
        logger.info("Fetching all %ss for calendar %s", self._name, calendar_id)
        timer = Timer()

        async def load() -> list[Any]:
            return await self.store.load_all_by_parent(self.family, calendar_id)

        records = await self.accessor.read(
            cache_name_for(self.family, Scope.BY_CALENDAR),
            key_for(Scope.BY_CALENDAR, calendar_id),
            load,
            self._many,
        )
        logger.info("Found %d %ss in %d ms", len(records), self._name, timer.ms)
        return records

    async def get_all_by_category_id(self, category_id: UUID) -> list[RecordT]:
        logger.info("Fetching all %ss for category %s", self._name, category_id)
        timer = Timer()

        async def load() -> list[Any]:
            return await self.store.load_all_by_category(self.family, category_id)

        records = await self.accessor.read(
            cache_name_for(self.family, Scope.BY_CATEGORY),
            key_for(Scope.BY_CATEGORY, category_id),
            load,
            self._many,
        )
        logger.info("Found %d %ss in %d ms", len(records), self._name, timer.ms)
        return records


class EventService(RecordService[Event]):
    family = EntityFamily.EVENT
    model = Event


class TaskService(RecordService[Task]):
    family = EntityFamily.TASK
    model = Task


class NoteService(RecordService[Note]):
    family = EntityFamily.NOTE
    model = Note
