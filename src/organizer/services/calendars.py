"""Calendar operations.

Removing a calendar removes its events, tasks and notes with it.
"""

from __future__ import annotations

import logging
from uuid import UUID

from organizer.cache import EntityFamily, MutationContext, Operation
from organizer.domain.models import Calendar
from organizer.services.base import EntityService, Timer

logger = logging.getLogger(__name__)


class CalendarService(EntityService[Calendar]):
    family = EntityFamily.CALENDAR
    model = Calendar

    async def create(self, calendar: Calendar) -> Calendar:
        logger.info("Creating calendar %r", calendar.title)
        timer = Timer()

        await self._ensure_unique_title(calendar.title)

        created = await self.store.save(self.family, calendar.model_copy(update={"id": None}))
        await self.invalidation.apply_rules(
            Operation.CREATE, self.family, MutationContext(entity_id=created.id)
        )

        logger.info("Created calendar %s in %d ms", created.id, timer.ms)
        return created

    async def update(self, calendar_id: UUID, calendar: Calendar) -> Calendar:
        logger.info("Updating calendar %s", calendar_id)
        timer = Timer()

        existing = await self._require(self.family, calendar_id)
        if calendar.title != existing.title:
            await self._ensure_unique_title(calendar.title)

        updated = await self.store.save(
            self.family, calendar.model_copy(update={"id": calendar_id})
        )
        await self.invalidation.apply_rules(
            Operation.UPDATE, self.family, MutationContext(entity_id=calendar_id)
        )

        logger.info("Updated calendar %s in %d ms", calendar_id, timer.ms)
        return updated

    async def delete(self, calendar_id: UUID) -> None:
        """Delete a calendar and everything in it.

        The store removes the calendar and its items in one transaction;
        evictions follow only once it has committed.
        """
        logger.info("Deleting calendar %s", calendar_id)
        timer = Timer()

        await self._require(self.family, calendar_id)

        removed = await self.store.delete_calendar_cascade(calendar_id)

        for family, affected in removed.items():
            await self.invalidation.apply_rules(
                Operation.CASCADE_DELETE,
                family,
                MutationContext(calendar_id=calendar_id, affected=affected),
            )
        await self.invalidation.apply_rules(
            Operation.DELETE, self.family, MutationContext(entity_id=calendar_id)
        )

        logger.info(
            "Deleted calendar %s with %d items in %d ms",
            calendar_id,
            sum(len(affected) for affected in removed.values()),
            timer.ms,
        )
