"""Category operations.

Removing a category keeps its events, tasks and notes; they only lose
their category.
"""

from __future__ import annotations

import logging
from uuid import UUID

from organizer.cache import EntityFamily, MutationContext, Operation
from organizer.domain.models import Category
from organizer.services.base import EntityService, Timer

logger = logging.getLogger(__name__)


class CategoryService(EntityService[Category]):
    family = EntityFamily.CATEGORY
    model = Category

    async def create(self, category: Category) -> Category:
        logger.info("Creating category %r", category.title)
        timer = Timer()

        await self._ensure_unique_title(category.title)

        created = await self.store.save(self.family, category.model_copy(update={"id": None}))
        await self.invalidation.apply_rules(
            Operation.CREATE, self.family, MutationContext(entity_id=created.id)
        )

        logger.info("Created category %s in %d ms", created.id, timer.ms)
        return created

    async def update(self, category_id: UUID, category: Category) -> Category:
        logger.info("Updating category %s", category_id)
        timer = Timer()

        existing = await self._require(self.family, category_id)
        if category.title != existing.title:
            await self._ensure_unique_title(category.title)

        updated = await self.store.save(
            self.family, category.model_copy(update={"id": category_id})
        )
        await self.invalidation.apply_rules(
            Operation.UPDATE, self.family, MutationContext(entity_id=category_id)
        )

        logger.info("Updated category %s in %d ms", category_id, timer.ms)
        return updated

    async def delete(self, category_id: UUID) -> None:
        """Unlink every item from the category, then delete it.

        Both happen in one store transaction; evictions follow the commit.
        """
        logger.info("Deleting category %s", category_id)
        timer = Timer()

        await self._require(self.family, category_id)

        unlinked = await self.store.delete_category_unlinking(category_id)

        for family, affected in unlinked.items():
            await self.invalidation.apply_rules(
                Operation.UNLINK,
                family,
                MutationContext(category_id=category_id, affected=affected),
            )
        await self.invalidation.apply_rules(
            Operation.DELETE, self.family, MutationContext(entity_id=category_id)
        )

        logger.info(
            "Deleted category %s, unlinked %d items in %d ms",
            category_id,
            sum(len(affected) for affected in unlinked.values()),
            timer.ms,
        )
