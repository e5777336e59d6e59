"""Declarative cache invalidation for organizer mutations.

Each (operation, entity family) pair maps to the evictions that keep the
named caches consistent with the store. Rules name a cache and either a
key extractor over the mutation context or ``None``, meaning every entry
of that cache.

Evictions are applied after the store write has committed, one after the
other. They are not atomic: a concurrent reader may repopulate an entry
between two evictions of the same rule set. Re-applying a rule set is
harmless.

Unlinking a category also evicts the calendar views of the unlinked
items, keyed by those calendars only. Calendar linkage is unchanged, but
those cached collections still carry the old ``categoryId``; without the
eviction a later read by calendar would show an item still in a deleted
category. Items read after an unlink must have a null ``categoryId`` in
every view.

Example:
    coordinator = InvalidationCoordinator(cache)
    await coordinator.apply_rules(
        Operation.CREATE,
        EntityFamily.EVENT,
        MutationContext(entity_id=event.id, calendar_id=event.calendar_id),
    )
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from uuid import UUID

from organizer.cache.keys import CacheKey, key_for
from organizer.cache.manager import CacheManager
from organizer.cache.registry import (
    DEPENDENT_FAMILIES,
    CacheName,
    EntityFamily,
    Scope,
    cache_name_for,
)
from organizer.observability.metrics import record_cache_eviction

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Mutating operations that trigger invalidation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CASCADE_DELETE = "cascade_delete"  # children removed with their calendar
    UNLINK = "unlink"  # children detached from a removed category


@dataclass(frozen=True)
class AffectedRecord:
    """A child record touched by a bulk store operation."""

    id: UUID
    calendar_id: UUID


@dataclass(frozen=True)
class MutationContext:
    """Identifiers available to key extractors."""

    entity_id: UUID | None = None
    calendar_id: UUID | None = None
    category_id: UUID | None = None
    affected: Sequence[AffectedRecord] = field(default_factory=tuple)


KeyExtractor = Callable[[MutationContext], Iterable[CacheKey]]


@dataclass(frozen=True)
class Eviction:
    """One eviction in a rule: a cache name and the keys to drop.

    ``keys=None`` evicts all entries of the cache.
    """

    cache_name: CacheName
    keys: KeyExtractor | None = None

    @property
    def all_entries(self) -> bool:
        return self.keys is None


AppliedEviction = tuple[CacheName, CacheKey | None]


# -----------------------------------------------------------------------------
# Key extractors
# -----------------------------------------------------------------------------


def _entity_key(context: MutationContext) -> list[CacheKey]:
    return [key_for(Scope.BY_ID, context.entity_id)]


def _calendar_key(context: MutationContext) -> list[CacheKey]:
    return [key_for(Scope.BY_CALENDAR, context.calendar_id)]


def _category_key(context: MutationContext) -> list[CacheKey]:
    # Uncategorized items have no category entry to drop
    if context.category_id is None:
        return []
    return [key_for(Scope.BY_CATEGORY, context.category_id)]


def _affected_keys(context: MutationContext) -> list[CacheKey]:
    return [key_for(Scope.BY_ID, record.id) for record in context.affected]


def _affected_calendar_keys(context: MutationContext) -> list[CacheKey]:
    calendar_ids = dict.fromkeys(record.calendar_id for record in context.affected)
    return [key_for(Scope.BY_CALENDAR, calendar_id) for calendar_id in calendar_ids]


# -----------------------------------------------------------------------------
# Rule table
# -----------------------------------------------------------------------------


def _owner_rules(family: EntityFamily) -> dict[Operation, tuple[Eviction, ...]]:
    all_name = cache_name_for(family, Scope.ALL)
    by_id = cache_name_for(family, Scope.BY_ID)
    changed = (Eviction(by_id, _entity_key), Eviction(all_name))
    return {
        Operation.CREATE: (Eviction(all_name),),
        Operation.UPDATE: changed,
        Operation.DELETE: changed,
        Operation.CASCADE_DELETE: (),
        Operation.UNLINK: (),
    }


def _dependent_rules(family: EntityFamily) -> dict[Operation, tuple[Eviction, ...]]:
    all_name = cache_name_for(family, Scope.ALL)
    by_id = cache_name_for(family, Scope.BY_ID)
    by_calendar = cache_name_for(family, Scope.BY_CALENDAR)
    by_category = cache_name_for(family, Scope.BY_CATEGORY)

    # Old parent ids are not known after an update, so parent views are
    # dropped wholesale.
    changed = (
        Eviction(by_id, _entity_key),
        Eviction(all_name),
        Eviction(by_calendar),
        Eviction(by_category),
    )
    return {
        Operation.CREATE: (
            Eviction(all_name),
            Eviction(by_calendar, _calendar_key),
            Eviction(by_category, _category_key),
        ),
        Operation.UPDATE: changed,
        Operation.DELETE: changed,
        Operation.CASCADE_DELETE: (
            Eviction(all_name),
            Eviction(by_calendar),
            Eviction(by_category),
            Eviction(by_id, _affected_keys),
        ),
        Operation.UNLINK: (
            Eviction(all_name),
            Eviction(by_category),
            Eviction(by_id, _affected_keys),
            # Calendar views still hold the old categoryId
            Eviction(by_calendar, _affected_calendar_keys),
        ),
    }


def _build_rules() -> MappingProxyType[tuple[Operation, EntityFamily], tuple[Eviction, ...]]:
    rules: dict[tuple[Operation, EntityFamily], tuple[Eviction, ...]] = {}
    for family in EntityFamily:
        per_operation = (
            _dependent_rules(family) if family in DEPENDENT_FAMILIES else _owner_rules(family)
        )
        for operation in Operation:
            rules[(operation, family)] = per_operation[operation]
    return MappingProxyType(rules)


INVALIDATION_RULES = _build_rules()


class InvalidationCoordinator:
    """Applies invalidation rules against the active cache manager."""

    def __init__(self, cache: CacheManager):
        self.cache = cache

    async def apply_rules(
        self,
        operation: Operation,
        family: EntityFamily,
        context: MutationContext,
    ) -> list[AppliedEviction]:
        """Evict every entry the rule for (operation, family) names.

        Must be called after the store write committed. Returns the
        evictions issued, in order; ``None`` as key means all entries.
        """
        applied: list[AppliedEviction] = []
        for eviction in INVALIDATION_RULES[(operation, family)]:
            if eviction.keys is None:
                await self.cache.evict_all(eviction.cache_name)
                record_cache_eviction(eviction.cache_name.value, all_entries=True)
                applied.append((eviction.cache_name, None))
                continue

            for key in eviction.keys(context):
                await self.cache.evict(eviction.cache_name, key)
                record_cache_eviction(eviction.cache_name.value, all_entries=False)
                applied.append((eviction.cache_name, key))

        if applied:
            logger.debug(
                "Applied %d cache evictions for %s %s",
                len(applied),
                operation.value,
                family.value,
            )
        return applied
