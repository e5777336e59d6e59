"""Tests for the invalidation rule table and coordinator."""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

import pytest

from organizer.cache.invalidation import (
    INVALIDATION_RULES,
    AffectedRecord,
    InvalidationCoordinator,
    MutationContext,
    Operation,
)
from organizer.cache.registry import CATALOG, CacheName, EntityFamily

CALENDAR = UUID("00000000-0000-0000-0000-0000000000c1")
OTHER_CALENDAR = UUID("00000000-0000-0000-0000-0000000000c2")
CATEGORY = UUID("00000000-0000-0000-0000-0000000000a1")
ENTITY = UUID("00000000-0000-0000-0000-0000000000e1")


async def _seed(cache: Any, *entries: tuple[CacheName, str]) -> None:
    for name, key in entries:
        await cache.put(name, key, [])


async def _present(cache: Any, name: CacheName, key: str) -> bool:
    return await cache.get(name, key) is not None


class TestRuleTable:
    def test_table_is_total(self) -> None:
        for operation in Operation:
            for family in EntityFamily:
                assert (operation, family) in INVALIDATION_RULES

    def test_rules_only_reference_catalog_names(self) -> None:
        catalog_names = set(CATALOG.values())
        for evictions in INVALIDATION_RULES.values():
            for eviction in evictions:
                assert eviction.cache_name in catalog_names

    @pytest.mark.parametrize("family", [EntityFamily.CALENDAR, EntityFamily.CATEGORY])
    @pytest.mark.parametrize("operation", [Operation.CASCADE_DELETE, Operation.UNLINK])
    def test_owner_bulk_operations_are_empty(
        self, family: EntityFamily, operation: Operation
    ) -> None:
        assert INVALIDATION_RULES[(operation, family)] == ()

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            INVALIDATION_RULES[(Operation.CREATE, EntityFamily.NOTE)] = ()  # type: ignore[index]


class TestApplyRules:
    @pytest.mark.asyncio
    async def test_create_event_with_category(self, cache: Any) -> None:
        coordinator = InvalidationCoordinator(cache)
        context = MutationContext(entity_id=ENTITY, calendar_id=CALENDAR, category_id=CATEGORY)

        applied = await coordinator.apply_rules(Operation.CREATE, EntityFamily.EVENT, context)

        assert applied == [
            (CacheName.ALL_EVENTS, None),
            (CacheName.CALENDAR_EVENTS, str(CALENDAR)),
            (CacheName.CATEGORY_EVENTS, str(CATEGORY)),
        ]

    @pytest.mark.asyncio
    async def test_create_uncategorized_task_skips_category_key(self, cache: Any) -> None:
        coordinator = InvalidationCoordinator(cache)
        context = MutationContext(entity_id=ENTITY, calendar_id=CALENDAR)

        applied = await coordinator.apply_rules(Operation.CREATE, EntityFamily.TASK, context)

        assert [name for name, _ in applied] == [CacheName.ALL_TASKS, CacheName.CALENDAR_TASKS]

    @pytest.mark.asyncio
    async def test_create_keeps_other_calendar_views(self, cache: Any) -> None:
        await _seed(
            cache,
            (CacheName.CALENDAR_NOTES, str(CALENDAR)),
            (CacheName.CALENDAR_NOTES, str(OTHER_CALENDAR)),
            (CacheName.ALL_NOTES, "ALL"),
        )
        coordinator = InvalidationCoordinator(cache)

        await coordinator.apply_rules(
            Operation.CREATE,
            EntityFamily.NOTE,
            MutationContext(entity_id=ENTITY, calendar_id=CALENDAR),
        )

        assert not await _present(cache, CacheName.CALENDAR_NOTES, str(CALENDAR))
        assert not await _present(cache, CacheName.ALL_NOTES, "ALL")
        assert await _present(cache, CacheName.CALENDAR_NOTES, str(OTHER_CALENDAR))

    @pytest.mark.parametrize("operation", [Operation.UPDATE, Operation.DELETE])
    @pytest.mark.asyncio
    async def test_update_and_delete_drop_parent_views_wholesale(
        self, cache: Any, operation: Operation
    ) -> None:
        coordinator = InvalidationCoordinator(cache)

        applied = await coordinator.apply_rules(
            operation,
            EntityFamily.EVENT,
            MutationContext(entity_id=ENTITY, calendar_id=CALENDAR),
        )

        assert applied == [
            (CacheName.EVENT_BY_ID, str(ENTITY)),
            (CacheName.ALL_EVENTS, None),
            (CacheName.CALENDAR_EVENTS, None),
            (CacheName.CATEGORY_EVENTS, None),
        ]

    @pytest.mark.asyncio
    async def test_update_calendar(self, cache: Any) -> None:
        await _seed(
            cache,
            (CacheName.CALENDAR_BY_ID, str(ENTITY)),
            (CacheName.CALENDAR_BY_ID, str(CALENDAR)),
            (CacheName.ALL_CALENDARS, "ALL"),
        )
        coordinator = InvalidationCoordinator(cache)

        await coordinator.apply_rules(
            Operation.UPDATE, EntityFamily.CALENDAR, MutationContext(entity_id=ENTITY)
        )

        assert not await _present(cache, CacheName.CALENDAR_BY_ID, str(ENTITY))
        assert not await _present(cache, CacheName.ALL_CALENDARS, "ALL")
        assert await _present(cache, CacheName.CALENDAR_BY_ID, str(CALENDAR))

    @pytest.mark.asyncio
    async def test_create_category_only_drops_listing(self, cache: Any) -> None:
        coordinator = InvalidationCoordinator(cache)
        applied = await coordinator.apply_rules(
            Operation.CREATE, EntityFamily.CATEGORY, MutationContext(entity_id=ENTITY)
        )
        assert applied == [(CacheName.ALL_CATEGORIES, None)]

    @pytest.mark.asyncio
    async def test_cascade_delete_evicts_each_affected_record(self, cache: Any) -> None:
        first, second = uuid4(), uuid4()
        unrelated = uuid4()
        await _seed(
            cache,
            (CacheName.TASK_BY_ID, str(first)),
            (CacheName.TASK_BY_ID, str(second)),
            (CacheName.TASK_BY_ID, str(unrelated)),
            (CacheName.CALENDAR_TASKS, str(OTHER_CALENDAR)),
        )
        coordinator = InvalidationCoordinator(cache)
        context = MutationContext(
            calendar_id=CALENDAR,
            affected=(AffectedRecord(first, CALENDAR), AffectedRecord(second, CALENDAR)),
        )

        await coordinator.apply_rules(Operation.CASCADE_DELETE, EntityFamily.TASK, context)

        assert not await _present(cache, CacheName.TASK_BY_ID, str(first))
        assert not await _present(cache, CacheName.TASK_BY_ID, str(second))
        assert await _present(cache, CacheName.TASK_BY_ID, str(unrelated))
        assert not await _present(cache, CacheName.CALENDAR_TASKS, str(OTHER_CALENDAR))

    @pytest.mark.asyncio
    async def test_unlink_evicts_affected_calendars_only(self, cache: Any) -> None:
        record_a, record_b, record_c = uuid4(), uuid4(), uuid4()
        untouched = uuid4()
        await _seed(
            cache,
            (CacheName.CALENDAR_EVENTS, str(CALENDAR)),
            (CacheName.CALENDAR_EVENTS, str(OTHER_CALENDAR)),
            (CacheName.CALENDAR_EVENTS, str(untouched)),
        )
        coordinator = InvalidationCoordinator(cache)
        context = MutationContext(
            category_id=CATEGORY,
            affected=(
                AffectedRecord(record_a, CALENDAR),
                AffectedRecord(record_b, OTHER_CALENDAR),
                AffectedRecord(record_c, CALENDAR),
            ),
        )

        applied = await coordinator.apply_rules(Operation.UNLINK, EntityFamily.EVENT, context)

        calendar_keys = [key for name, key in applied if name is CacheName.CALENDAR_EVENTS]
        assert calendar_keys == [str(CALENDAR), str(OTHER_CALENDAR)]
        assert (CacheName.CATEGORY_EVENTS, None) in applied
        assert await _present(cache, CacheName.CALENDAR_EVENTS, str(untouched))

    @pytest.mark.asyncio
    async def test_unlink_without_affected_records(self, cache: Any) -> None:
        coordinator = InvalidationCoordinator(cache)

        applied = await coordinator.apply_rules(
            Operation.UNLINK, EntityFamily.NOTE, MutationContext(category_id=CATEGORY)
        )

        assert applied == [(CacheName.ALL_NOTES, None), (CacheName.CATEGORY_NOTES, None)]

    @pytest.mark.asyncio
    async def test_reapplying_rules_is_harmless(self, cache: Any) -> None:
        coordinator = InvalidationCoordinator(cache)
        context = MutationContext(entity_id=ENTITY, calendar_id=CALENDAR, category_id=CATEGORY)
        await _seed(cache, (CacheName.ALL_EVENTS, "ALL"))

        first = await coordinator.apply_rules(Operation.DELETE, EntityFamily.EVENT, context)
        second = await coordinator.apply_rules(Operation.DELETE, EntityFamily.EVENT, context)

        assert first == second
        assert not await _present(cache, CacheName.ALL_EVENTS, "ALL")
