"""Tests for calendar reads, writes and cascading deletion."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from unittest.mock import patch
from uuid import uuid4

import pytest

from organizer.cache.registry import CacheName, EntityFamily
from organizer.domain.models import Calendar, Event, Note, Task
from organizer.persistence import store as store_module
from organizer.persistence.store import SqlStore
from organizer.services import (
    CalendarService,
    DuplicateTitleError,
    EntityNotFoundError,
    EventService,
    NoteService,
    TaskService,
)

START = datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)
END = datetime(2026, 4, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def calendars(store: SqlStore, cache: Any) -> CalendarService:
    return CalendarService(store, cache)


class TestCalendarReads:
    @pytest.mark.asyncio
    async def test_get_all_empty(self, calendars: CalendarService) -> None:
        assert await calendars.get_all() == []

    @pytest.mark.asyncio
    async def test_second_read_does_not_touch_store(
        self, calendars: CalendarService, store: SqlStore
    ) -> None:
        await calendars.create(Calendar(title="Work"))

        with patch.object(store, "load_all", wraps=store.load_all) as load_all:
            first = await calendars.get_all()
            second = await calendars.get_all()

        assert load_all.await_count == 1
        assert [c.id for c in first] == [c.id for c in second]

    @pytest.mark.asyncio
    async def test_get_by_id_missing_raises_and_is_not_cached(
        self, calendars: CalendarService, cache: Any
    ) -> None:
        missing = uuid4()
        with pytest.raises(EntityNotFoundError, match="not found"):
            await calendars.get_by_id(missing)
        assert await cache.get(CacheName.CALENDAR_BY_ID, str(missing)) is None

    @pytest.mark.asyncio
    async def test_reads_are_logged(
        self, calendars: CalendarService, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="organizer.services.base"):
            await calendars.get_all()
        assert "Fetching all calendars" in caplog.text
        assert "Found 0 calendars" in caplog.text


class TestCalendarWrites:
    @pytest.mark.asyncio
    async def test_create_is_visible_after_cached_listing(
        self, calendars: CalendarService
    ) -> None:
        assert await calendars.get_all() == []

        created = await calendars.create(Calendar(title="Work", emoji="W"))

        assert [c.id for c in await calendars.get_all()] == [created.id]

    @pytest.mark.asyncio
    async def test_create_ignores_client_id(self, calendars: CalendarService) -> None:
        given = uuid4()
        created = await calendars.create(Calendar(id=given, title="Work"))
        assert created.id != given

    @pytest.mark.asyncio
    async def test_duplicate_title_rejected(self, calendars: CalendarService) -> None:
        await calendars.create(Calendar(title="Work"))
        with pytest.raises(DuplicateTitleError, match="already exists"):
            await calendars.create(Calendar(title="Work"))

    @pytest.mark.asyncio
    async def test_update_replaces_cached_entity(self, calendars: CalendarService) -> None:
        created = await calendars.create(Calendar(title="Work"))
        assert created.id is not None
        await calendars.get_by_id(created.id)

        await calendars.update(created.id, Calendar(title="Office"))

        assert (await calendars.get_by_id(created.id)).title == "Office"
        assert [c.title for c in await calendars.get_all()] == ["Office"]

    @pytest.mark.asyncio
    async def test_update_keeping_title_is_allowed(self, calendars: CalendarService) -> None:
        created = await calendars.create(Calendar(title="Work"))
        assert created.id is not None

        updated = await calendars.update(created.id, Calendar(title="Work", emoji="W"))

        assert updated.emoji == "W"

    @pytest.mark.asyncio
    async def test_update_to_taken_title_rejected(self, calendars: CalendarService) -> None:
        await calendars.create(Calendar(title="Work"))
        home = await calendars.create(Calendar(title="Home"))
        assert home.id is not None

        with pytest.raises(DuplicateTitleError):
            await calendars.update(home.id, Calendar(title="Work"))

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, calendars: CalendarService) -> None:
        with pytest.raises(EntityNotFoundError):
            await calendars.update(uuid4(), Calendar(title="Ghost"))

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, calendars: CalendarService) -> None:
        with pytest.raises(EntityNotFoundError):
            await calendars.delete(uuid4())


class TestCascadingDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_children_from_every_view(
        self, store: SqlStore, cache: Any
    ) -> None:
        calendars = CalendarService(store, cache)
        events = EventService(store, cache)
        tasks = TaskService(store, cache)
        notes = NoteService(store, cache)

        doomed = await calendars.create(Calendar(title="Trip"))
        kept = await calendars.create(Calendar(title="Home"))
        assert doomed.id is not None
        assert kept.id is not None

        event = await events.create(
            Event(title="Flight", calendar_id=doomed.id, start_date=START, end_date=END)
        )
        task = await tasks.create(Task(title="Pack", calendar_id=doomed.id))
        note = await notes.create(Note(description="Passport", calendar_id=doomed.id))
        survivor = await tasks.create(Task(title="Water plants", calendar_id=kept.id))

        # Prime every view that will need to change
        for service in (events, tasks, notes):
            await service.get_all()
            await service.get_all_by_calendar_id(doomed.id)
        assert event.id is not None
        assert task.id is not None
        await events.get_by_id(event.id)
        await tasks.get_by_id(task.id)

        await calendars.delete(doomed.id)

        assert await events.get_all() == []
        assert await notes.get_all() == []
        assert [t.id for t in await tasks.get_all()] == [survivor.id]
        assert await tasks.get_all_by_calendar_id(doomed.id) == []
        with pytest.raises(EntityNotFoundError):
            await events.get_by_id(event.id)
        with pytest.raises(EntityNotFoundError):
            await tasks.get_by_id(task.id)
        with pytest.raises(EntityNotFoundError):
            await calendars.get_by_id(doomed.id)
        assert [c.id for c in await calendars.get_all()] == [kept.id]
        assert note.id is not None

    @pytest.mark.asyncio
    async def test_failed_cascade_leaves_store_and_cache_agreeing(
        self, store: SqlStore, cache: Any
    ) -> None:
        calendars = CalendarService(store, cache)
        events = EventService(store, cache)
        tasks = TaskService(store, cache)

        calendar = await calendars.create(Calendar(title="Trip"))
        assert calendar.id is not None
        event = await events.create(
            Event(title="Flight", calendar_id=calendar.id, start_date=START, end_date=END)
        )
        await tasks.create(Task(title="Pack", calendar_id=calendar.id))
        await events.get_all()
        await events.get_all_by_calendar_id(calendar.id)
        original = store_module._delete_by_calendar

        async def failing_on_tasks(session, family, calendar_id):  # type: ignore[no-untyped-def]
            if family is EntityFamily.TASK:
                raise RuntimeError("connection lost")
            return await original(session, family, calendar_id)

        with patch.object(store_module, "_delete_by_calendar", failing_on_tasks):
            with pytest.raises(RuntimeError):
                await calendars.delete(calendar.id)

        stored = await store.load_all(EntityFamily.EVENT)
        assert [e.id for e in stored] == [event.id]
        assert [e.id for e in await events.get_all()] == [event.id]
        assert [e.id for e in await events.get_all_by_calendar_id(calendar.id)] == [event.id]
        assert (await calendars.get_by_id(calendar.id)).title == "Trip"


class TestStaleEntries:
    @pytest.mark.asyncio
    async def test_entry_of_another_shape_is_reloaded(
        self, calendars: CalendarService, cache: Any
    ) -> None:
        created = await calendars.create(Calendar(title="Work"))
        assert created.id is not None
        key = str(created.id)
        await cache.put(CacheName.CALENDAR_BY_ID, key, {"id": key, "name": "Work"})

        loaded = await calendars.get_by_id(created.id)

        assert loaded.title == "Work"
        cached = await cache.get(CacheName.CALENDAR_BY_ID, key)
        assert cached["title"] == "Work"
        assert "name" not in cached
