"""Shared FastAPI dependencies for organizer routers.

The cache manager and the store are created once in the application
lifespan and kept on ``app.state``; services are built per request from
them.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from organizer.cache import CacheManager
from organizer.persistence.store import Store
from organizer.services import (
    CalendarService,
    CategoryService,
    EventService,
    NoteService,
    TaskService,
)


def get_cache(request: Request) -> CacheManager:
    return request.app.state.cache


def get_store(request: Request) -> Store:
    return request.app.state.store


CacheDep = Annotated[CacheManager, Depends(get_cache)]
StoreDep = Annotated[Store, Depends(get_store)]


def get_calendar_service(store: StoreDep, cache: CacheDep) -> CalendarService:
    return CalendarService(store, cache)


def get_category_service(store: StoreDep, cache: CacheDep) -> CategoryService:
    return CategoryService(store, cache)


def get_event_service(store: StoreDep, cache: CacheDep) -> EventService:
    return EventService(store, cache)


def get_task_service(store: StoreDep, cache: CacheDep) -> TaskService:
    return TaskService(store, cache)


def get_note_service(store: StoreDep, cache: CacheDep) -> NoteService:
    return NoteService(store, cache)


CalendarServiceDep = Annotated[CalendarService, Depends(get_calendar_service)]
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
EventServiceDep = Annotated[EventService, Depends(get_event_service)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
NoteServiceDep = Annotated[NoteService, Depends(get_note_service)]
