"""Calendar API router.

- POST   /calendars                   - Create calendar
- GET    /calendars                   - List calendars (paged)
- GET    /calendars/filter            - Filter calendars (paged)
- GET    /calendars/{id}              - Get calendar
- PUT    /calendars/{id}              - Update calendar
- DELETE /calendars/{id}              - Delete calendar with its items
- GET    /calendars/{id}/events       - Events of a calendar (paged)
- GET    /calendars/{id}/tasks        - Tasks of a calendar (paged)
- GET    /calendars/{id}/notes        - Notes of a calendar (paged)
- GET    /calendars/{id}/items        - Events, tasks and notes merged (paged)
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, Response

from organizer.api.deps import (
    CalendarServiceDep,
    EventServiceDep,
    NoteServiceDep,
    TaskServiceDep,
)
from organizer.api.pagination import PageParamsDep, to_page
from organizer.api.routers.items import merge_items
from organizer.domain.models import Calendar, CalendarFilter

router = APIRouter(prefix="/calendars", tags=["Calendars"])


@router.post("", status_code=201, response_model=Calendar)
async def create_calendar(calendar: Calendar, calendars: CalendarServiceDep) -> Calendar:
    return await calendars.create(calendar)


@router.get("")
async def get_all_calendars(calendars: CalendarServiceDep, paging: PageParamsDep) -> dict[str, Any]:
    return to_page(await calendars.get_all(), paging)


@router.get("/filter")
async def filter_calendars(
    criteria: Annotated[CalendarFilter, Query()],
    calendars: CalendarServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    return to_page(await calendars.filter(criteria), paging)


@router.get("/{calendar_id}", response_model=Calendar)
async def get_calendar(calendar_id: UUID, calendars: CalendarServiceDep) -> Calendar:
    return await calendars.get_by_id(calendar_id)


@router.put("/{calendar_id}", response_model=Calendar)
async def update_calendar(
    calendar_id: UUID, calendar: Calendar, calendars: CalendarServiceDep
) -> Calendar:
    return await calendars.update(calendar_id, calendar)


@router.delete("/{calendar_id}", status_code=204)
async def delete_calendar(calendar_id: UUID, calendars: CalendarServiceDep) -> Response:
    await calendars.delete(calendar_id)
    return Response(status_code=204)


@router.get("/{calendar_id}/events")
async def get_calendar_events(
    calendar_id: UUID,
    calendars: CalendarServiceDep,
    events: EventServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await calendars.get_by_id(calendar_id)
    return to_page(await events.get_all_by_calendar_id(calendar_id), paging)


@router.get("/{calendar_id}/tasks")
async def get_calendar_tasks(
    calendar_id: UUID,
    calendars: CalendarServiceDep,
    tasks: TaskServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await calendars.get_by_id(calendar_id)
    return to_page(await tasks.get_all_by_calendar_id(calendar_id), paging)


@router.get("/{calendar_id}/notes")
async def get_calendar_notes(
    calendar_id: UUID,
    calendars: CalendarServiceDep,
    notes: NoteServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await calendars.get_by_id(calendar_id)
    return to_page(await notes.get_all_by_calendar_id(calendar_id), paging)


@router.get("/{calendar_id}/items")
async def get_calendar_items(
    calendar_id: UUID,
    calendars: CalendarServiceDep,
    events: EventServiceDep,
    tasks: TaskServiceDep,
    notes: NoteServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await calendars.get_by_id(calendar_id)
    items = merge_items(
        events=await events.get_all_by_calendar_id(calendar_id),
        tasks=await tasks.get_all_by_calendar_id(calendar_id),
        notes=await notes.get_all_by_calendar_id(calendar_id),
    )
    return to_page(items, paging)
