"""Event API router.

- POST   /events          - Create event (calendar and category must exist)
- GET    /events          - List events (paged)
- GET    /events/filter   - Filter events by text, dates, pattern, parents (paged)
- GET    /events/{id}     - Get event
- PUT    /events/{id}     - Update event
- DELETE /events/{id}     - Delete event
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, Response

from organizer.api.deps import EventServiceDep
from organizer.api.pagination import PageParamsDep, to_page
from organizer.domain.models import Event, EventFilter

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("", status_code=201, response_model=Event)
async def create_event(event: Event, events: EventServiceDep) -> Event:
    return await events.create(event)


@router.get("")
async def get_all_events(events: EventServiceDep, paging: PageParamsDep) -> dict[str, Any]:
    return to_page(await events.get_all(), paging)


@router.get("/filter")
async def filter_events(
    criteria: Annotated[EventFilter, Query()],
    events: EventServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    return to_page(await events.filter(criteria), paging)


@router.get("/{event_id}", response_model=Event)
async def get_event(event_id: UUID, events: EventServiceDep) -> Event:
    return await events.get_by_id(event_id)


@router.put("/{event_id}", response_model=Event)
async def update_event(event_id: UUID, event: Event, events: EventServiceDep) -> Event:
    return await events.update(event_id, event)


@router.delete("/{event_id}", status_code=204)
async def delete_event(event_id: UUID, events: EventServiceDep) -> Response:
    await events.delete(event_id)
    return Response(status_code=204)
