"""Category API router.

- POST   /categories                  - Create category
- GET    /categories                  - List categories (paged)
- GET    /categories/filter           - Filter categories (paged)
- GET    /categories/{id}             - Get category
- PUT    /categories/{id}             - Update category
- DELETE /categories/{id}             - Delete category, unlinking its items
- GET    /categories/{id}/events      - Events in a category (paged)
- GET    /categories/{id}/tasks       - Tasks in a category (paged)
- GET    /categories/{id}/notes       - Notes in a category (paged)
- GET    /categories/{id}/items       - Events, tasks and notes merged (paged)
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, Response

from organizer.api.deps import (
    CategoryServiceDep,
    EventServiceDep,
    NoteServiceDep,
    TaskServiceDep,
)
from organizer.api.pagination import PageParamsDep, to_page
from organizer.api.routers.items import merge_items
from organizer.domain.models import Category, CategoryFilter

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.post("", status_code=201, response_model=Category)
async def create_category(category: Category, categories: CategoryServiceDep) -> Category:
    return await categories.create(category)


@router.get("")
async def get_all_categories(
    categories: CategoryServiceDep, paging: PageParamsDep
) -> dict[str, Any]:
    return to_page(await categories.get_all(), paging)


@router.get("/filter")
async def filter_categories(
    criteria: Annotated[CategoryFilter, Query()],
    categories: CategoryServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    return to_page(await categories.filter(criteria), paging)


@router.get("/{category_id}", response_model=Category)
async def get_category(category_id: UUID, categories: CategoryServiceDep) -> Category:
    return await categories.get_by_id(category_id)


@router.put("/{category_id}", response_model=Category)
async def update_category(
    category_id: UUID, category: Category, categories: CategoryServiceDep
) -> Category:
    return await categories.update(category_id, category)


@router.delete("/{category_id}", status_code=204)
async def delete_category(category_id: UUID, categories: CategoryServiceDep) -> Response:
    await categories.delete(category_id)
    return Response(status_code=204)


@router.get("/{category_id}/events")
async def get_category_events(
    category_id: UUID,
    categories: CategoryServiceDep,
    events: EventServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await categories.get_by_id(category_id)
    return to_page(await events.get_all_by_category_id(category_id), paging)


@router.get("/{category_id}/tasks")
async def get_category_tasks(
    category_id: UUID,
    categories: CategoryServiceDep,
    tasks: TaskServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await categories.get_by_id(category_id)
    return to_page(await tasks.get_all_by_category_id(category_id), paging)


@router.get("/{category_id}/notes")
async def get_category_notes(
    category_id: UUID,
    categories: CategoryServiceDep,
    notes: NoteServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await categories.get_by_id(category_id)
    return to_page(await notes.get_all_by_category_id(category_id), paging)


@router.get("/{category_id}/items")
async def get_category_items(
    category_id: UUID,
    categories: CategoryServiceDep,
    events: EventServiceDep,
    tasks: TaskServiceDep,
    notes: NoteServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    await categories.get_by_id(category_id)
    items = merge_items(
        events=await events.get_all_by_category_id(category_id),
        tasks=await tasks.get_all_by_category_id(category_id),
        notes=await notes.get_all_by_category_id(category_id),
    )
    return to_page(items, paging)
