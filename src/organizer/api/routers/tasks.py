"""Task API router.

- POST   /tasks           - Create task
- GET    /tasks           - List tasks (paged)
- GET    /tasks/filter    - Filter tasks by text, status, parents (paged)
- GET    /tasks/{id}      - Get task
- PUT    /tasks/{id}      - Update task
- DELETE /tasks/{id}      - Delete task
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, Response

from organizer.api.deps import TaskServiceDep
from organizer.api.pagination import PageParamsDep, to_page
from organizer.domain.models import Task, TaskFilter

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.post("", status_code=201, response_model=Task)
async def create_task(task: Task, tasks: TaskServiceDep) -> Task:
    return await tasks.create(task)


@router.get("")
async def get_all_tasks(tasks: TaskServiceDep, paging: PageParamsDep) -> dict[str, Any]:
    return to_page(await tasks.get_all(), paging)


@router.get("/filter")
async def filter_tasks(
    criteria: Annotated[TaskFilter, Query()],
    tasks: TaskServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    return to_page(await tasks.filter(criteria), paging)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: UUID, tasks: TaskServiceDep) -> Task:
    return await tasks.get_by_id(task_id)


@router.put("/{task_id}", response_model=Task)
async def update_task(task_id: UUID, task: Task, tasks: TaskServiceDep) -> Task:
    return await tasks.update(task_id, task)


@router.delete("/{task_id}", status_code=204)
async def delete_task(task_id: UUID, tasks: TaskServiceDep) -> Response:
    await tasks.delete(task_id)
    return Response(status_code=204)
