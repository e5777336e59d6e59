"""Note API router.

- POST   /notes           - Create note
- GET    /notes           - List notes (paged)
- GET    /notes/filter    - Filter notes by text and parents (paged)
- GET    /notes/{id}      - Get note
- PUT    /notes/{id}      - Update note
- DELETE /notes/{id}      - Delete note
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, Response

from organizer.api.deps import NoteServiceDep
from organizer.api.pagination import PageParamsDep, to_page
from organizer.domain.models import Note, NoteFilter

router = APIRouter(prefix="/notes", tags=["Notes"])


@router.post("", status_code=201, response_model=Note)
async def create_note(note: Note, notes: NoteServiceDep) -> Note:
    return await notes.create(note)


@router.get("")
async def get_all_notes(notes: NoteServiceDep, paging: PageParamsDep) -> dict[str, Any]:
    return to_page(await notes.get_all(), paging)


@router.get("/filter")
async def filter_notes(
    criteria: Annotated[NoteFilter, Query()],
    notes: NoteServiceDep,
    paging: PageParamsDep,
) -> dict[str, Any]:
    return to_page(await notes.filter(criteria), paging)


@router.get("/{note_id}", response_model=Note)
async def get_note(note_id: UUID, notes: NoteServiceDep) -> Note:
    return await notes.get_by_id(note_id)


@router.put("/{note_id}", response_model=Note)
async def update_note(note_id: UUID, note: Note, notes: NoteServiceDep) -> Note:
    return await notes.update(note_id, note)


@router.delete("/{note_id}", status_code=204)
async def delete_note(note_id: UUID, notes: NoteServiceDep) -> Response:
    await notes.delete(note_id)
    return Response(status_code=204)
