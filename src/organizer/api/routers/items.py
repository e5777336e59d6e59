"""Merged item listings for calendar and category views."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from organizer.domain.models import Event, Note, Record, Task


def _tagged(records: Sequence[Record], item_type: str) -> list[dict[str, Any]]:
    return [
        {**record.model_dump(mode="json", by_alias=True), "type": item_type}
        for record in records
    ]


def merge_items(
    events: Sequence[Event], tasks: Sequence[Task], notes: Sequence[Note]
) -> list[dict[str, Any]]:
    """Combine events, tasks and notes, newest first, each tagged with its type."""
    items = _tagged(events, "event") + _tagged(tasks, "task") + _tagged(notes, "note")
    items.sort(key=lambda item: item.get("createdAt") or "", reverse=True)
    return items
