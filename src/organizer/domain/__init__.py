"""Organizer domain models."""

from organizer.domain.models import (
    DEFAULT_CATEGORY_COLOR,
    Calendar,
    CalendarFilter,
    Category,
    CategoryFilter,
    Event,
    EventFilter,
    Note,
    NoteFilter,
    Record,
    RecordFilter,
    RecurringPattern,
    Task,
    TaskFilter,
    TaskStatus,
)

__all__ = [
    "DEFAULT_CATEGORY_COLOR",
    "Calendar",
    "CalendarFilter",
    "Category",
    "CategoryFilter",
    "Event",
    "EventFilter",
    "Note",
    "NoteFilter",
    "Record",
    "RecordFilter",
    "RecurringPattern",
    "Task",
    "TaskFilter",
    "TaskStatus",
]
