"""API routers for the organizer."""

from organizer.api.routers import (
    calendars,
    categories,
    events,
    health,
    metrics,
    notes,
    tasks,
)

__all__ = [
    "calendars",
    "categories",
    "events",
    "health",
    "metrics",
    "notes",
    "tasks",
]
