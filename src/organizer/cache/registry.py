"""Fixed catalog of named caches.

Every entity family owns an ``all<Family>`` cache and a ``<family>ById``
cache. Events, tasks and notes belong to a calendar and optionally to a
category, so they also own ``calendar<Family>`` and ``category<Family>``
caches keyed by the parent id.

The catalog is static: read accessors and invalidation rules may only
reference names defined here.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType

# Entry TTL on the distributed backend, applied uniformly to every cache name
CACHE_TTL_SECONDS = 300


class EntityFamily(str, Enum):
    """Entity families served by the organizer."""

    CALENDAR = "calendar"
    CATEGORY = "category"
    EVENT = "event"
    TASK = "task"
    NOTE = "note"


# Families linked to both a calendar and a category
DEPENDENT_FAMILIES: tuple[EntityFamily, ...] = (
    EntityFamily.EVENT,
    EntityFamily.TASK,
    EntityFamily.NOTE,
)


class Scope(str, Enum):
    """Scope of a cached view within a family."""

    ALL = "all"
    BY_ID = "byId"
    BY_CALENDAR = "byCalendar"
    BY_CATEGORY = "byCategory"


class CacheName(str, Enum):
    """Names of every cache the organizer may populate or evict."""

    ALL_CALENDARS = "allCalendars"
    CALENDAR_BY_ID = "calendarById"

    ALL_CATEGORIES = "allCategories"
    CATEGORY_BY_ID = "categoryById"

    ALL_EVENTS = "allEvents"
    EVENT_BY_ID = "eventById"
    CALENDAR_EVENTS = "calendarEvents"
    CATEGORY_EVENTS = "categoryEvents"

    ALL_TASKS = "allTasks"
    TASK_BY_ID = "taskById"
    CALENDAR_TASKS = "calendarTasks"
    CATEGORY_TASKS = "categoryTasks"

    ALL_NOTES = "allNotes"
    NOTE_BY_ID = "noteById"
    CALENDAR_NOTES = "calendarNotes"
    CATEGORY_NOTES = "categoryNotes"


CATALOG: MappingProxyType[tuple[EntityFamily, Scope], CacheName] = MappingProxyType(
    {
        (EntityFamily.CALENDAR, Scope.ALL): CacheName.ALL_CALENDARS,
        (EntityFamily.CALENDAR, Scope.BY_ID): CacheName.CALENDAR_BY_ID,
        (EntityFamily.CATEGORY, Scope.ALL): CacheName.ALL_CATEGORIES,
        (EntityFamily.CATEGORY, Scope.BY_ID): CacheName.CATEGORY_BY_ID,
        (EntityFamily.EVENT, Scope.ALL): CacheName.ALL_EVENTS,
        (EntityFamily.EVENT, Scope.BY_ID): CacheName.EVENT_BY_ID,
        (EntityFamily.EVENT, Scope.BY_CALENDAR): CacheName.CALENDAR_EVENTS,
        (EntityFamily.EVENT, Scope.BY_CATEGORY): CacheName.CATEGORY_EVENTS,
        (EntityFamily.TASK, Scope.ALL): CacheName.ALL_TASKS,
        (EntityFamily.TASK, Scope.BY_ID): CacheName.TASK_BY_ID,
        (EntityFamily.TASK, Scope.BY_CALENDAR): CacheName.CALENDAR_TASKS,
        (EntityFamily.TASK, Scope.BY_CATEGORY): CacheName.CATEGORY_TASKS,
        (EntityFamily.NOTE, Scope.ALL): CacheName.ALL_NOTES,
        (EntityFamily.NOTE, Scope.BY_ID): CacheName.NOTE_BY_ID,
        (EntityFamily.NOTE, Scope.BY_CALENDAR): CacheName.CALENDAR_NOTES,
        (EntityFamily.NOTE, Scope.BY_CATEGORY): CacheName.CATEGORY_NOTES,
    }
)


def cache_name_for(family: EntityFamily, scope: Scope) -> CacheName:
    """Return the catalog entry for a family and scope.

    Raises:
        ValueError: If the family has no cache for that scope
            (calendars and categories have no parent-scoped caches).
    """
    try:
        return CATALOG[(family, scope)]
    except KeyError:
        raise ValueError(f"No cache for {family.value} with scope {scope.value}") from None
