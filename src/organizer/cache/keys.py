"""Cache key schema for the organizer.

Logical keys are either the singleton token ``ALL`` or the string form of
an entity UUID (the item itself, or the calendar/category a collection is
scoped by). They are derived from call arguments only.

Backend key format: {prefix}:{cache_name}:{key}

Where:
- prefix: "organizer" (namespace for a shared Redis)
- cache_name: a catalog name such as "calendarEvents"
- key: "ALL" or a UUID
"""

from __future__ import annotations

from uuid import UUID

from organizer.cache.registry import CacheName, Scope

CacheKey = str

ALL: CacheKey = "ALL"


def key_for(scope: Scope, entity_id: UUID | None = None) -> CacheKey:
    """Derive the cache key for a read in the given scope.

    ``get_all()`` reads use ``ALL``; every other scope is keyed by the id
    passed to the read (item id, calendar id or category id).

    Raises:
        ValueError: If a non-``ALL`` scope is requested without an id.
    """
    if scope is Scope.ALL:
        return ALL
    if entity_id is None:
        raise ValueError(f"Scope {scope.value} requires an entity id")
    return str(entity_id)


class CacheKeys:
    """Backend key generator following a consistent naming convention."""

    PREFIX = "organizer"

    @classmethod
    def entry(cls, cache_name: CacheName, key: CacheKey) -> str:
        """Storage key for one cache entry."""
        return f"{cls.PREFIX}:{cache_name.value}:{key}"

    @classmethod
    def pattern(cls, cache_name: CacheName) -> str:
        """Pattern matching every entry of a cache.

        Use with Redis SCAN + DEL for all-entries eviction.
        """
        return f"{cls.PREFIX}:{cache_name.value}:*"
