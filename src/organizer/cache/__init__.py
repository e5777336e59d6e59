"""Cache layer for the organizer.

Provides named caches with the read-through pattern:
- Redis when reachable at startup, an in-memory map otherwise
- Fixed catalog of cache names and a uniform 5-minute Redis TTL
- Declarative invalidation rules applied after every committed write
"""

from organizer.cache.accessor import ReadThroughAccessor
from organizer.cache.backend import select_backend
from organizer.cache.invalidation import (
    INVALIDATION_RULES,
    AffectedRecord,
    Eviction,
    InvalidationCoordinator,
    MutationContext,
    Operation,
)
from organizer.cache.keys import ALL, CacheKeys, key_for
from organizer.cache.manager import CacheManager, LocalCacheManager, RedisCacheManager
from organizer.cache.registry import (
    CACHE_TTL_SECONDS,
    CATALOG,
    DEPENDENT_FAMILIES,
    CacheName,
    EntityFamily,
    Scope,
    cache_name_for,
)

__all__ = [
    # Catalog
    "CACHE_TTL_SECONDS",
    "CATALOG",
    "DEPENDENT_FAMILIES",
    "CacheName",
    "EntityFamily",
    "Scope",
    "cache_name_for",
    # Keys
    "ALL",
    "CacheKeys",
    "key_for",
    # Managers
    "CacheManager",
    "LocalCacheManager",
    "RedisCacheManager",
    "select_backend",
    # Read and invalidate
    "ReadThroughAccessor",
    "INVALIDATION_RULES",
    "AffectedRecord",
    "Eviction",
    "InvalidationCoordinator",
    "MutationContext",
    "Operation",
]
