"""Read-through access to named caches.

Consults the cache under (cache_name, key); on a hit the store is not
touched, on a miss the loader runs and its result is cached.

An entry that no longer validates against the reader's type (for example
one written by an older release into a shared Redis) is dropped and
treated as a miss.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from organizer.cache.keys import CacheKey
from organizer.cache.manager import CacheManager
from organizer.cache.registry import CacheName
from organizer.observability.metrics import record_cache_hit, record_cache_miss

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReadThroughAccessor:
    """Wraps store reads with the active cache manager."""

    def __init__(self, cache: CacheManager):
        self.cache = cache

    async def read(
        self,
        cache_name: CacheName,
        key: CacheKey,
        loader: Callable[[], Awaitable[T]],
        adapter: TypeAdapter[T],
    ) -> T:
        """Return the cached value or load, cache and return it.

        Only a missing entry counts as a miss; an empty collection is a
        valid cached value. If ``loader`` raises, the exception propagates
        and nothing is cached.
        """
        cached: Any = await self.cache.get(cache_name, key)
        if cached is not None:
            try:
                value = adapter.validate_python(cached)
            except ValidationError as exc:
                logger.warning(
                    "Discarding invalid cache entry %s[%s]: %d validation errors",
                    cache_name.value,
                    key,
                    exc.error_count(),
                )
                await self.cache.evict(cache_name, key)
            else:
                record_cache_hit(cache_name.value, self.cache.backend)
                logger.debug("Cache hit %s[%s]", cache_name.value, key)
                return value

        record_cache_miss(cache_name.value, self.cache.backend)
        logger.debug("Cache miss %s[%s]", cache_name.value, key)
        value = await loader()
        encoded = adapter.dump_python(value, mode="json", by_alias=True)
        await self.cache.put(cache_name, key, encoded)
        return value
