"""Cache managers: the capability every cache backend provides.

Two implementations exist:
- LocalCacheManager: process-local map, used when Redis is not configured
  or not reachable at startup
- RedisCacheManager: shared Redis cache with a fixed entry TTL

Values handed to a manager are JSON-compatible Python structures (dicts,
lists, strings, numbers). Both managers serialize them with orjson so that
a cached value never aliases a caller's object.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import orjson
from redis.exceptions import RedisError

from organizer.cache.keys import CacheKey, CacheKeys
from organizer.cache.registry import CACHE_TTL_SECONDS, CacheName
from organizer.cache.resilience import FAILURE_EXCEPTIONS, CircuitBreaker, CircuitOpenError
from organizer.observability.metrics import record_cache_error

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Errors a Redis call may surface; none of them reach callers
_BACKEND_ERRORS: tuple[type[BaseException], ...] = (
    CircuitOpenError,
    RedisError,
    *FAILURE_EXCEPTIONS,
)

# Keys deleted per DEL round-trip during evict_all
_DELETE_BATCH = 500


class CacheManager(ABC):
    """Named-cache store: get, put, evict, evict_all."""

    backend: str = "unknown"

    @abstractmethod
    async def get(self, cache_name: CacheName, key: CacheKey) -> Any | None:
        """Return the cached value, or None on a miss."""

    @abstractmethod
    async def put(self, cache_name: CacheName, key: CacheKey, value: Any) -> None:
        """Store a value under (cache_name, key)."""

    @abstractmethod
    async def evict(self, cache_name: CacheName, key: CacheKey) -> None:
        """Remove one entry. Removing an absent entry is a no-op."""

    @abstractmethod
    async def evict_all(self, cache_name: CacheName) -> None:
        """Remove every entry of one cache name."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:  # noqa: B027
        """Release backend resources."""


class LocalCacheManager(CacheManager):
    """Process-local cache.

    Entries never expire unless ``ttl`` is given; they live until evicted
    or until the process restarts. Access is guarded by a lock so the map
    stays consistent when shared with worker threads.
    """

    backend = "local"

    def __init__(self, ttl: float | None = None):
        self.ttl = ttl
        self._lock = threading.Lock()
        self._caches: dict[CacheName, dict[CacheKey, tuple[bytes, float | None]]] = {}

    async def get(self, cache_name: CacheName, key: CacheKey) -> Any | None:
        with self._lock:
            entries = self._caches.get(cache_name)
            if not entries or key not in entries:
                return None
            payload, expires_at = entries[key]
            if expires_at is not None and time.monotonic() >= expires_at:
                del entries[key]
                return None
        return orjson.loads(payload)

    async def put(self, cache_name: CacheName, key: CacheKey, value: Any) -> None:
        payload = orjson.dumps(value)
        expires_at = time.monotonic() + self.ttl if self.ttl is not None else None
        with self._lock:
            self._caches.setdefault(cache_name, {})[key] = (payload, expires_at)

    async def evict(self, cache_name: CacheName, key: CacheKey) -> None:
        with self._lock:
            entries = self._caches.get(cache_name)
            if entries is not None:
                entries.pop(key, None)

    async def evict_all(self, cache_name: CacheName) -> None:
        with self._lock:
            self._caches.pop(cache_name, None)


class RedisCacheManager(CacheManager):
    """Redis-backed cache with a uniform entry TTL.

    Backend failures after startup never propagate: a failed ``get`` is a
    miss, a failed ``put``/``evict``/``evict_all`` is logged and skipped.
    """

    backend = "redis"

    def __init__(
        self,
        client: Redis,
        ttl: int = CACHE_TTL_SECONDS,
        breaker: CircuitBreaker | None = None,
    ):
        self.client = client
        self.ttl = ttl
        self.breaker = breaker or CircuitBreaker()

    def _backend_failed(self, operation: str, cache_name: CacheName, exc: BaseException) -> None:
        record_cache_error(operation, self.backend)
        logger.warning(
            "Redis cache %s on %s failed: %s",
            operation,
            cache_name.value,
            exc,
        )

    async def get(self, cache_name: CacheName, key: CacheKey) -> Any | None:
        storage_key = CacheKeys.entry(cache_name, key)
        try:
            payload = await self.breaker.call(lambda: self.client.get(storage_key))
        except _BACKEND_ERRORS as exc:
            self._backend_failed("get", cache_name, exc)
            return None

        if payload is None:
            return None
        try:
            return orjson.loads(payload)
        except orjson.JSONDecodeError:
            logger.warning("Discarding undecodable cache entry %s", storage_key)
            return None

    async def put(self, cache_name: CacheName, key: CacheKey, value: Any) -> None:
        storage_key = CacheKeys.entry(cache_name, key)
        payload = orjson.dumps(value)
        try:
            await self.breaker.call(lambda: self.client.setex(storage_key, self.ttl, payload))
        except _BACKEND_ERRORS as exc:
            self._backend_failed("put", cache_name, exc)

    async def evict(self, cache_name: CacheName, key: CacheKey) -> None:
        storage_key = CacheKeys.entry(cache_name, key)
        try:
            await self.breaker.call(lambda: self.client.delete(storage_key))
        except _BACKEND_ERRORS as exc:
            self._backend_failed("evict", cache_name, exc)

    async def evict_all(self, cache_name: CacheName) -> None:
        try:
            await self.breaker.call(lambda: self._delete_pattern(CacheKeys.pattern(cache_name)))
        except _BACKEND_ERRORS as exc:
            self._backend_failed("evict_all", cache_name, exc)

    async def _delete_pattern(self, pattern: str) -> int:
        deleted = 0
        batch: list[Any] = []
        async for storage_key in self.client.scan_iter(match=pattern):
            batch.append(storage_key)
            if len(batch) >= _DELETE_BATCH:
                deleted += await self.client.delete(*batch)
                batch = []
        if batch:
            deleted += await self.client.delete(*batch)
        return deleted

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except _BACKEND_ERRORS:
            return False

    async def close(self) -> None:
        await self.client.aclose()
