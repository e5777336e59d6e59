"""Startup selection of the cache backend.

Called once from the application lifespan, before the first request. The
choice is final for the lifetime of the process.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from organizer.cache.manager import CacheManager, LocalCacheManager, RedisCacheManager
from organizer.cache.registry import CACHE_TTL_SECONDS
from organizer.cache.resilience import CircuitBreaker

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from organizer.config import Settings

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., "Redis"]


async def select_backend(
    settings: Settings,
    client_factory: ClientFactory = redis.from_url,
) -> CacheManager:
    """Probe Redis and return the cache manager to use.

    Returns a RedisCacheManager when the configured Redis answers PING
    within ``cache_probe_timeout`` seconds, otherwise a LocalCacheManager.
    Never raises: an unset, malformed or unreachable Redis URL all select
    the in-memory cache.
    """
    if not settings.redis_url:
        logger.info("No Redis URL configured. Using in-memory cache")
        return _local(settings)

    client: Redis | None = None
    try:
        client = client_factory(settings.redis_url, decode_responses=False)
        await asyncio.wait_for(client.ping(), timeout=settings.cache_probe_timeout)
    except (RedisError, OSError, ValueError, asyncio.TimeoutError) as exc:
        logger.warning(
            "Redis cache manager is not available. Falling back to in-memory cache: %s",
            exc,
        )
        if client is not None:
            await _close_quietly(client)
        return _local(settings)

    logger.info("Redis cache manager initialized successfully")
    breaker = CircuitBreaker(
        failure_threshold=settings.cache_failure_threshold,
        recovery_timeout=settings.cache_recovery_timeout,
    )
    return RedisCacheManager(client, ttl=CACHE_TTL_SECONDS, breaker=breaker)


def _local(settings: Settings) -> LocalCacheManager:
    return LocalCacheManager(ttl=settings.local_cache_ttl)


async def _close_quietly(client: Any) -> None:
    try:
        await client.aclose()
    except (RedisError, OSError) as exc:
        logger.debug("Ignoring error while closing Redis probe client: %s", exc)
