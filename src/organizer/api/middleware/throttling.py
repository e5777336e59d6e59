"""Per-client request throttling.

Each client may make ``requests_per_window`` requests per
``window_seconds``; a request over budget is rejected with 429 and a
``Retry-After`` header.

Two counters exist:
- RedisThrottle: sliding window in a Redis sorted set, shared by every
  replica. Used whenever the application selected the Redis cache.
- LocalThrottle: process-local token buckets, used with the in-memory
  cache and whenever a Redis call fails. The bucket map is bounded.
"""

from __future__ import annotations

import logging
import math
import threading
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from organizer.api.errors import TooManyRequestsError, error_response
from organizer.cache.keys import CacheKeys
from organizer.cache.manager import RedisCacheManager
from organizer.cache.resilience import FAILURE_EXCEPTIONS, CircuitBreaker, CircuitOpenError

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)


@dataclass
class ThrottlingConfig:
    """Throttling configuration."""

    # Maximum requests per window
    requests_per_window: int = 60
    # Window duration in seconds
    window_seconds: int = 60
    # Path prefixes to bypass (health checks, metrics)
    bypass_prefixes: list[str] = field(default_factory=lambda: ["/health", "/metrics"])
    # Clients tracked by the local fallback before the least recent is dropped
    max_clients: int = 10_000
    # Key clients by X-Forwarded-For; only safe behind a proxy that sets it
    trust_forwarded_for: bool = False


class TokenBucket:
    """Greedy-refill token bucket."""

    def __init__(self, capacity: int, refill_seconds: float, now: float):
        self.capacity = capacity
        self.rate = capacity / refill_seconds
        self.tokens = float(capacity)
        self.updated = now

    def try_consume(self, now: float) -> bool:
        elapsed = max(0.0, now - self.updated)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.updated = now
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False

    def seconds_until_token(self) -> int:
        return max(1, math.ceil((1 - self.tokens) / self.rate))


class LocalThrottle:
    """Token buckets per client, at most ``max_clients`` of them.

    When the map is full the least recently seen client is forgotten; its
    next request starts from a full bucket.
    """

    def __init__(self, config: ThrottlingConfig):
        self.config = config
        self._buckets: OrderedDict[str, TokenBucket] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._buckets)

    def acquire(self, client: str, now: float) -> tuple[bool, int]:
        """Spend one token. Returns (allowed, retry_after_seconds)."""
        with self._lock:
            bucket = self._buckets.get(client)
            if bucket is None:
                while len(self._buckets) >= self.config.max_clients:
                    self._buckets.popitem(last=False)
                bucket = TokenBucket(
                    self.config.requests_per_window, self.config.window_seconds, now
                )
                self._buckets[client] = bucket
            else:
                self._buckets.move_to_end(client)
            allowed = bucket.try_consume(now)
            return allowed, 0 if allowed else bucket.seconds_until_token()


class RedisThrottle:
    """Redis-backed sliding window.

    Uses one sorted set per client, scored by request time. Entries older
    than the window are trimmed on every check and the key expires once
    the client goes quiet.
    """

    def __init__(self, client: Redis, config: ThrottlingConfig, breaker: CircuitBreaker):
        self.client = client
        self.config = config
        self.breaker = breaker

    @staticmethod
    def key(client: str) -> str:
        return f"{CacheKeys.PREFIX}:throttle:{client}"

    async def acquire(self, client: str, now: float) -> tuple[bool, int]:
        """Record one request. Returns (allowed, retry_after_seconds).

        Raises:
            RedisError, CircuitOpenError: If Redis cannot be used.
        """
        return await self.breaker.call(lambda: self._acquire(self.key(client), now))

    async def _acquire(self, key: str, now: float) -> tuple[bool, int]:
        window = self.config.window_seconds

        pipe = self.client.pipeline()
        pipe.zremrangebyscore(key, 0, now - window)
        pipe.zcard(key)
        pipe.zrange(key, 0, 0, withscores=True)
        _, count, oldest = await pipe.execute()

        if count >= self.config.requests_per_window:
            oldest_at = oldest[0][1] if oldest else now
            return False, max(1, math.ceil(oldest_at + window - now))

        pipe = self.client.pipeline()
        pipe.zadd(key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
        pipe.expire(key, window + 1)
        await pipe.execute()
        return True, 0


class ThrottlingMiddleware(BaseHTTPMiddleware):
    """Rejects clients that exceed their request budget.

    The Redis counter is picked up lazily from ``app.state.cache`` at
    request time, since the cache backend is selected during startup.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: ThrottlingConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(app)
        self.config = config or ThrottlingConfig()
        self._clock = clock
        self.local = LocalThrottle(self.config)
        self._redis: RedisThrottle | None = None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if any(path.startswith(prefix) for prefix in self.config.bypass_prefixes):
            return await call_next(request)

        allowed, retry_after = await self._acquire(request, self._get_client_ip(request))
        if not allowed:
            return error_response(TooManyRequestsError(retry_after))
        return await call_next(request)

    async def _acquire(self, request: Request, client: str) -> tuple[bool, int]:
        now = self._clock()
        redis_throttle = self._get_redis_throttle(request)
        if redis_throttle is not None:
            try:
                return await redis_throttle.acquire(client, now)
            except (CircuitOpenError, RedisError, *FAILURE_EXCEPTIONS) as exc:
                logger.debug("Redis throttle unavailable, counting locally: %s", exc)
        return self.local.acquire(client, now)

    def _get_redis_throttle(self, request: Request) -> RedisThrottle | None:
        cache = getattr(request.app.state, "cache", None)
        if not isinstance(cache, RedisCacheManager):
            return None
        if self._redis is None or self._redis.client is not cache.client:
            self._redis = RedisThrottle(cache.client, self.config, cache.breaker)
        return self._redis

    def _get_client_ip(self, request: Request) -> str:
        if self.config.trust_forwarded_for:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                # Take the first IP (original client)
                return forwarded.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"
