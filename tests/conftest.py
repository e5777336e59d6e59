"""Global pytest configuration and fixtures.

Provides:
- FakeRedis: in-memory stand-in for the redis.asyncio client surface the
  cache uses (ping, get, setex, delete, scan_iter, aclose) and the
  sorted-set pipeline the throttle uses, with a switch to simulate an
  unreachable server
- Cache manager fixtures for both backends
- An in-memory SQLite store
- An API app and TestClient backed by the same
"""

from __future__ import annotations

import fnmatch
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from organizer.api.app import create_app
from organizer.cache import LocalCacheManager, RedisCacheManager
from organizer.cache.resilience import CircuitBreaker
from organizer.config import settings
from organizer.persistence.db import init_db
from organizer.persistence.store import SqlStore

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


class FakeRedis:
    """Minimal async Redis double.

    Set ``fail = True`` to make every command raise ConnectionError, as a
    client does once the server goes away.
    """

    def __init__(self) -> None:
        self.data: dict[bytes, bytes] = {}
        self.ttls: dict[bytes, int] = {}
        self.fail = False
        self.closed = False
        self.commands: list[str] = []
        self.zsets: dict[bytes, dict[bytes, float]] = {}

    @staticmethod
    def _key(key: str | bytes) -> bytes:
        return key.encode() if isinstance(key, str) else key

    def _command(self, name: str) -> None:
        self.commands.append(name)
        if self.fail:
            raise RedisConnectionError("Error 111 connecting to redis:6379. Connection refused.")

    async def ping(self) -> bool:
        self._command("PING")
        return True

    async def get(self, key: str | bytes) -> bytes | None:
        self._command("GET")
        return self.data.get(self._key(key))

    async def setex(self, key: str | bytes, ttl: int, value: bytes | str) -> bool:
        self._command("SETEX")
        stored = self._key(key)
        self.data[stored] = value if isinstance(value, bytes) else value.encode()
        self.ttls[stored] = ttl
        return True

    async def delete(self, *keys: str | bytes) -> int:
        self._command("DEL")
        removed = 0
        for key in keys:
            if self.data.pop(self._key(key), None) is not None:
                self.ttls.pop(self._key(key), None)
                removed += 1
        return removed

    async def scan_iter(self, match: str | None = None) -> AsyncIterator[bytes]:
        self._command("SCAN")
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key.decode(), match):
                yield key

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    async def aclose(self) -> None:
        self.closed = True

    def keys_of(self, cache_name: str) -> list[str]:
        prefix = f"organizer:{cache_name}:"
        return sorted(k.decode()[len(prefix) :] for k in self.data if k.decode().startswith(prefix))


class FakePipeline:
    """Queues the sorted-set commands the throttle uses; runs them on execute."""

    def __init__(self, redis: FakeRedis) -> None:
        self.redis = redis
        self.queued: list[Callable[[], Any]] = []

    def _zset(self, key: str | bytes) -> dict[bytes, float]:
        return self.redis.zsets.setdefault(FakeRedis._key(key), {})

    def zremrangebyscore(self, key: str | bytes, low: float, high: float) -> FakePipeline:
        def run() -> int:
            members = self._zset(key)
            stale = [m for m, score in members.items() if low <= score <= high]
            for member in stale:
                del members[member]
            return len(stale)

        self.queued.append(run)
        return self

    def zcard(self, key: str | bytes) -> FakePipeline:
        self.queued.append(lambda: len(self._zset(key)))
        return self

    def zrange(
        self, key: str | bytes, start: int, end: int, withscores: bool = False
    ) -> FakePipeline:
        def run() -> list[Any]:
            ordered = sorted(self._zset(key).items(), key=lambda item: item[1])
            selected = ordered[start : end + 1 if end != -1 else None]
            return selected if withscores else [member for member, _ in selected]

        self.queued.append(run)
        return self

    def zadd(self, key: str | bytes, mapping: dict[str, float]) -> FakePipeline:
        def run() -> int:
            members = self._zset(key)
            added = 0
            for member, score in mapping.items():
                stored = FakeRedis._key(member)
                added += stored not in members
                members[stored] = score
            return added

        self.queued.append(run)
        return self

    def expire(self, key: str | bytes, seconds: int) -> FakePipeline:
        def run() -> bool:
            self.redis.ttls[FakeRedis._key(key)] = seconds
            return True

        self.queued.append(run)
        return self

    async def execute(self) -> list[Any]:
        self.redis._command("EXEC")
        queued, self.queued = self.queued, []
        return [run() for run in queued]


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def local_cache() -> LocalCacheManager:
    return LocalCacheManager()


@pytest.fixture
def redis_cache(fake_redis: FakeRedis) -> RedisCacheManager:
    breaker = CircuitBreaker(failure_threshold=3)
    return RedisCacheManager(fake_redis, breaker=breaker)  # type: ignore[arg-type]


@pytest.fixture(params=["local", "redis"])
def cache(request: pytest.FixtureRequest, fake_redis: FakeRedis) -> Any:
    """Each test using this fixture runs against both backends."""
    if request.param == "local":
        return LocalCacheManager()
    return RedisCacheManager(fake_redis)  # type: ignore[arg-type]


def make_engine() -> Any:
    return create_async_engine(
        SQLITE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = make_engine()
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SqlStore:
    return SqlStore(session_factory)


@pytest.fixture
def api_app(monkeypatch: pytest.MonkeyPatch, fake_redis: FakeRedis) -> FastAPI:
    """Application wired to in-memory SQLite and an in-memory cache.

    The engine is created inside the lifespan so it binds to the event
    loop the TestClient runs. Throttling is switched off; it has its own
    tests. Set ``app.state.use_redis = True`` before entering the client
    to serve through the Redis double instead.
    """
    monkeypatch.setattr(settings, "enable_throttling", False)
    app = create_app()
    app.state.use_redis = False

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = make_engine()
        await init_db(engine)
        app.state.session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        app.state.store = SqlStore(app.state.session_factory)
        if app.state.use_redis:
            app.state.cache = RedisCacheManager(fake_redis)  # type: ignore[arg-type]
        else:
            app.state.cache = LocalCacheManager()
        yield
        await engine.dispose()

    app.router.lifespan_context = lifespan
    return app


@pytest.fixture
def client(api_app: FastAPI) -> Iterator[TestClient]:
    with TestClient(api_app) as test_client:
        yield test_client
