"""Tests for the cache circuit breaker."""

from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from organizer.cache.resilience import CircuitBreaker, CircuitOpenError, CircuitState


class Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


async def _fail() -> None:
    raise RedisConnectionError("down")


async def _ok() -> str:
    return "ok"


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def breaker(clock: Clock) -> CircuitBreaker:
    return CircuitBreaker(failure_threshold=3, recovery_timeout=30, clock=clock)


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_success_passes_through(self, breaker: CircuitBreaker) -> None:
        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failures_below_threshold_keep_circuit_closed(
        self, breaker: CircuitBreaker
    ) -> None:
        for _ in range(2):
            with pytest.raises(RedisConnectionError):
                await breaker.call(_fail)
        assert breaker.state is CircuitState.CLOSED
        assert breaker.failure_count == 2

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, breaker: CircuitBreaker) -> None:
        with pytest.raises(RedisConnectionError):
            await breaker.call(_fail)
        await breaker.call(_ok)
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_opens_at_threshold(self, breaker: CircuitBreaker) -> None:
        for _ in range(3):
            with pytest.raises(RedisConnectionError):
                await breaker.call(_fail)

        assert breaker.state is CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            await breaker.call(_ok)

    @pytest.mark.asyncio
    async def test_half_open_trial_success_closes(
        self, breaker: CircuitBreaker, clock: Clock
    ) -> None:
        for _ in range(3):
            with pytest.raises(RedisConnectionError):
                await breaker.call(_fail)

        clock.now = 30.0
        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_trial_failure_reopens(
        self, breaker: CircuitBreaker, clock: Clock
    ) -> None:
        for _ in range(3):
            with pytest.raises(RedisConnectionError):
                await breaker.call(_fail)

        clock.now = 45.0
        with pytest.raises(RedisConnectionError):
            await breaker.call(_fail)

        assert breaker.state is CircuitState.OPEN
        assert breaker.opened_at == 45.0

    @pytest.mark.asyncio
    async def test_unrelated_errors_are_not_counted(self, breaker: CircuitBreaker) -> None:
        async def boom() -> None:
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await breaker.call(boom)
        assert breaker.failure_count == 0
