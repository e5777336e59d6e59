"""Circuit breaker guarding the distributed cache after startup.

Once the backend is selected it is never swapped. If Redis becomes
unreachable later, repeated failures open the circuit so requests stop
paying connection timeouts; reads then miss and writes are skipped until
the recovery timeout lets a trial call through.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Exceptions that count against the circuit
FAILURE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    RedisConnectionError,
    RedisTimeoutError,
    ConnectionError,
    TimeoutError,
    OSError,
)


class CircuitState(str, Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # One trial call allowed


class CircuitOpenError(Exception):
    """Raised when a call is rejected because the circuit is open."""


class CircuitBreaker:
    """Consecutive-failure circuit breaker for async calls."""

    def __init__(
        self,
        failure_threshold: int = 3,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: float | None = None

    def allow_request(self) -> bool:
        if self.state is CircuitState.OPEN:
            elapsed = self._clock() - (self.opened_at or 0.0)
            if elapsed >= self.recovery_timeout:
                self.state = CircuitState.HALF_OPEN
                logger.info("Cache circuit breaker half-open, trying backend again")
                return True
            return False
        return True

    def record_success(self) -> None:
        if self.state is not CircuitState.CLOSED:
            logger.info("Cache circuit breaker closed, backend recovered")
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        if self.state is CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state is not CircuitState.OPEN:
                logger.warning(
                    "Cache circuit breaker opened after %d consecutive failures",
                    self.failure_count,
                )
            self.state = CircuitState.OPEN
            self.opened_at = self._clock()

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """Run ``func`` under the breaker.

        Raises:
            CircuitOpenError: If the circuit is open.
            Exception: The original failure, after it has been recorded.
        """
        if not self.allow_request():
            raise CircuitOpenError("Cache circuit is open")
        try:
            result = await func()
        except FAILURE_EXCEPTIONS:
            self.record_failure()
            raise
        self.record_success()
        return result
