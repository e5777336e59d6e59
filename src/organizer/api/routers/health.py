"""Health check endpoints.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks database and cache backend)

The cache never makes the service unready: an unreachable Redis only
degrades it, because reads fall through to the database.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse

from organizer.cache import CacheManager
from organizer.persistence.db import health_check as db_health_check

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 5.0  # seconds


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def check_database(request: Request) -> ComponentHealth:
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(
            db_health_check(getattr(request.app.state, "session_factory", None)),
            timeout=CHECK_TIMEOUT,
        )
    except asyncio.TimeoutError:
        return ComponentHealth(
            name="database",
            status=HealthStatus.UNHEALTHY,
            latency_ms=(time.monotonic() - start) * 1000,
            message="Database check timed out",
        )
    return ComponentHealth(
        name="database",
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        latency_ms=(time.monotonic() - start) * 1000,
        message=None if healthy else "Database check failed",
    )


async def check_cache(cache: CacheManager) -> ComponentHealth:
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(cache.ping(), timeout=CHECK_TIMEOUT)
    except asyncio.TimeoutError:
        healthy = False
    return ComponentHealth(
        name=f"cache:{cache.backend}",
        status=HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED,
        latency_ms=(time.monotonic() - start) * 1000,
        message=None if healthy else "Cache backend unreachable, reads go to the database",
    )


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(request: Request) -> ORJSONResponse:
    """Readiness probe.

    Returns 200 when the database is reachable (the cache may be
    degraded), 503 otherwise.
    """
    db_result, cache_result = await asyncio.gather(
        check_database(request),
        check_cache(request.app.state.cache),
    )
    components = [db_result, cache_result]

    if all(c.status == HealthStatus.HEALTHY for c in components):
        overall_status = HealthStatus.HEALTHY
    elif any(c.status == HealthStatus.UNHEALTHY for c in components):
        overall_status = HealthStatus.UNHEALTHY
    else:
        overall_status = HealthStatus.DEGRADED

    return ORJSONResponse(
        content={
            "status": overall_status.value,
            "components": [c.to_dict() for c in components],
        },
        status_code=503 if overall_status == HealthStatus.UNHEALTHY else 200,
    )
