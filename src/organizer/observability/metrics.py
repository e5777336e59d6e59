"""Prometheus metrics for the organizer service.

Provides metrics collection and exposure:
- HTTP request metrics (latency, count)
- Cache metrics (hits, misses, evictions, backend errors)

Usage:
    from organizer.observability.metrics import record_cache_hit

    record_cache_hit("calendarById", backend="redis")
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from organizer.config import settings

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

_UUID_SEGMENT = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # HTTP metrics
    http_requests_total: Any = None
    http_request_duration_seconds: Any = None

    # Cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_evictions_total: Any = None
    cache_errors_total: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics on a private collector registry."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = CollectorRegistry()

        self.http_requests_total = Counter(
            "organizer_http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
            registry=self._registry,
        )

        self.http_request_duration_seconds = Histogram(
            "organizer_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "path"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
            registry=self._registry,
        )

        self.cache_hits_total = Counter(
            "organizer_cache_hits_total",
            "Cache hits",
            ["cache", "backend"],
            registry=self._registry,
        )

        self.cache_misses_total = Counter(
            "organizer_cache_misses_total",
            "Cache misses",
            ["cache", "backend"],
            registry=self._registry,
        )

        self.cache_evictions_total = Counter(
            "organizer_cache_evictions_total",
            "Cache evictions issued by invalidation rules",
            ["cache", "scope"],
            registry=self._registry,
        )

        self.cache_errors_total = Counter(
            "organizer_cache_errors_total",
            "Cache backend operations that failed or were short-circuited",
            ["operation", "backend"],
            registry=self._registry,
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request metrics.

    Records:
    - Request count by method, path, status
    - Request duration histogram
    """

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        if request.url.path.startswith(("/health", "/metrics")):
            return await call_next(request)

        method = request.method
        path = normalize_path(request.url.path)
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time

            if self.metrics.http_requests_total:
                self.metrics.http_requests_total.labels(
                    method=method,
                    path=path,
                    status=status_code,
                ).inc()

            if self.metrics.http_request_duration_seconds:
                self.metrics.http_request_duration_seconds.labels(
                    method=method,
                    path=path,
                ).observe(duration)


def normalize_path(path: str) -> str:
    """Replace UUID segments with a placeholder to bound label cardinality.

    Examples:
        /calendars/2f1c.../events -> /calendars/{id}/events
    """
    parts = path.strip("/").split("/")
    normalized = ["{id}" if _UUID_SEGMENT.match(part) else part for part in parts]
    return "/" + "/".join(normalized) if path.strip("/") else path


def record_cache_hit(cache_name: str, backend: str) -> None:
    """Record cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(cache=cache_name, backend=backend).inc()


def record_cache_miss(cache_name: str, backend: str) -> None:
    """Record cache miss."""
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(cache=cache_name, backend=backend).inc()


def record_cache_eviction(cache_name: str, all_entries: bool) -> None:
    """Record an eviction issued by the invalidation coordinator."""
    metrics = get_metrics()
    if metrics.cache_evictions_total:
        metrics.cache_evictions_total.labels(
            cache=cache_name,
            scope="all" if all_entries else "key",
        ).inc()


def record_cache_error(operation: str, backend: str) -> None:
    """Record a cache backend operation that failed or was skipped.

    Args:
        operation: Cache operation (get, put, evict, evict_all)
        backend: Cache backend label (redis, local)
    """
    metrics = get_metrics()
    if metrics.cache_errors_total:
        metrics.cache_errors_total.labels(operation=operation, backend=backend).inc()
