"""Observability module for the organizer service.

Provides metrics and structured logging:
- Prometheus metrics for HTTP traffic and cache behaviour
- JSON structured logging with correlation IDs
"""

from organizer.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
    request_id_var,
)
from organizer.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "request_id_var",
    "correlation_id_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
    "MetricsMiddleware",
]
