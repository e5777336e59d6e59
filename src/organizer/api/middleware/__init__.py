"""HTTP middleware for the organizer API."""

from organizer.api.middleware.correlation import CorrelationMiddleware
from organizer.api.middleware.throttling import ThrottlingConfig, ThrottlingMiddleware

__all__ = [
    "CorrelationMiddleware",
    "ThrottlingConfig",
    "ThrottlingMiddleware",
]
