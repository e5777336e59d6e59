"""FastAPI application factory for the organizer.

Creates the application with:
- Calendar, category, event, task and note routers
- Cache backend selection before the first request is served
- Correlation IDs, Prometheus metrics, throttling and CORS middleware
- Result/Message error responses
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from organizer.api.errors import (
    OrganizerApiError,
    domain_exception_handler,
    generic_exception_handler,
    organizer_api_exception_handler,
    validation_exception_handler,
)
from organizer.api.middleware import CorrelationMiddleware, ThrottlingConfig, ThrottlingMiddleware
from organizer.api.routers import calendars, categories, events, health, notes, tasks
from organizer.api.routers import metrics as metrics_router
from organizer.cache import select_backend
from organizer.config import settings
from organizer.observability import configure_logging
from organizer.observability.metrics import MetricsMiddleware, get_metrics
from organizer.persistence.db import close_db, get_session_factory, init_db
from organizer.persistence.store import SqlStore
from organizer.services.errors import OrganizerError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup:
    - Configure structured logging
    - Initialize Prometheus metrics
    - Create tables and the session factory
    - Select the cache backend (Redis if reachable, in-memory otherwise)

    On shutdown:
    - Close the cache backend
    - Close database connections
    """
    configure_logging(
        json_format=settings.env != "dev",
        level=settings.log_level,
    )
    get_metrics()

    logger.info("Starting %s (%s)", settings.app_name, settings.env)
    await init_db()
    app.state.session_factory = get_session_factory()
    app.state.store = SqlStore(app.state.session_factory)
    app.state.cache = await select_backend(settings)
    logger.info("Startup complete, cache backend: %s", app.state.cache.backend)

    yield

    logger.info("Shutting down %s", settings.app_name)
    await app.state.cache.close()
    await close_db()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Daily Organizer",
        description="Calendars, categories, events, tasks and notes with a read-through cache",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(CorrelationMiddleware)
    if settings.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    if settings.enable_throttling:
        app.add_middleware(
            ThrottlingMiddleware,
            config=ThrottlingConfig(
                requests_per_window=settings.throttle_requests,
                window_seconds=settings.throttle_window,
                max_clients=settings.throttle_max_clients,
                trust_forwarded_for=settings.throttle_trust_forwarded,
            ),
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(
        OrganizerApiError, cast(ExceptionHandler, organizer_api_exception_handler)
    )
    app.add_exception_handler(OrganizerError, cast(ExceptionHandler, domain_exception_handler))
    app.add_exception_handler(
        RequestValidationError, cast(ExceptionHandler, validation_exception_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    if settings.enable_metrics:
        app.include_router(metrics_router.router)

    app.include_router(calendars.router)
    app.include_router(categories.router)
    app.include_router(events.router)
    app.include_router(tasks.router)
    app.include_router(notes.router)

    return app
