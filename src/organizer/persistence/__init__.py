"""Persistence layer for the organizer.

This module provides:
- Async engine and session factory (PostgreSQL or SQLite)
- SQLAlchemy ORM tables for calendars, categories, events, tasks, notes
- The Store used by services, one committed transaction per call
"""

from organizer.persistence.db import (
    close_db,
    get_engine,
    get_session_factory,
    health_check,
    init_db,
    session_context,
)
from organizer.persistence.store import SqlStore, Store
from organizer.persistence.tables import (
    Base,
    CalendarTable,
    CategoryTable,
    EventTable,
    NoteTable,
    TaskTable,
)

__all__ = [
    # DB
    "get_engine",
    "get_session_factory",
    "session_context",
    "init_db",
    "close_db",
    "health_check",
    # Tables
    "Base",
    "CalendarTable",
    "CategoryTable",
    "EventTable",
    "TaskTable",
    "NoteTable",
    # Store
    "Store",
    "SqlStore",
]
