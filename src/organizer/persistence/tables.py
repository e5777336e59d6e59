"""SQLAlchemy ORM models for organizer persistence.

Calendars and categories own events, tasks and notes:
- calendar_id: required, children are removed with their calendar
- category_id: optional, cleared when the category is removed

Calendar and category titles are unique.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 4096


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class CalendarTable(TimestampMixin, Base):
    __tablename__ = "calendar"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), unique=True, nullable=False)
    emoji: Mapped[str | None] = mapped_column(String(TITLE_MAX_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<CalendarTable(id={self.id!r}, title={self.title!r})>"


class CategoryTable(TimestampMixin, Base):
    __tablename__ = "category"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), unique=True, nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)

    def __repr__(self) -> str:
        return f"<CategoryTable(id={self.id!r}, title={self.title!r})>"


class RecordMixin(TimestampMixin):
    """Columns shared by events, tasks and notes."""

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    calendar_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("calendar.id"), nullable=False, index=True
    )
    category_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("category.id"), nullable=True, index=True
    )


class EventTable(RecordMixin, Base):
    __tablename__ = "event"

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    recurring_pattern: Mapped[str] = mapped_column(String(16), nullable=False, default="NONE")

    __table_args__ = (Index("ix_event_start_date", "start_date"),)

    def __repr__(self) -> str:
        return f"<EventTable(id={self.id!r}, title={self.title!r})>"


class TaskTable(RecordMixin, Base):
    __tablename__ = "task"

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="TODO")

    def __repr__(self) -> str:
        return f"<TaskTable(id={self.id!r}, title={self.title!r})>"


class NoteTable(RecordMixin, Base):
    __tablename__ = "note"

    title: Mapped[str | None] = mapped_column(String(TITLE_MAX_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<NoteTable(id={self.id!r}, title={self.title!r})>"
