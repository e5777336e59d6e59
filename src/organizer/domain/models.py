"""Organizer domain models.

Calendars group events, tasks and notes. Categories tag them across
calendars. JSON field names are camelCase (``calendarId``,
``startDate``); Python attributes are snake_case.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, model_validator

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 4096
DEFAULT_CATEGORY_COLOR = "#1976D2"


class StrictModel(BaseModel):
    """Base model for organizer entities.

    Unknown fields are rejected; string-to-enum coercion stays enabled for
    JSON input.
    """

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "validate_default": True,
    }


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


Title = Annotated[str, Field(max_length=TITLE_MAX_LENGTH), AfterValidator(_not_blank)]
Description = Annotated[str, Field(max_length=DESCRIPTION_MAX_LENGTH)]
Color = Annotated[str, Field(pattern=r"^#[0-9A-Fa-f]{6}$")]


class RecurringPattern(str, Enum):
    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Entity(StrictModel):
    """Identifier and audit timestamps, assigned by the store."""

    id: UUID | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class Calendar(Entity):
    title: Title
    emoji: Annotated[str, Field(max_length=TITLE_MAX_LENGTH)] | None = None


class Category(Entity):
    title: Title
    color: Color = DEFAULT_CATEGORY_COLOR


class Record(Entity):
    """An item that lives in a calendar and may carry a category."""

    calendar_id: UUID = Field(..., alias="calendarId")
    category_id: UUID | None = Field(default=None, alias="categoryId")


class Event(Record):
    title: Title
    description: Description | None = None
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    recurring_pattern: RecurringPattern = Field(
        default=RecurringPattern.NONE, alias="recurringPattern"
    )

    @model_validator(mode="after")
    def _check_dates(self) -> Event:
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class Task(Record):
    title: Title
    description: Description | None = None
    status: TaskStatus = TaskStatus.TODO


class Note(Record):
    title: Annotated[str, Field(max_length=TITLE_MAX_LENGTH)] | None = None
    description: Description


# -----------------------------------------------------------------------------
# Filters (every field optional, all given fields must match)
# -----------------------------------------------------------------------------


class Filter(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}


class CalendarFilter(Filter):
    title: str | None = None
    emoji: str | None = None


class CategoryFilter(Filter):
    title: str | None = None
    color: str | None = None


class RecordFilter(Filter):
    title: str | None = None
    description: str | None = None
    calendar_id: UUID | None = Field(default=None, alias="calendarId")
    category_id: UUID | None = Field(default=None, alias="categoryId")


class EventFilter(RecordFilter):
    date_from: datetime | None = Field(default=None, alias="dateFrom")
    date_to: datetime | None = Field(default=None, alias="dateTo")
    recurring_pattern: RecurringPattern | None = Field(default=None, alias="recurringPattern")


class TaskFilter(RecordFilter):
    status: TaskStatus | None = None


class NoteFilter(RecordFilter):
    pass
