"""Store: the system of record behind the caches.

The Store is the only component that reads or writes entity tables. Each
call runs in its own committed transaction, so by the time a write
returns its effect is visible to every later read. Calendar cascades and
category unlinks touch several tables inside that single transaction;
if any step fails none of it is committed.

Collections are ordered newest first (``created_at`` descending).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import ColumnElement, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from organizer.cache.invalidation import AffectedRecord
from organizer.cache.registry import DEPENDENT_FAMILIES, EntityFamily
from organizer.domain.models import Calendar, Category, Entity, Event, Note, Task
from organizer.persistence.db import session_context
from organizer.persistence.tables import (
    Base,
    CalendarTable,
    CategoryTable,
    EventTable,
    NoteTable,
    TaskTable,
    utcnow,
)

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)

_TABLES: dict[EntityFamily, type[Base]] = {
    EntityFamily.CALENDAR: CalendarTable,
    EntityFamily.CATEGORY: CategoryTable,
    EntityFamily.EVENT: EventTable,
    EntityFamily.TASK: TaskTable,
    EntityFamily.NOTE: NoteTable,
}

_MODELS: dict[EntityFamily, type[Entity]] = {
    EntityFamily.CALENDAR: Calendar,
    EntityFamily.CATEGORY: Category,
    EntityFamily.EVENT: Event,
    EntityFamily.TASK: Task,
    EntityFamily.NOTE: Note,
}

# Store-managed columns, never copied from an incoming entity
_MANAGED = {"id", "created_at", "updated_at"}

# Matched as case-insensitive substrings; every other criterion is exact
_TEXT_CRITERIA = {"title", "description"}


class Store(ABC):
    """Persistence operations the services depend on."""

    @abstractmethod
    async def load_by_id(self, family: EntityFamily, entity_id: UUID) -> Entity | None: ...

    @abstractmethod
    async def load_all(self, family: EntityFamily) -> list[Entity]: ...

    @abstractmethod
    async def load_all_by_parent(self, family: EntityFamily, calendar_id: UUID) -> list[Entity]: ...

    @abstractmethod
    async def load_all_by_category(
        self, family: EntityFamily, category_id: UUID
    ) -> list[Entity]: ...

    @abstractmethod
    async def filter(self, family: EntityFamily, criteria: BaseModel) -> list[Entity]: ...

    @abstractmethod
    async def save(self, family: EntityFamily, entity: EntityT) -> EntityT:
        """Insert when ``entity.id`` is unset or unknown, update otherwise."""

    @abstractmethod
    async def delete(self, family: EntityFamily, entity_id: UUID) -> bool:
        """Delete one entity. Returns False if it did not exist."""

    @abstractmethod
    async def delete_calendar_cascade(
        self, calendar_id: UUID
    ) -> dict[EntityFamily, list[AffectedRecord]]:
        """Delete a calendar with its events, tasks and notes in one transaction.

        Returns the removed items per family.
        """

    @abstractmethod
    async def delete_category_unlinking(
        self, category_id: UUID
    ) -> dict[EntityFamily, list[AffectedRecord]]:
        """Clear the category of every item, then delete it, in one transaction.

        Returns the unlinked items per family.
        """

    @abstractmethod
    async def exists_by_title(self, family: EntityFamily, title: str) -> bool: ...


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _dependent_table(family: EntityFamily) -> Any:
    if family not in DEPENDENT_FAMILIES:
        raise ValueError(f"{family.value} is not linked to calendars and categories")
    return _TABLES[family]


class SqlStore(Store):
    """SQLAlchemy implementation of the Store."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self.session_factory = session_factory

    def _to_model(self, family: EntityFamily, row: Any) -> Entity:
        values = {column.key: getattr(row, column.key) for column in row.__table__.columns}
        return _MODELS[family].model_validate(values)

    async def _select(self, family: EntityFamily, *conditions: ColumnElement[bool]) -> list[Entity]:
        table: Any = _TABLES[family]
        stmt = select(table).where(*conditions).order_by(table.created_at.desc(), table.id.desc())
        async with session_context(self.session_factory) as session:
            result = await session.execute(stmt)
            return [self._to_model(family, row) for row in result.scalars()]

    async def load_by_id(self, family: EntityFamily, entity_id: UUID) -> Entity | None:
        async with session_context(self.session_factory) as session:
            row = await session.get(_TABLES[family], entity_id)
            return self._to_model(family, row) if row is not None else None

    async def load_all(self, family: EntityFamily) -> list[Entity]:
        return await self._select(family)

    async def load_all_by_parent(self, family: EntityFamily, calendar_id: UUID) -> list[Entity]:
        table = _dependent_table(family)
        return await self._select(family, table.calendar_id == calendar_id)

    async def load_all_by_category(self, family: EntityFamily, category_id: UUID) -> list[Entity]:
        table = _dependent_table(family)
        return await self._select(family, table.category_id == category_id)

    async def filter(self, family: EntityFamily, criteria: BaseModel) -> list[Entity]:
        table: Any = _TABLES[family]
        return await self._select(family, *self._conditions(table, criteria))

    def _conditions(self, table: Any, criteria: BaseModel) -> Iterator[ColumnElement[bool]]:
        for name, value in criteria.model_dump(exclude_none=True).items():
            if name == "date_from":
                yield table.start_date >= value
            elif name == "date_to":
                yield table.end_date <= value
            elif name in _TEXT_CRITERIA:
                yield getattr(table, name).icontains(value, autoescape=True)
            else:
                yield getattr(table, name) == _column_value(value)

    async def save(self, family: EntityFamily, entity: EntityT) -> EntityT:
        table: Any = _TABLES[family]
        values = {
            name: _column_value(value)
            for name, value in entity.model_dump().items()
            if name not in _MANAGED
        }
        async with session_context(self.session_factory) as session:
            row = await session.get(table, entity.id) if entity.id is not None else None
            if row is None:
                row = table(**values)
                if entity.id is not None:
                    row.id = entity.id
                session.add(row)
            else:
                for name, value in values.items():
                    setattr(row, name, value)
                row.updated_at = utcnow()
            await session.flush()
            saved = self._to_model(family, row)
        logger.debug("Saved %s %s", family.value, saved.id)
        return saved  # type: ignore[return-value]

    async def delete(self, family: EntityFamily, entity_id: UUID) -> bool:
        async with session_context(self.session_factory) as session:
            row = await session.get(_TABLES[family], entity_id)
            if row is None:
                return False
            await session.delete(row)
        return True

    async def delete_calendar_cascade(
        self, calendar_id: UUID
    ) -> dict[EntityFamily, list[AffectedRecord]]:
        async with session_context(self.session_factory) as session:
            removed = {
                family: await _delete_by_calendar(session, family, calendar_id)
                for family in DEPENDENT_FAMILIES
            }
            await session.execute(delete(CalendarTable).where(CalendarTable.id == calendar_id))
        logger.debug(
            "Deleted calendar %s with %d items",
            calendar_id,
            sum(len(affected) for affected in removed.values()),
        )
        return removed

    async def delete_category_unlinking(
        self, category_id: UUID
    ) -> dict[EntityFamily, list[AffectedRecord]]:
        async with session_context(self.session_factory) as session:
            unlinked = {
                family: await _unlink_category(session, family, category_id)
                for family in DEPENDENT_FAMILIES
            }
            await session.execute(delete(CategoryTable).where(CategoryTable.id == category_id))
        logger.debug(
            "Deleted category %s, unlinked %d items",
            category_id,
            sum(len(affected) for affected in unlinked.values()),
        )
        return unlinked

    async def exists_by_title(self, family: EntityFamily, title: str) -> bool:
        table: Any = _TABLES[family]
        async with session_context(self.session_factory) as session:
            result = await session.execute(select(table.id).where(table.title == title).limit(1))
            return result.first() is not None


async def _delete_by_calendar(
    session: AsyncSession, family: EntityFamily, calendar_id: UUID
) -> list[AffectedRecord]:
    table = _dependent_table(family)
    result = await session.execute(
        select(table.id, table.calendar_id).where(table.calendar_id == calendar_id)
    )
    affected = [AffectedRecord(id=row.id, calendar_id=row.calendar_id) for row in result]
    if affected:
        await session.execute(delete(table).where(table.calendar_id == calendar_id))
    return affected


async def _unlink_category(
    session: AsyncSession, family: EntityFamily, category_id: UUID
) -> list[AffectedRecord]:
    table = _dependent_table(family)
    result = await session.execute(
        select(table.id, table.calendar_id).where(table.category_id == category_id)
    )
    affected = [AffectedRecord(id=row.id, calendar_id=row.calendar_id) for row in result]
    if affected:
        await session.execute(
            update(table)
            .where(table.category_id == category_id)
            .values(category_id=None, updated_at=utcnow())
        )
    return affected
