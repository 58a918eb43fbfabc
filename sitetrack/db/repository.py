"""Table-level access to the tracking store.

Rows cross this boundary as plain dicts keyed by ORM attribute name, with ids as
strings. Every call opens its own session and commits on its own, so two calls are
never atomic with respect to each other.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Uuid, inspect, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sitetrack.common.logging import get_logger
from sitetrack.db.base import BaseModel
from sitetrack.db.models import MediaFile, Milestone, Phase, ProgressComment, Project, Task, User

logger = get_logger("db.repository")

TABLES: dict[str, type[BaseModel]] = {
    "users": User,
    "projects": Project,
    "phases": Phase,
    "tasks": Task,
    "progress_comments": ProgressComment,
    "media_files": MediaFile,
    "milestones": Milestone,
}

_HIDDEN_COLUMNS = {"is_deleted", "deleted_at", "updated_at"}

Row = dict[str, Any]


class RepositoryError(Exception):
    """A read or write against the backing store failed."""


class Repository(ABC):
    @abstractmethod
    async def fetch_all(self, table: str) -> list[Row]:
        """Return every live row of ``table`` in insertion order."""

    @abstractmethod
    async def insert(self, table: str, row: Row) -> None:
        ...

    @abstractmethod
    async def update(self, table: str, row_id: str, changes: Row) -> None:
        ...

    @abstractmethod
    async def update_where(self, table: str, column: str, value: Any, changes: Row) -> int:
        """Apply ``changes`` to every live row whose ``column`` equals ``value``."""

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> None:
        ...


class SqlRepository(Repository):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        if session_factory is None:
            from sitetrack.db.session import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise RepositoryError(str(e)) from e

    async def fetch_all(self, table: str) -> list[Row]:
        model = _model(table)
        query = (
            select(model)
            .where(model.is_deleted.is_(False))
            .order_by(model.created_at)
        )
        async with self._session() as session:
            result = await session.execute(query)
            return [_to_row(obj) for obj in result.scalars().all()]

    async def insert(self, table: str, row: Row) -> None:
        model = _model(table)
        values = _coerce(model, row)
        values.setdefault("created_at", datetime.now(timezone.utc))
        async with self._session() as session:
            session.add(model(**values))
        logger.debug("Inserted %s row %s", table, row.get("id"))

    async def update(self, table: str, row_id: str, changes: Row) -> None:
        model = _model(table)
        values = _coerce(model, changes)
        async with self._session() as session:
            obj = await session.get(model, _uuid(row_id))
            if obj is None or obj.is_deleted:
                raise RepositoryError(f"{table} row '{row_id}' not found")
            for key, value in values.items():
                setattr(obj, key, value)

    async def update_where(self, table: str, column: str, value: Any, changes: Row) -> int:
        model = _model(table)
        match = _coerce(model, {column: value})[column]
        stmt = (
            update(model)
            .where(getattr(model, column) == match, model.is_deleted.is_(False))
            .values(**_coerce(model, changes))
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    async def delete(self, table: str, row_id: str) -> None:
        model = _model(table)
        async with self._session() as session:
            obj = await session.get(model, _uuid(row_id))
            if obj is None or obj.is_deleted:
                raise RepositoryError(f"{table} row '{row_id}' not found")
            obj.soft_delete()


def _model(table: str) -> type[BaseModel]:
    try:
        return TABLES[table]
    except KeyError:
        raise RepositoryError(f"Unknown table '{table}'") from None


def _uuid(value: str | uuid.UUID) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise RepositoryError(f"Invalid id '{value}'") from e


def _to_row(obj: BaseModel) -> Row:
    row: Row = {}
    for attr in inspect(type(obj)).column_attrs:
        if attr.key in _HIDDEN_COLUMNS:
            continue
        value = getattr(obj, attr.key)
        row[attr.key] = str(value) if isinstance(value, uuid.UUID) else value
    return row


def _coerce(model: type[BaseModel], data: Row) -> Row:
    attrs = {attr.key: attr for attr in inspect(model).column_attrs}
    values: Row = {}
    for key, value in data.items():
        attr = attrs.get(key)
        if attr is None:
            raise RepositoryError(f"Unknown column '{key}' on {model.__tablename__}")
        if value is not None and isinstance(attr.columns[0].type, Uuid):
            value = _uuid(value)
        values[key] = value
    return values
