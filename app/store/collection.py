"""
Generic per-table access over an AsyncSession.

A collection knows nothing about business rules. Natural keys, when declared,
make ``insert`` tolerate duplicates: the row is written with
``INSERT ... ON CONFLICT DO NOTHING`` and the existing row is returned.
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, Mapping, Optional, Sequence, TypeVar

import structlog
from sqlalchemy import delete as sa_delete
from sqlalchemy import func
from sqlalchemy import update as sa_update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.core.errors import ConflictError, StoreError
from app.models.base import utcnow

log = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=SQLModel)

Filters = Optional[Mapping[str, Any]]


class Collection(Generic[ModelT]):
    def __init__(
        self,
        session: AsyncSession,
        model: type[ModelT],
        natural_keys: Sequence[tuple[str, ...]] = (),
    ):
        self.session = session
        self.model = model
        self.natural_keys = tuple(natural_keys)

    # ------------------------------------------------------------------
    # Statement helpers
    # ------------------------------------------------------------------

    def _where(self, stmt, filters: Filters):
        for name, value in (filters or {}).items():
            column = getattr(self.model, name)
            if value is None:
                stmt = stmt.where(column.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        return stmt

    def _order(self, stmt, order_by: Iterable[str]):
        for key in order_by:
            if key.startswith("-"):
                stmt = stmt.order_by(getattr(self.model, key[1:]).desc())
            else:
                stmt = stmt.order_by(getattr(self.model, key))
        return stmt

    async def _execute(self, stmt):
        try:
            return await self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictError(
                f"{self.model.__tablename__}: constraint violated"
            ) from exc
        except DBAPIError as exc:
            log.error("store.execute_failed", table=self.model.__tablename__, error=str(exc))
            raise StoreError(f"{self.model.__tablename__}: store unavailable") from exc

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"{self.model.__tablename__}: constraint violated"
            ) from exc
        except DBAPIError as exc:
            log.error("store.flush_failed", table=self.model.__tablename__, error=str(exc))
            raise StoreError(f"{self.model.__tablename__}: store unavailable") from exc

    def _dialect_insert(self):
        dialect = self.session.bind.dialect.name
        if dialect == "postgresql":
            return pg_insert(self.model)
        if dialect == "sqlite":
            return sqlite_insert(self.model)
        raise StoreError(f"Unsupported store dialect: {dialect}")

    def _natural_key_for(self, record: ModelT) -> Optional[dict[str, Any]]:
        for key in self.natural_keys:
            values = {name: getattr(record, name) for name in key}
            if all(v is not None for v in values.values()):
                return values
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_all(
        self, filters: Filters = None, order_by: Sequence[str] = ()
    ) -> list[ModelT]:
        stmt = self._order(self._where(select(self.model), filters), order_by)
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def first(self, filters: Filters = None) -> Optional[ModelT]:
        result = await self._execute(self._where(select(self.model), filters).limit(1))
        return result.scalar_one_or_none()

    async def get_by_id(self, id: Any) -> Optional[ModelT]:
        """Primary-key lookup. Composite keys are passed as a tuple in column order."""
        try:
            return await self.session.get(self.model, id)
        except DBAPIError as exc:
            raise StoreError(f"{self.model.__tablename__}: store unavailable") from exc

    async def reload(self, id: Any) -> Optional[ModelT]:
        """Primary-key lookup that overwrites any stale copy held by the session."""
        try:
            return await self.session.get(self.model, id, populate_existing=True)
        except DBAPIError as exc:
            raise StoreError(f"{self.model.__tablename__}: store unavailable") from exc

    async def count(self, filters: Filters = None) -> int:
        stmt = self._where(select(func.count()).select_from(self.model), filters)
        result = await self._execute(stmt)
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, record: ModelT) -> tuple[ModelT, bool]:
        """Insert a row. Returns (row, created); created is False for a duplicate."""
        key = self._natural_key_for(record)
        if key is None:
            self.session.add(record)
            await self._flush()
            return record, True

        existing = await self.first(key)
        if existing is not None:
            return existing, False

        values = {
            column.name: getattr(record, column.name)
            for column in self.model.__table__.columns
        }
        await self._execute(self._dialect_insert().values(**values).on_conflict_do_nothing())
        row = await self.first(key)
        return row, True

    async def update(self, id: Any, values: Mapping[str, Any]) -> Optional[ModelT]:
        row = await self.get_by_id(id)
        if row is None:
            return None
        for name, value in values.items():
            setattr(row, name, value)
        if "updated_at" in self.model.model_fields:
            row.updated_at = utcnow()
        self.session.add(row)
        await self._flush()
        return row

    async def delete(self, id: Any) -> bool:
        """Delete by primary key. A missing row is not an error."""
        row = await self.get_by_id(id)
        if row is None:
            return False
        await self.session.delete(row)
        await self._flush()
        return True

    async def delete_where(self, filters: Filters) -> int:
        result = await self._execute(self._where(sa_delete(self.model), filters))
        return result.rowcount or 0

    async def update_where(self, filters: Filters, values: Mapping[str, Any]) -> int:
        """Conditional bulk update. Returns the number of rows the store matched."""
        values = dict(values)
        if "updated_at" in self.model.model_fields:
            values.setdefault("updated_at", utcnow())
        stmt = self._where(sa_update(self.model), filters).values(**values)
        result = await self._execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0
