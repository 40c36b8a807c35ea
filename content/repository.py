"""
content/repository.py -- Generic table repository shared by every content entity.

Pattern: Repository + Data Mapper, generalized. One TableRepository per table;
the mapper is the entity dataclass itself, because content/models.py keeps
field names identical to column names.

Filter consistency: list_page() builds the list query and the count query
from the *same* predicate object, so ``total`` can never drift from the
filter that produced ``items``.

Transactions: every write runs inside ``engine.begin()`` -- one transaction,
committed on exit, rolled back on exception. Callers that need a file-system
side effect (deleting an old upload) perform it after the write returns,
i.e. after commit.

Security: all queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, Generic, Mapping, Optional, TypeVar

from sqlalchemy import Table, func, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql import ColumnElement

from core.pagination import Page, PageRequest

T = TypeVar("T")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TableRepository(Generic[T]):
    """CRUD + paginated listing for one table, mapped onto dataclass ``model``."""

    def __init__(self, engine: Engine, table: Table, model: type[T]) -> None:
        self.engine = engine
        self.table = table
        self.model = model
        self._fields = {f.name for f in dataclasses.fields(model)}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, row_id: int) -> Optional[T]:
        return self.find_one(self.table.c.id == row_id)

    def find_one(self, *criteria: ColumnElement) -> Optional[T]:
        with self.engine.connect() as conn:
            row = conn.execute(self.table.select().where(*criteria).limit(1)).fetchone()
        return self._map(row) if row is not None else None

    def exists(self, *criteria: ColumnElement) -> bool:
        with self.engine.connect() as conn:
            count = conn.execute(select(func.count()).select_from(self.table).where(*criteria)).scalar()
        return (count or 0) > 0

    def list_page(
        self,
        page: PageRequest,
        where: Optional[ColumnElement] = None,
        order_by: Sequence[ColumnElement] = (),
    ) -> Page[T]:
        """Return one page of rows matching ``where`` plus the total match count."""
        list_stmt = self.table.select()
        count_stmt = select(func.count()).select_from(self.table)
        if where is not None:
            list_stmt = list_stmt.where(where)
            count_stmt = count_stmt.where(where)
        # id as the final tiebreaker keeps paging stable across equal sort keys.
        list_stmt = list_stmt.order_by(*order_by, self.table.c.id.desc()).limit(page.limit).offset(page.offset)
        with self.engine.connect() as conn:
            total = conn.execute(count_stmt).scalar() or 0
            rows = conn.execute(list_stmt).fetchall()
        return Page(items=[self._map(r) for r in rows], total=total, page=page.page, limit=page.limit)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, values: Mapping[str, Any]) -> T:
        """Insert a row (timestamps stamped here) and return it as a model."""
        now = now_iso()
        data = {**self._columns(values), "created_at": now, "updated_at": now}
        with self.engine.begin() as conn:
            result = conn.execute(self.table.insert().values(**data))
            return self._fetch(conn, result.inserted_primary_key[0])

    def update(self, row_id: int, values: Mapping[str, Any]) -> Optional[T]:
        """Apply ``values`` to one row and return the updated model, or None if absent."""
        data = {**self._columns(values), "updated_at": now_iso()}
        with self.engine.begin() as conn:
            result = conn.execute(self.table.update().where(self.table.c.id == row_id).values(**data))
            if result.rowcount == 0:
                return None
            return self._fetch(conn, row_id)

    def delete(self, row_id: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(self.table.delete().where(self.table.c.id == row_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _columns(self, values: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(values) - set(self.table.c.keys())
        if unknown:
            raise ValueError(f"Unknown {self.table.name} columns: {sorted(unknown)!r}")
        return dict(values)

    def _fetch(self, conn: Connection, row_id: int) -> T:
        row = conn.execute(self.table.select().where(self.table.c.id == row_id)).fetchone()
        return self._map(row)

    def _map(self, row) -> T:
        mapping = row._mapping
        return self.model(**{key: mapping[key] for key in self._fields if key in mapping})
