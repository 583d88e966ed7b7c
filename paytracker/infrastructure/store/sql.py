"""
SQLAlchemy-backed record store.

Every write commits on its own: there is no transaction spanning
several calls, matching the row-level API of a hosted database.
"""
import logging
from typing import Any

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paytracker.infrastructure.db import models  # noqa: F401  (registers tables on Base.metadata)
from paytracker.infrastructure.db.session import Base
from paytracker.infrastructure.store.base import RecordStore, RecordStoreError, Row

logger = logging.getLogger(__name__)


class SqlAlchemyRecordStore(RecordStore):

    def __init__(self, db: Session):
        self.db = db

    def _table(self, name: str) -> Table:
        try:
            return Base.metadata.tables[name]
        except KeyError:
            raise RecordStoreError(f"Unknown table: {name}") from None

    def _column(self, table: Table, name: str):
        try:
            return table.c[name]
        except KeyError:
            raise RecordStoreError(f"Unknown column: {table.name}.{name}") from None

    def _fail(self, action: str, table: str, exc: SQLAlchemyError) -> RecordStoreError:
        self.db.rollback()
        message = str(getattr(exc, "orig", None) or exc)
        logger.error("Store %s on %s failed: %s", action, table, message)
        return RecordStoreError(message)

    def _select(self, table: Table, column, value) -> list[Row]:
        result = self.db.execute(select(table).where(column == value))
        return [dict(r._mapping) for r in result]

    def select_eq(self, table: str, column: str, value: Any) -> list[Row]:
        t = self._table(table)
        try:
            return self._select(t, self._column(t, column), value)
        except SQLAlchemyError as exc:
            raise self._fail("select", table, exc) from exc

    def select_all(self, table: str) -> list[Row]:
        t = self._table(table)
        try:
            return [dict(r._mapping) for r in self.db.execute(select(t))]
        except SQLAlchemyError as exc:
            raise self._fail("select", table, exc) from exc

    def insert(self, table: str, row: Row) -> Row:
        t = self._table(table)
        pk = self._column(t, "id")
        try:
            self.db.execute(insert(t).values(**row))
            self.db.commit()
            return self._select(t, pk, row["id"])[0]
        except SQLAlchemyError as exc:
            raise self._fail("insert", table, exc) from exc

    def update(self, table: str, patch: Row, column: str, value: Any) -> list[Row]:
        t = self._table(table)
        pk = self._column(t, "id")
        col = self._column(t, column)
        try:
            ids = [r["id"] for r in self._select(t, col, value)]
            if not ids:
                return []
            self.db.execute(update(t).where(col == value).values(**patch))
            self.db.commit()
            result = self.db.execute(select(t).where(pk.in_(ids)))
            return [dict(r._mapping) for r in result]
        except SQLAlchemyError as exc:
            raise self._fail("update", table, exc) from exc

    def upsert(self, table: str, row: Row, conflict_column: str) -> Row:
        t = self._table(table)
        col = self._column(t, conflict_column)
        key = row[conflict_column]
        try:
            if self._select(t, col, key):
                self.db.execute(update(t).where(col == key).values(**row))
            else:
                self.db.execute(insert(t).values(**row))
            self.db.commit()
            return self._select(t, col, key)[0]
        except SQLAlchemyError as exc:
            raise self._fail("upsert", table, exc) from exc

    def delete(self, table: str, column: str, value: Any) -> int:
        t = self._table(table)
        try:
            result = self.db.execute(delete(t).where(self._column(t, column) == value))
            self.db.commit()
            return result.rowcount
        except SQLAlchemyError as exc:
            raise self._fail("delete", table, exc) from exc
