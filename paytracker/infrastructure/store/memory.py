"""
Ephemeral in-process record store (development, demos, tests)
"""
import threading
from typing import Any

from paytracker.infrastructure.store.base import RecordStore, RecordStoreError, Row, TABLES


class InMemoryRecordStore(RecordStore):
    """
    Tables are insertion-ordered lists of dicts. Rows are copied on the
    way in and out so callers never share state with the store.
    """

    def __init__(self):
        self._tables: dict[str, list[Row]] = {name: [] for name in TABLES}
        self._lock = threading.RLock()

    def _rows(self, table: str) -> list[Row]:
        try:
            return self._tables[table]
        except KeyError:
            raise RecordStoreError(f"Unknown table: {table}") from None

    def select_eq(self, table: str, column: str, value: Any) -> list[Row]:
        with self._lock:
            return [dict(r) for r in self._rows(table) if r.get(column) == value]

    def select_all(self, table: str) -> list[Row]:
        with self._lock:
            return [dict(r) for r in self._rows(table)]

    def insert(self, table: str, row: Row) -> Row:
        with self._lock:
            rows = self._rows(table)
            if "id" in row and any(r.get("id") == row["id"] for r in rows):
                raise RecordStoreError(f"Duplicate id in {table}: {row['id']}")
            rows.append(dict(row))
            return dict(row)

    def update(self, table: str, patch: Row, column: str, value: Any) -> list[Row]:
        with self._lock:
            affected = []
            for r in self._rows(table):
                if r.get(column) == value:
                    r.update(patch)
                    affected.append(dict(r))
            return affected

    def upsert(self, table: str, row: Row, conflict_column: str) -> Row:
        with self._lock:
            rows = self._rows(table)
            for r in rows:
                if r.get(conflict_column) == row.get(conflict_column):
                    r.update(row)
                    return dict(r)
            rows.append(dict(row))
            return dict(row)

    def delete(self, table: str, column: str, value: Any) -> int:
        with self._lock:
            rows = self._rows(table)
            kept = [r for r in rows if r.get(column) != value]
            removed = len(rows) - len(kept)
            rows[:] = kept
            return removed
