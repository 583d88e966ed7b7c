"""
Record store interface.

Row-oriented access to the two logical tables ("users" and "bills").
Rows travel as plain dicts; the application converts them to domain
entities (Bill.from_row / Profile.from_row) at the boundary.
"""
from abc import ABC, abstractmethod
from typing import Any

USERS = "users"
BILLS = "bills"
TABLES = (USERS, BILLS)

Row = dict[str, Any]


class RecordStoreError(RuntimeError):
    """Store collaborator failure (connection, constraint, permission)"""
    pass


class RecordStore(ABC):

    @abstractmethod
    def select_eq(self, table: str, column: str, value: Any) -> list[Row]:
        """Rows where column == value, in the store's natural order"""

    @abstractmethod
    def select_all(self, table: str) -> list[Row]:
        ...

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        ...

    @abstractmethod
    def update(self, table: str, patch: Row, column: str, value: Any) -> list[Row]:
        """Apply patch to rows where column == value; return them as patched"""

    @abstractmethod
    def upsert(self, table: str, row: Row, conflict_column: str) -> Row:
        """
        Insert row, or overwrite the existing row that has the same
        value in conflict_column
        """

    @abstractmethod
    def delete(self, table: str, column: str, value: Any) -> int:
        """Delete rows where column == value; return how many were removed"""
