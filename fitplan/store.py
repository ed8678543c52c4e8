"""Data-store collaborator interface.

The ingestion core only needs two capabilities from a store: insert a batch
of rows into a named table and query a table by equality filters. ``delete``
is used for cleanup after a partial failure.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

__all__ = ["DataStore", "MemoryStore"]

Row = Dict[str, Any]


class DataStore(ABC):
    @abstractmethod
    def insert(self, table: str, rows: List[Row]) -> List[Row]:
        """Insert *rows* into *table*; return the inserted rows.

        Raises :class:`fitplan.errors.StoreError` on failure.
        """

    @abstractmethod
    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Row]:
        """Return rows of *table* whose columns equal every filter value."""

    @abstractmethod
    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        """Delete matching rows; return how many were removed."""


def _matches(row: Row, filters: Optional[Dict[str, Any]]) -> bool:
    return all(row.get(k) == v for k, v in (filters or {}).items())


class MemoryStore(DataStore):
    """Process-local store, for dry runs and tests."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Row]] = {}

    def insert(self, table: str, rows: List[Row]) -> List[Row]:
        stored = [copy.deepcopy(r) for r in rows]
        self.tables.setdefault(table, []).extend(stored)
        return [copy.deepcopy(r) for r in stored]

    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Row]:
        return [copy.deepcopy(r) for r in self.tables.get(table, []) if _matches(r, filters)]

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        rows = self.tables.get(table, [])
        kept = [r for r in rows if not _matches(r, filters)]
        self.tables[table] = kept
        return len(rows) - len(kept)
