from __future__ import annotations

import copy
from typing import Any, Mapping, Optional

from ..core.exceptions import StoreError
from .store import TABLE_COLUMNS, check_columns, key_columns, new_id


class InMemoryEntityStore:
    """Process-local EntityStore. Rows keep insertion order."""

    def __init__(self, seed: Optional[Mapping[str, list[dict]]] = None):
        self._tables: dict[str, list[dict]] = {name: [] for name in TABLE_COLUMNS}
        for table, rows in (seed or {}).items():
            # Seeded rows are kept as-is (even malformed ones) to mimic raw storage.
            self._tables[table] = [dict(r) if isinstance(r, Mapping) else r for r in rows]

    def _rows(self, table: str) -> list[dict]:
        if table not in self._tables:
            raise StoreError(f"Unknown table: {table}")
        return self._tables[table]

    @staticmethod
    def _matches(row: Any, where: Optional[Mapping[str, Any]]) -> bool:
        if not isinstance(row, Mapping):
            return not where
        return all(row.get(k) == v for k, v in (where or {}).items())

    def select(self, table: str, where: Optional[Mapping[str, Any]] = None) -> list[dict]:
        return [copy.deepcopy(r) for r in self._rows(table) if self._matches(r, where)]

    def insert(self, table: str, row: Mapping[str, Any]) -> dict:
        rows = self._rows(table)
        check_columns(table, row.keys())
        stored = dict(row)
        keys = key_columns(table)
        if keys == ("id",) and not stored.get("id"):
            stored["id"] = new_id()
        key = {k: stored.get(k) for k in keys}
        if any(self._matches(r, key) for r in rows):
            raise StoreError(f"Duplicate key in {table}: {key}")
        rows.append(stored)
        return copy.deepcopy(stored)

    def update(self, table: str, where: Mapping[str, Any], changes: Mapping[str, Any]) -> int:
        check_columns(table, changes.keys())
        count = 0
        for r in self._rows(table):
            if isinstance(r, Mapping) and self._matches(r, where):
                r.update(changes)
                count += 1
        return count

    def upsert(self, table: str, row: Mapping[str, Any]) -> dict:
        rows = self._rows(table)
        check_columns(table, row.keys())
        key = {k: row.get(k) for k in key_columns(table)}
        for r in rows:
            if isinstance(r, Mapping) and self._matches(r, key):
                r.update(row)
                return copy.deepcopy(r)
        return self.insert(table, row)

    def delete(self, table: str, where: Optional[Mapping[str, Any]] = None) -> int:
        rows = self._rows(table)
        kept = [r for r in rows if not self._matches(r, where)]
        removed = len(rows) - len(kept)
        self._tables[table] = kept
        return removed
