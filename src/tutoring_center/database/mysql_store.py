from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, fetchone
from .store import check_columns, key_columns, new_id

# Columns holding lists; MySQL keeps them as JSON text.
JSON_COLUMNS = {("students", "group_ids")}


def _where_clause(table: str, where: Optional[Mapping[str, Any]]) -> tuple[str, list[Any]]:
    if not where:
        return "", []
    check_columns(table, where.keys())
    parts: list[str] = []
    params: list[Any] = []
    for column, value in where.items():
        if value is None:
            parts.append(f"`{column}` IS NULL")
        else:
            parts.append(f"`{column}`=%s")
            params.append(value)
    return " WHERE " + " AND ".join(parts), params


def _to_db(table: str, column: str, value: Any) -> Any:
    if (table, column) in JSON_COLUMNS and value is not None:
        return json.dumps(list(value))
    return value


class MySQLEntityStore:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def select(self, table: str, where: Optional[Mapping[str, Any]] = None) -> list[dict]:
        clause, params = _where_clause(table, where)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT * FROM `{table}`{clause}", tuple(params))
            return fetchall(cur)

    def _select_by_key(self, cur, table: str, row: Mapping[str, Any]) -> dict:
        keys = key_columns(table)
        clause, params = _where_clause(table, {k: row.get(k) for k in keys})
        cur.execute(f"SELECT * FROM `{table}`{clause}", tuple(params))
        return fetchone(cur) or dict(row)

    def insert(self, table: str, row: Mapping[str, Any]) -> dict:
        check_columns(table, row.keys())
        stored = dict(row)
        if key_columns(table) == ("id",) and not stored.get("id"):
            stored["id"] = new_id()
        columns = list(stored.keys())
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO `{table}` ({','.join(f'`{c}`' for c in columns)}) VALUES ({placeholders})",
                tuple(_to_db(table, c, stored[c]) for c in columns),
            )
            return self._select_by_key(cur, table, stored)

    def update(self, table: str, where: Mapping[str, Any], changes: Mapping[str, Any]) -> int:
        if not changes:
            return 0
        check_columns(table, changes.keys())
        assignments = ",".join(f"`{c}`=%s" for c in changes)
        clause, params = _where_clause(table, where)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE `{table}` SET {assignments}{clause}",
                tuple(_to_db(table, c, v) for c, v in changes.items()) + tuple(params),
            )
            return int(cur.rowcount)

    def upsert(self, table: str, row: Mapping[str, Any]) -> dict:
        check_columns(table, row.keys())
        columns = list(row.keys())
        keys = set(key_columns(table))
        updates = ",".join(f"`{c}`=VALUES(`{c}`)" for c in columns if c not in keys)
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO `{table}` ({','.join(f'`{c}`' for c in columns)})
                VALUES ({placeholders})
                ON DUPLICATE KEY UPDATE {updates or f'`{columns[0]}`=`{columns[0]}`'}
                """,
                tuple(_to_db(table, c, row[c]) for c in columns),
            )
            return self._select_by_key(cur, table, row)

    def delete(self, table: str, where: Optional[Mapping[str, Any]] = None) -> int:
        clause, params = _where_clause(table, where)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM `{table}`{clause}", tuple(params))
            return int(cur.rowcount)
