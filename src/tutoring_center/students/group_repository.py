from __future__ import annotations

from typing import Optional

from ..database.rows import decode_group, decode_rows
from ..database.store import EntityStore
from .group_model import Group

TABLE = "groups"


class GroupRepository:
    def __init__(self, store: EntityStore):
        self._store = store

    def list_all(self) -> list[Group]:
        groups = decode_rows(TABLE, self._store.select(TABLE), decode_group)
        return sorted(groups, key=lambda g: g.name)

    def get_by_id(self, group_id: str) -> Optional[Group]:
        rows = decode_rows(TABLE, self._store.select(TABLE, {"id": group_id}), decode_group)
        return rows[0] if rows else None

    def create(self, *, name: str) -> Group:
        return decode_group(self._store.insert(TABLE, {"name": name}))

    def rename(self, group_id: str, *, name: str) -> bool:
        return self._store.update(TABLE, {"id": group_id}, {"name": name}) > 0

    def delete(self, group_id: str) -> bool:
        return self._store.delete(TABLE, {"id": group_id}) > 0
