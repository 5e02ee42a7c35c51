from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..database.rows import decode_rows, decode_student, encode_student
from ..database.store import EntityStore
from .model import Student

TABLE = "students"


class StudentRepository:
    def __init__(self, store: EntityStore):
        self._store = store

    def list_all(self) -> list[Student]:
        return decode_rows(TABLE, self._store.select(TABLE), decode_student)

    def get_by_id(self, student_id: str) -> Optional[Student]:
        rows = decode_rows(TABLE, self._store.select(TABLE, {"id": student_id}), decode_student)
        return rows[0] if rows else None

    def create(self, student: Student) -> Student:
        row = encode_student(student)
        if not student.student_id:
            row.pop("id")
        return decode_student(self._store.insert(TABLE, row))

    def update(self, student_id: str, changes: Mapping[str, Any]) -> bool:
        """``changes`` uses storage column names."""
        return self._store.update(TABLE, {"id": student_id}, dict(changes)) > 0

    def set_balance(self, student_id: str, balance: float) -> bool:
        return self._store.update(TABLE, {"id": student_id}, {"balance": balance}) > 0

    def reset_all_balances(self) -> int:
        return self._store.update(TABLE, {}, {"balance": 0})

    def set_group_ids(self, student_id: str, group_ids: Sequence[str]) -> bool:
        return self._store.update(TABLE, {"id": student_id}, {"group_ids": list(group_ids)}) > 0

    def delete(self, student_id: str) -> bool:
        return self._store.delete(TABLE, {"id": student_id}) > 0
