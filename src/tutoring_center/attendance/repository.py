from __future__ import annotations

from datetime import date
from typing import Optional

from ..database.rows import attendance_key, decode_attendance, decode_rows, encode_attendance
from ..database.store import EntityStore
from .model import AttendanceRecord

TABLE = "attendance"


class AttendanceRepository:
    def __init__(self, store: EntityStore):
        self._store = store

    def list_all(self) -> list[AttendanceRecord]:
        return decode_rows(TABLE, self._store.select(TABLE), decode_attendance)

    def list_for_student(self, student_id: str) -> list[AttendanceRecord]:
        rows = decode_rows(TABLE, self._store.select(TABLE, {"student_id": student_id}), decode_attendance)
        return sorted(rows, key=lambda r: r.lesson_date)

    def get_for_student_and_date(self, student_id: str, lesson_date: date) -> Optional[AttendanceRecord]:
        rows = self._store.select(TABLE, attendance_key(student_id, lesson_date))
        records = decode_rows(TABLE, rows, decode_attendance)
        return records[0] if records else None

    def list_unlinked_visits(self, student_id: str) -> list[AttendanceRecord]:
        """Debt lessons of a student, oldest first."""
        return [r for r in self.list_for_student(student_id) if r.is_debt]

    def upsert(self, record: AttendanceRecord) -> AttendanceRecord:
        return decode_attendance(self._store.upsert(TABLE, encode_attendance(record)))

    def delete(self, student_id: str, lesson_date: date) -> bool:
        return self._store.delete(TABLE, attendance_key(student_id, lesson_date)) > 0

    def delete_for_student(self, student_id: str) -> int:
        return self._store.delete(TABLE, {"student_id": student_id})

    def delete_all(self) -> int:
        return self._store.delete(TABLE)
