from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance mark, unique per (student, lesson date).

    A visit (present/absent) is linked either to the subscription whose credit it
    consumed, or to the debit transaction that billed it as a debt lesson. A visit
    with neither link is a debt lesson billed at price zero.
    """

    student_id: str
    lesson_date: date
    status: AttendanceStatus
    grade: Optional[float] = None
    subscription_id: Optional[str] = None
    debt_transaction_id: Optional[str] = None

    @property
    def is_visit(self) -> bool:
        return self.status.is_visit

    @property
    def is_debt(self) -> bool:
        return self.is_visit and self.subscription_id is None


@dataclass(frozen=True)
class LessonLink:
    """What a visit is charged against after an attendance transition."""

    subscription_id: Optional[str] = None
    debt_transaction_id: Optional[str] = None

    @classmethod
    def of(cls, record: Optional[AttendanceRecord]) -> "LessonLink":
        if record is None:
            return cls()
        return cls(subscription_id=record.subscription_id, debt_transaction_id=record.debt_transaction_id)
