from __future__ import annotations

from enum import Enum


class StudentStatus(str, Enum):
    """Lifecycle of a student record."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class AttendanceStatus(str, Enum):
    """Attendance mark stored per (student, date)."""

    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"

    @property
    def is_visit(self) -> bool:
        # Absent still counts as a lesson the student was booked for.
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT)


class TransactionType(str, Enum):
    """Kinds of ledger entries. Amounts are always non-negative."""

    PAYMENT = "payment"
    REFUND = "refund"
    CORRECTION = "correction"
    DEBIT = "debit"


class RefundMethod(str, Enum):
    """Where refunded money goes: back to the stored balance, or out as cash."""

    CREDIT = "credit"
    CASH = "cash"


class ReportPeriod(str, Enum):
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
