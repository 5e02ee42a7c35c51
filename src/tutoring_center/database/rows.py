"""Decode/encode boundary between raw store rows and domain entities.

Decoders either return a fully-typed entity or raise MalformedRowError; optional
fields fall back to safe defaults. ``decode_rows`` drops rejected rows and logs
them, so one bad record never takes the whole working set down.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import parse_local_date, parse_local_datetime
from ..core.enums import AttendanceStatus, RefundMethod, StudentStatus, TransactionType
from ..core.exceptions import MalformedRowError
from ..finance.model import Expense
from ..ledger.model import FinancialTransaction
from ..schedules.model import UNSET, ScheduleEvent, ScheduleEventException
from ..students.group_model import Group
from ..students.model import Student
from ..subscriptions.model import StudentSubscription, SubscriptionPlan

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _required_str(row: Mapping[str, Any], column: str) -> str:
    value = row.get(column)
    if value is None or not str(value).strip():
        raise MalformedRowError(f"missing {column}")
    return str(value)


def _optional_str(row: Mapping[str, Any], column: str, default: Optional[str] = "") -> Optional[str]:
    value = row.get(column)
    if value is None or value == "":
        return default
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _required_number(row: Mapping[str, Any], column: str) -> float:
    value = row.get(column)
    if not _is_number(value):
        raise MalformedRowError(f"{column} is not a number")
    return float(value)


def _number(row: Mapping[str, Any], column: str, default: float = 0.0) -> float:
    value = row.get(column)
    return float(value) if _is_number(value) else default


def _bool(row: Mapping[str, Any], column: str) -> bool:
    return bool(row.get(column))


def _enum(enum_cls, value: Any, column: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise MalformedRowError(f"invalid {column}: {value!r}")


def _required_datetime(row: Mapping[str, Any], column: str) -> datetime:
    value = parse_local_datetime(row.get(column))
    if value is None:
        raise MalformedRowError(f"invalid {column}")
    return value


def _group_ids(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return ()
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v)


def decode_rows(kind: str, rows: Iterable[Any], decoder: Callable[[Mapping[str, Any]], T]) -> list[T]:
    out: list[T] = []
    for row in rows or []:
        if not isinstance(row, Mapping):
            logger.warning(f"Dropped {kind} row: not a record ({row!r})")
            continue
        try:
            out.append(decoder(row))
        except MalformedRowError as e:
            logger.warning(f"Dropped {kind} row: {e} ({dict(row)!r})")
    return out


def decode_student(row: Mapping[str, Any]) -> Student:
    status = row.get("status") or StudentStatus.ACTIVE.value
    return Student(
        student_id=_required_str(row, "id"),
        name=_optional_str(row, "name") or "",
        balance=_number(row, "balance"),
        status=_enum(StudentStatus, status, "status"),
        group_ids=_group_ids(row.get("group_ids")),
        birth_date=parse_local_date(row.get("birth_date")),
        parent_name=_optional_str(row, "parent_name"),
        parent_phone1=_optional_str(row, "parent_phone1"),
        parent_phone2=_optional_str(row, "parent_phone2"),
        parent_email=_optional_str(row, "parent_email"),
        archived_date=parse_local_date(row.get("archived_date")),
    )


def encode_student(student: Student) -> dict:
    return {
        "id": student.student_id,
        "name": student.name,
        "birth_date": student.birth_date.isoformat() if student.birth_date else None,
        "parent_name": student.parent_name,
        "parent_phone1": student.parent_phone1,
        "parent_phone2": student.parent_phone2,
        "parent_email": student.parent_email,
        "balance": student.balance,
        "status": student.status.value,
        "archived_date": student.archived_date.isoformat() if student.archived_date else None,
        "group_ids": list(student.group_ids),
    }


def decode_group(row: Mapping[str, Any]) -> Group:
    return Group(group_id=_required_str(row, "id"), name=_required_str(row, "name"))


def decode_plan(row: Mapping[str, Any]) -> SubscriptionPlan:
    return SubscriptionPlan(
        plan_id=_required_str(row, "id"),
        name=_optional_str(row, "name") or "Untitled",
        price=_number(row, "price"),
        discount=_number(row, "discount"),
        lesson_count=int(_number(row, "lesson_count")),
        is_default=_bool(row, "is_default"),
    )


def encode_plan(plan: SubscriptionPlan) -> dict:
    return {
        "id": plan.plan_id,
        "name": plan.name,
        "price": plan.price,
        "discount": plan.discount,
        "lesson_count": plan.lesson_count,
        "is_default": plan.is_default,
    }


def decode_subscription(row: Mapping[str, Any]) -> StudentSubscription:
    return StudentSubscription(
        subscription_id=_required_str(row, "id"),
        student_id=_required_str(row, "student_id"),
        plan_id=_required_str(row, "subscription_plan_id"),
        purchase_date=_required_datetime(row, "purchase_date"),
        price_paid=_required_number(row, "price_paid"),
        lessons_total=int(_required_number(row, "lessons_total")),
        lessons_attended=int(_number(row, "lessons_attended")),
        assigned_group_id=_optional_str(row, "assigned_group_id", None),
    )


def encode_subscription(sub: StudentSubscription) -> dict:
    return {
        "id": sub.subscription_id,
        "student_id": sub.student_id,
        "subscription_plan_id": sub.plan_id,
        "purchase_date": sub.purchase_date,
        "price_paid": sub.price_paid,
        "lessons_total": sub.lessons_total,
        "lessons_attended": sub.lessons_attended,
        "assigned_group_id": sub.assigned_group_id,
    }


def decode_attendance(row: Mapping[str, Any]) -> AttendanceRecord:
    lesson_date = parse_local_date(row.get("date"))
    if lesson_date is None:
        raise MalformedRowError("invalid date")
    status = _enum(AttendanceStatus, row.get("status"), "status")
    grade = row.get("grade")
    return AttendanceRecord(
        student_id=_required_str(row, "student_id"),
        lesson_date=lesson_date,
        status=status,
        grade=float(grade) if _is_number(grade) else None,
        subscription_id=_optional_str(row, "student_subscription_id", None),
        debt_transaction_id=_optional_str(row, "debt_transaction_id", None),
    )


def attendance_key(student_id: str, lesson_date: date) -> dict:
    return {"student_id": student_id, "date": lesson_date.isoformat()}


def encode_attendance(record: AttendanceRecord) -> dict:
    return {
        **attendance_key(record.student_id, record.lesson_date),
        "status": record.status.value,
        "grade": record.grade,
        "student_subscription_id": record.subscription_id,
        "debt_transaction_id": record.debt_transaction_id,
    }


def decode_transaction(row: Mapping[str, Any]) -> FinancialTransaction:
    method = row.get("refund_method")
    return FinancialTransaction(
        transaction_id=_required_str(row, "id"),
        student_id=_required_str(row, "student_id"),
        created_at=_required_datetime(row, "date"),
        tx_type=_enum(TransactionType, row.get("type"), "type"),
        amount=_required_number(row, "amount"),
        description=_optional_str(row, "description"),
        subscription_id=_optional_str(row, "student_subscription_id", None),
        refund_method=_enum(RefundMethod, method, "refund_method") if method else None,
    )


def encode_transaction(tx: FinancialTransaction) -> dict:
    return {
        "id": tx.transaction_id,
        "student_id": tx.student_id,
        "date": tx.created_at,
        "type": tx.tx_type.value,
        "amount": tx.amount,
        "description": tx.description,
        "student_subscription_id": tx.subscription_id,
        "refund_method": tx.refund_method.value if tx.refund_method else None,
    }


def decode_event(row: Mapping[str, Any]) -> ScheduleEvent:
    return ScheduleEvent(
        event_id=_required_str(row, "id"),
        title=_required_str(row, "title"),
        start=_required_datetime(row, "start"),
        end=_required_datetime(row, "end"),
        group_id=_optional_str(row, "group_id", None),
        is_recurring=_bool(row, "is_recurring"),
    )


def encode_event(event: ScheduleEvent) -> dict:
    return {
        "id": event.event_id,
        "title": event.title,
        "group_id": event.group_id,
        "start": event.start,
        "end": event.end,
        "is_recurring": event.is_recurring,
    }


def decode_exception(row: Mapping[str, Any]) -> ScheduleEventException:
    if "overrides_group" in row:
        overrides_group = _bool(row, "overrides_group")
    else:
        overrides_group = "new_group_id" in row
    return ScheduleEventException(
        original_event_id=_required_str(row, "original_event_id"),
        occurrence_key=_required_str(row, "original_start_time"),
        new_title=_optional_str(row, "new_title", None),
        new_group_id=_optional_str(row, "new_group_id", None) if overrides_group else UNSET,
        new_start=row.get("new_start_time") or None,
        new_end=row.get("new_end_time") or None,
        is_deleted=_bool(row, "is_deleted"),
    )


def _raw_timestamp(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def encode_exception(exception: ScheduleEventException) -> dict:
    return {
        "original_event_id": exception.original_event_id,
        "original_start_time": exception.occurrence_key,
        "new_title": exception.new_title,
        "new_group_id": exception.new_group_id if exception.overrides_group else None,
        "overrides_group": exception.overrides_group,
        "new_start_time": _raw_timestamp(exception.new_start),
        "new_end_time": _raw_timestamp(exception.new_end),
        "is_deleted": exception.is_deleted,
    }


def decode_expense(row: Mapping[str, Any]) -> Expense:
    return Expense(
        expense_id=_required_str(row, "id"),
        spent_at=_required_datetime(row, "date"),
        description=_optional_str(row, "description") or "No description",
        amount=_required_number(row, "amount"),
    )


def encode_expense(expense: Expense) -> dict:
    return {
        "id": expense.expense_id,
        "date": expense.spent_at,
        "description": expense.description,
        "amount": expense.amount,
    }
