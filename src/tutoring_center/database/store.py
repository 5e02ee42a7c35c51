from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional, Protocol

# Column layout of every table the core reads or writes. Stores only accept these
# identifiers, so table/column names never come from user input.
TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "students": (
        "id", "name", "birth_date", "parent_name", "parent_phone1", "parent_phone2",
        "parent_email", "balance", "status", "archived_date", "group_ids",
    ),
    "groups": ("id", "name"),
    "subscription_plans": ("id", "name", "price", "discount", "lesson_count", "is_default"),
    "student_subscriptions": (
        "id", "student_id", "subscription_plan_id", "purchase_date", "price_paid",
        "lessons_total", "lessons_attended", "assigned_group_id",
    ),
    "attendance": ("student_id", "date", "status", "grade", "student_subscription_id", "debt_transaction_id"),
    "financial_transactions": (
        "id", "student_id", "date", "type", "amount", "description",
        "student_subscription_id", "refund_method",
    ),
    "schedule_events": ("id", "title", "group_id", "start", "end", "is_recurring"),
    "schedule_event_exceptions": (
        "original_event_id", "original_start_time", "new_title", "new_group_id",
        "overrides_group", "new_start_time", "new_end_time", "is_deleted",
    ),
    "expenses": ("id", "date", "description", "amount"),
}

TABLE_KEYS: dict[str, tuple[str, ...]] = {
    "attendance": ("student_id", "date"),
    "schedule_event_exceptions": ("original_event_id", "original_start_time"),
}


def key_columns(table: str) -> tuple[str, ...]:
    return TABLE_KEYS.get(table, ("id",))


def new_id() -> str:
    return str(uuid.uuid4())


class EntityStore(Protocol):
    """Entity-store collaborator: single-row operations are atomic, nothing more.

    Rows are plain dicts keyed by column name. Implementations raise StoreError on
    any failure.
    """

    def select(self, table: str, where: Optional[Mapping[str, Any]] = None) -> list[dict]:
        raise NotImplementedError

    def insert(self, table: str, row: Mapping[str, Any]) -> dict:
        """Insert a row and return it as stored.

        Tables keyed by ``id`` get a fresh identifier when the row has none.
        """
        raise NotImplementedError

    def update(self, table: str, where: Mapping[str, Any], changes: Mapping[str, Any]) -> int:
        """Returns number of updated rows."""
        raise NotImplementedError

    def upsert(self, table: str, row: Mapping[str, Any]) -> dict:
        """Create or replace the row identified by the table's key columns."""
        raise NotImplementedError

    def delete(self, table: str, where: Optional[Mapping[str, Any]] = None) -> int:
        """Delete matching rows (all rows when ``where`` is empty)."""
        raise NotImplementedError


def check_columns(table: str, columns) -> None:
    allowed = TABLE_COLUMNS.get(table)
    if allowed is None:
        raise KeyError(f"Unknown table: {table}")
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise KeyError(f"Unknown columns for {table}: {', '.join(unknown)}")
