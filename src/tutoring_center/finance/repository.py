from __future__ import annotations

from typing import Any, Mapping, Optional

from ..database.rows import decode_expense, decode_rows, encode_expense
from ..database.store import EntityStore
from .model import Expense

TABLE = "expenses"


class ExpenseRepository:
    def __init__(self, store: EntityStore):
        self._store = store

    def list_all(self) -> list[Expense]:
        expenses = decode_rows(TABLE, self._store.select(TABLE), decode_expense)
        return sorted(expenses, key=lambda e: e.spent_at, reverse=True)

    def get_by_id(self, expense_id: str) -> Optional[Expense]:
        rows = decode_rows(TABLE, self._store.select(TABLE, {"id": expense_id}), decode_expense)
        return rows[0] if rows else None

    def create(self, expense: Expense) -> Expense:
        row = encode_expense(expense)
        if not expense.expense_id:
            row.pop("id")
        return decode_expense(self._store.insert(TABLE, row))

    def update(self, expense_id: str, changes: Mapping[str, Any]) -> bool:
        return self._store.update(TABLE, {"id": expense_id}, dict(changes)) > 0

    def delete(self, expense_id: str) -> bool:
        return self._store.delete(TABLE, {"id": expense_id}) > 0
