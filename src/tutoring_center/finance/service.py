from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_negative
from .model import Expense
from .repository import ExpenseRepository

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description"


class ExpenseService:
    """Use case: business expenses, independent of any student ledger."""

    def __init__(self, expenses: ExpenseRepository, *, clock: Callable[[], datetime] = now_local):
        self._expenses = expenses
        self._clock = clock

    def list_expenses(self) -> list[Expense]:
        return self._expenses.list_all()

    def add_expense(self, *, amount: float, description: str = "", spent_at: Optional[datetime] = None) -> Expense:
        amount = require_non_negative(amount, "Amount")
        expense = self._expenses.create(
            Expense(
                expense_id="",
                spent_at=spent_at or self._clock(),
                description=(description or "").strip() or DEFAULT_DESCRIPTION,
                amount=amount,
            )
        )
        logger.info(f"Added expense {expense.expense_id}: {amount}")
        return expense

    def update_expense(
        self,
        expense_id: str,
        *,
        amount: float,
        description: str = "",
        spent_at: Optional[datetime] = None,
    ) -> Optional[Expense]:
        amount = require_non_negative(amount, "Amount")
        current = self._expenses.get_by_id(expense_id)
        if current is None:
            logger.info(f"Expense {expense_id} no longer exists; nothing to update")
            return None
        self._expenses.update(
            expense_id,
            {
                "amount": amount,
                "description": (description or "").strip() or DEFAULT_DESCRIPTION,
                "date": spent_at or current.spent_at,
            },
        )
        return self._expenses.get_by_id(expense_id)

    def delete_expense(self, expense_id: str) -> bool:
        return self._expenses.delete(expense_id)
