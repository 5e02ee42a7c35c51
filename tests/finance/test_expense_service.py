from datetime import datetime

import pytest

from tutoring_center.core.exceptions import ValidationError
from tutoring_center.database.memory_store import InMemoryEntityStore
from tutoring_center.finance.repository import ExpenseRepository
from tutoring_center.finance.service import ExpenseService

NOW = datetime(2024, 9, 15, 12, 0)


@pytest.fixture
def expenses():
    return ExpenseService(ExpenseRepository(InMemoryEntityStore()), clock=lambda: NOW)


def test_negative_amount_is_rejected(expenses):
    with pytest.raises(ValidationError):
        expenses.add_expense(amount=-10, description="Rent")
    with pytest.raises(ValidationError):
        expenses.add_expense(amount=float("inf"), description="Rent")

    assert expenses.list_expenses() == []


def test_blank_description_and_missing_date_get_defaults(expenses):
    expense = expenses.add_expense(amount=1200, description="   ")

    assert expense.description == "No description"
    assert expense.spent_at == NOW
    assert expense.amount == 1200


def test_update_keeps_the_old_date_when_none_is_given(expenses):
    spent = datetime(2024, 9, 1, 9, 30)
    expense = expenses.add_expense(amount=300, description="Markers", spent_at=spent)

    updated = expenses.update_expense(expense.expense_id, amount=350, description="Markers and paper")

    assert updated.spent_at == spent
    assert updated.amount == 350
    assert updated.description == "Markers and paper"


def test_update_missing_expense_returns_none(expenses):
    assert expenses.update_expense("gone", amount=10) is None


def test_delete_expense(expenses):
    expense = expenses.add_expense(amount=500, description="Snacks")

    assert expenses.delete_expense(expense.expense_id) is True
    assert expenses.delete_expense(expense.expense_id) is False
    assert expenses.list_expenses() == []
