from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ReportPeriod
from ..finance.model import Expense
from ..ledger.model import FinancialTransaction
from ..schedules.model import DisplayEvent


@dataclass(frozen=True)
class PeriodReport:
    """Cash-flow rollup of one period. Bounds are inclusive; None means unbounded."""

    period: ReportPeriod
    start: Optional[datetime]
    end: Optional[datetime]
    transactions: tuple[FinancialTransaction, ...]
    expenses: tuple[Expense, ...]
    income: float
    expenses_total: float

    @property
    def profit(self) -> float:
        return self.income - self.expenses_total


@dataclass(frozen=True)
class BalanceHistoryEntry:
    """One line of a student's history; ``balance_after`` is credit plus unused subscription value."""

    entry_id: str
    occurred_at: datetime
    description: str
    amount: float
    is_deposit: bool
    is_transaction: bool
    balance_after: float


@dataclass(frozen=True)
class DashboardSummary:
    active_students: int
    groups: int
    upcoming_events: tuple[DisplayEvent, ...]


@dataclass(frozen=True)
class StudentFinancials:
    student_id: str
    balance: float
    lessons_attended: int
    lessons_total: int
    subscriptions_value: float

    @property
    def total_worth(self) -> float:
        return self.balance + self.subscriptions_value
