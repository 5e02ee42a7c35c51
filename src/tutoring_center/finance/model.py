from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Expense:
    expense_id: str
    spent_at: datetime
    description: str
    amount: float
