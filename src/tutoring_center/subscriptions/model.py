from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.money import per_lesson_price
from ..core.constants import SYSTEM_SUBSCRIPTION_PLAN_ID


@dataclass(frozen=True)
class SubscriptionPlan:
    """A purchasable lesson package template."""

    plan_id: str
    name: str
    price: float
    discount: float
    lesson_count: int
    is_default: bool = False

    @property
    def effective_price(self) -> float:
        return self.price - self.discount

    @property
    def is_system(self) -> bool:
        return self.plan_id == SYSTEM_SUBSCRIPTION_PLAN_ID


@dataclass(frozen=True)
class StudentSubscription:
    """A plan bought by a student; ``lessons_attended`` is owned by the ledger."""

    subscription_id: str
    student_id: str
    plan_id: str
    purchase_date: datetime
    price_paid: float
    lessons_total: int
    lessons_attended: int = 0
    assigned_group_id: Optional[str] = None

    @property
    def lessons_remaining(self) -> int:
        return max(self.lessons_total - self.lessons_attended, 0)

    @property
    def lesson_price(self) -> float:
        return per_lesson_price(self.price_paid, self.lessons_total)

    def covers_group(self, group_id: Optional[str]) -> bool:
        return self.assigned_group_id is None or self.assigned_group_id == group_id
