from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty, require_non_negative, require_non_negative_int
from ..core.constants import SYSTEM_SUBSCRIPTION_PLAN_ID
from ..core.exceptions import ValidationError
from .model import StudentSubscription, SubscriptionPlan
from .repository import PlanRepository, SubscriptionRepository

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Use case: maintain the plan catalogue and the editable part of sold subscriptions."""

    def __init__(self, plans: PlanRepository, subscriptions: SubscriptionRepository):
        self._plans = plans
        self._subscriptions = subscriptions

    def list_plans(self) -> list[SubscriptionPlan]:
        return [p for p in self._plans.list_all() if not p.is_system]

    def default_plan(self) -> Optional[SubscriptionPlan]:
        return next((p for p in self.list_plans() if p.is_default), None)

    @staticmethod
    def _validate(name: str, price, discount, lesson_count) -> tuple[str, float, float, int]:
        name = require_non_empty(name, "Plan name")
        price = require_non_negative(price, "Price")
        discount = require_non_negative(discount, "Discount")
        lesson_count = require_non_negative_int(lesson_count, "Lesson count")
        if discount > price:
            raise ValidationError("Discount cannot exceed the price")
        return name, price, discount, lesson_count

    @staticmethod
    def _reject_system(plan_id: str) -> None:
        if plan_id == SYSTEM_SUBSCRIPTION_PLAN_ID:
            raise ValidationError("The system plan cannot be changed")

    def add_plan(self, *, name: str, price: float, discount: float = 0, lesson_count: int, is_default: bool = False) -> SubscriptionPlan:
        name, price, discount, lesson_count = self._validate(name, price, discount, lesson_count)
        if is_default:
            self._plans.clear_default()
        plan = self._plans.create(
            SubscriptionPlan(
                plan_id="",
                name=name,
                price=price,
                discount=discount,
                lesson_count=lesson_count,
                is_default=bool(is_default),
            )
        )
        logger.info(f"Added plan {plan.plan_id} ({plan.name})")
        return plan

    def update_plan(
        self,
        plan_id: str,
        *,
        name: str,
        price: float,
        discount: float = 0,
        lesson_count: int,
    ) -> Optional[SubscriptionPlan]:
        self._reject_system(plan_id)
        name, price, discount, lesson_count = self._validate(name, price, discount, lesson_count)
        if self._plans.get_by_id(plan_id) is None:
            logger.info(f"Plan {plan_id} no longer exists; nothing to update")
            return None
        self._plans.update(plan_id, {"name": name, "price": price, "discount": discount, "lesson_count": lesson_count})
        return self._plans.get_by_id(plan_id)

    def set_default_plan(self, plan_id: str) -> bool:
        """Make ``plan_id`` the only default plan."""
        self._reject_system(plan_id)
        if self._plans.get_by_id(plan_id) is None:
            logger.info(f"Plan {plan_id} no longer exists; default unchanged")
            return False
        self._plans.clear_default()
        return self._plans.update(plan_id, {"is_default": True})

    def delete_plan(self, plan_id: str) -> bool:
        self._reject_system(plan_id)
        deleted = self._plans.delete(plan_id)
        if deleted:
            logger.info(f"Deleted plan {plan_id}")
        return deleted

    def update_subscription(self, subscription_id: str, *, assigned_group_id: Optional[str]) -> Optional[StudentSubscription]:
        """Only the group restriction is editable; lesson counters belong to the ledger."""
        if self._subscriptions.get_by_id(subscription_id) is None:
            logger.info(f"Subscription {subscription_id} no longer exists; nothing to update")
            return None
        self._subscriptions.set_assigned_group(subscription_id, assigned_group_id or None)
        return self._subscriptions.get_by_id(subscription_id)
