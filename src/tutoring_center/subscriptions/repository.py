from __future__ import annotations

from typing import Any, Mapping, Optional

from ..database.rows import decode_plan, decode_rows, decode_subscription, encode_plan, encode_subscription
from ..database.store import EntityStore
from .model import StudentSubscription, SubscriptionPlan

PLANS = "subscription_plans"
SUBSCRIPTIONS = "student_subscriptions"


class PlanRepository:
    def __init__(self, store: EntityStore):
        self._store = store

    def list_all(self) -> list[SubscriptionPlan]:
        return decode_rows(PLANS, self._store.select(PLANS), decode_plan)

    def get_by_id(self, plan_id: str) -> Optional[SubscriptionPlan]:
        rows = decode_rows(PLANS, self._store.select(PLANS, {"id": plan_id}), decode_plan)
        return rows[0] if rows else None

    def create(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        row = encode_plan(plan)
        if not plan.plan_id:
            row.pop("id")
        return decode_plan(self._store.insert(PLANS, row))

    def update(self, plan_id: str, changes: Mapping[str, Any]) -> bool:
        return self._store.update(PLANS, {"id": plan_id}, dict(changes)) > 0

    def clear_default(self) -> int:
        return self._store.update(PLANS, {"is_default": True}, {"is_default": False})

    def delete(self, plan_id: str) -> bool:
        return self._store.delete(PLANS, {"id": plan_id}) > 0


class SubscriptionRepository:
    def __init__(self, store: EntityStore):
        self._store = store

    def list_all(self) -> list[StudentSubscription]:
        return decode_rows(SUBSCRIPTIONS, self._store.select(SUBSCRIPTIONS), decode_subscription)

    def list_for_student(self, student_id: str) -> list[StudentSubscription]:
        rows = self._store.select(SUBSCRIPTIONS, {"student_id": student_id})
        subs = decode_rows(SUBSCRIPTIONS, rows, decode_subscription)
        return sorted(subs, key=lambda s: (s.purchase_date, s.subscription_id))

    def get_by_id(self, subscription_id: str) -> Optional[StudentSubscription]:
        rows = self._store.select(SUBSCRIPTIONS, {"id": subscription_id})
        subs = decode_rows(SUBSCRIPTIONS, rows, decode_subscription)
        return subs[0] if subs else None

    def create(self, sub: StudentSubscription) -> StudentSubscription:
        row = encode_subscription(sub)
        if not sub.subscription_id:
            row.pop("id")
        return decode_subscription(self._store.insert(SUBSCRIPTIONS, row))

    def set_lessons_attended(self, subscription_id: str, lessons_attended: int) -> bool:
        return self._store.update(SUBSCRIPTIONS, {"id": subscription_id}, {"lessons_attended": lessons_attended}) > 0

    def set_assigned_group(self, subscription_id: str, group_id: Optional[str]) -> bool:
        return self._store.update(SUBSCRIPTIONS, {"id": subscription_id}, {"assigned_group_id": group_id}) > 0

    def delete(self, subscription_id: str) -> bool:
        return self._store.delete(SUBSCRIPTIONS, {"id": subscription_id}) > 0

    def delete_for_student(self, student_id: str) -> int:
        return self._store.delete(SUBSCRIPTIONS, {"student_id": student_id})

    def delete_all(self) -> int:
        return self._store.delete(SUBSCRIPTIONS)
