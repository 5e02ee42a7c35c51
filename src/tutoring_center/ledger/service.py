from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..attendance.factory import AttendanceTransitionFactory
from ..attendance.model import AttendanceRecord, LessonLink
from ..attendance.repository import AttendanceRepository
from ..common.money import round_cents, round_money
from ..common.datetime_utils import now_local
from ..common.validators import require_non_negative, require_non_negative_int
from ..core.constants import (
    CASH_REFUND_DESCRIPTION,
    CREDIT_REFUND_DESCRIPTION,
    DEBT_CLEARED_DESCRIPTION,
    DEBT_LESSON_DESCRIPTION,
    DEBT_REVERSAL_DESCRIPTION,
    DEFAULT_LESSON_PRICE,
    PAYMENT_DESCRIPTION,
    SYSTEM_SUBSCRIPTION_PLAN_ID,
)
from ..core.enums import AttendanceStatus, RefundMethod, TransactionType
from ..core.exceptions import ValidationError
from ..students.model import Student
from ..students.repository import StudentRepository
from ..subscriptions.model import StudentSubscription
from ..subscriptions.repository import PlanRepository, SubscriptionRepository
from .model import FinancialTransaction, SubscriptionPurchase, SubscriptionRefund
from .repository import TransactionRepository

logger = logging.getLogger(__name__)


def refund_amount(sub: StudentSubscription) -> float:
    """Value of the unused lessons, rounded half-up to whole currency units."""
    return round_money(sub.lesson_price * sub.lessons_remaining)


class LedgerService:
    """Attendance-driven subscription ledger.

    Every public operation is a short saga of single-row store writes. A failing
    write raises StoreError and the remaining steps are not attempted; steps
    already applied stay applied.

    Balance rule: the stored student balance only moves together with a ledger
    entry whose ``credit_delta`` is non-zero (debits, corrections, credit refunds).
    """

    def __init__(
        self,
        students: StudentRepository,
        plans: PlanRepository,
        subscriptions: SubscriptionRepository,
        attendance: AttendanceRepository,
        transactions: TransactionRepository,
        *,
        transition_factory: Optional[AttendanceTransitionFactory] = None,
        default_lesson_price: float = DEFAULT_LESSON_PRICE,
        clock: Callable[[], datetime] = now_local,
    ):
        self._students = students
        self._plans = plans
        self._subscriptions = subscriptions
        self._attendance = attendance
        self._transactions = transactions
        self._factory = transition_factory or AttendanceTransitionFactory()
        self._default_lesson_price = require_non_negative(default_lesson_price, "Default lesson price")
        self._clock = clock

    # -- attendance -------------------------------------------------------------

    def set_attendance(
        self,
        *,
        student_id: str,
        lesson_date: date,
        status: AttendanceStatus | str,
        group_id: Optional[str] = None,
        grade: Optional[float] = None,
    ) -> Optional[AttendanceRecord]:
        """Upsert the mark of (student, date) and move lesson credit accordingly."""
        try:
            status = AttendanceStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown attendance status: {status!r}")
        if grade is not None:
            grade = require_non_negative(grade, "Grade")
        if status != AttendanceStatus.PRESENT:
            grade = None

        student = self._students.get_by_id(student_id)
        if student is None:
            logger.info(f"Student {student_id} no longer exists; attendance not recorded")
            return None
        self._require_active(student)

        previous = self._attendance.get_for_student_and_date(student_id, lesson_date)
        strategy = self._factory.for_transition(previous=previous.status if previous else None, new=status)
        link = strategy.apply(self, student_id=student_id, lesson_date=lesson_date, group_id=group_id, previous=previous)

        record = self._attendance.upsert(
            AttendanceRecord(
                student_id=student_id,
                lesson_date=lesson_date,
                status=status,
                grade=grade,
                subscription_id=link.subscription_id,
                debt_transaction_id=link.debt_transaction_id,
            )
        )
        logger.info(
            f"Attendance {student_id}@{lesson_date}: "
            f"{previous.status.value if previous else 'none'} -> {status.value} ({type(strategy).__name__})"
        )
        return record

    def delete_attendance(self, *, student_id: str, lesson_date: date) -> bool:
        previous = self._attendance.get_for_student_and_date(student_id, lesson_date)
        if previous is None:
            return False
        strategy = self._factory.for_transition(previous=previous.status, new=None)
        strategy.apply(self, student_id=student_id, lesson_date=lesson_date, group_id=None, previous=previous)
        deleted = self._attendance.delete(student_id, lesson_date)
        logger.info(f"Attendance {student_id}@{lesson_date} deleted")
        return deleted

    def find_usable_subscription(self, student_id: str, group_id: Optional[str]) -> Optional[StudentSubscription]:
        """Oldest subscription with credit left, group-specific before any-group."""
        usable = [
            s
            for s in self._subscriptions.list_for_student(student_id)
            if s.lessons_remaining > 0 and s.covers_group(group_id)
        ]
        # stable sort keeps purchase order within each tier
        usable.sort(key=lambda s: s.assigned_group_id is None)
        return usable[0] if usable else None

    def consume_lesson(self, *, student_id: str, lesson_date: date, group_id: Optional[str]) -> LessonLink:
        sub = self.find_usable_subscription(student_id, group_id)
        if sub is not None:
            self._subscriptions.set_lessons_attended(sub.subscription_id, sub.lessons_attended + 1)
            return LessonLink(subscription_id=sub.subscription_id)

        if not self._default_lesson_price:
            return LessonLink()
        debit = self._post(
            student_id=student_id,
            tx_type=TransactionType.DEBIT,
            amount=self._default_lesson_price,
            description=DEBT_LESSON_DESCRIPTION.format(date=lesson_date.isoformat()),
        )
        return LessonLink(debt_transaction_id=debit.transaction_id)

    def release_lesson(self, record: AttendanceRecord) -> None:
        if record.subscription_id:
            sub = self._subscriptions.get_by_id(record.subscription_id)
            if sub is None:
                logger.warning(f"Subscription {record.subscription_id} is gone; no credit to give back")
                return
            self._subscriptions.set_lessons_attended(sub.subscription_id, max(0, sub.lessons_attended - 1))
            return

        if record.debt_transaction_id:
            debit = self._transactions.get_by_id(record.debt_transaction_id)
            if debit is None:
                logger.warning(f"Debit {record.debt_transaction_id} is gone; nothing to reverse")
                return
            self._post(
                student_id=record.student_id,
                tx_type=TransactionType.CORRECTION,
                amount=debit.amount,
                description=DEBT_REVERSAL_DESCRIPTION.format(date=record.lesson_date.isoformat()),
            )

    # -- subscriptions ----------------------------------------------------------

    def add_subscription(
        self,
        *,
        student_id: str,
        plan_id: str,
        price_paid: float,
        lessons_total: int,
        assigned_group_id: Optional[str] = None,
    ) -> Optional[SubscriptionPurchase]:
        """Sell a subscription; outstanding debt lessons are charged to it right away."""
        price_paid = require_non_negative(price_paid, "Price")
        lessons_total = require_non_negative_int(lessons_total, "Lesson count")
        student = self._students.get_by_id(student_id)
        if student is None:
            logger.info(f"Student {student_id} no longer exists; subscription not sold")
            return None
        self._require_active(student)
        if plan_id != SYSTEM_SUBSCRIPTION_PLAN_ID and self._plans.get_by_id(plan_id) is None:
            raise ValidationError("Unknown subscription plan")

        sub = self._subscriptions.create(
            StudentSubscription(
                subscription_id="",
                student_id=student_id,
                plan_id=plan_id,
                purchase_date=self._clock(),
                price_paid=price_paid,
                lessons_total=lessons_total,
                lessons_attended=0,
                assigned_group_id=assigned_group_id or None,
            )
        )
        payment = self._post(
            student_id=student_id,
            tx_type=TransactionType.PAYMENT,
            amount=price_paid,
            description=PAYMENT_DESCRIPTION,
            subscription_id=sub.subscription_id,
        )
        cleared = self._charge_debts_to(sub)
        logger.info(f"Sold subscription {sub.subscription_id} to {student_id}: {lessons_total} lessons, {cleared} debt lessons cleared")
        return SubscriptionPurchase(
            subscription=self._subscriptions.get_by_id(sub.subscription_id) or sub,
            payment=payment,
            cleared_debt_lessons=cleared,
        )

    def _charge_debts_to(self, sub: StudentSubscription) -> int:
        debts = self._attendance.list_unlinked_visits(sub.student_id)[: sub.lessons_total]
        if not debts:
            return 0
        self._subscriptions.set_lessons_attended(sub.subscription_id, len(debts))
        for record in debts:
            self._attendance.upsert(replace(record, subscription_id=sub.subscription_id, debt_transaction_id=None))
            amount = self._billed_amount(record)
            if amount > 0:
                self._post(
                    student_id=sub.student_id,
                    tx_type=TransactionType.CORRECTION,
                    amount=amount,
                    description=DEBT_CLEARED_DESCRIPTION.format(date=record.lesson_date.isoformat()),
                    subscription_id=sub.subscription_id,
                )
        return len(debts)

    def _billed_amount(self, record: AttendanceRecord) -> float:
        if not record.debt_transaction_id:
            return 0.0
        debit = self._transactions.get_by_id(record.debt_transaction_id)
        return debit.amount if debit else 0.0

    def cancel_subscription_refund_to_credit(self, subscription_id: str) -> Optional[SubscriptionRefund]:
        return self._cancel_subscription(subscription_id, RefundMethod.CREDIT)

    def cancel_subscription_cash_refund(self, subscription_id: str) -> Optional[SubscriptionRefund]:
        return self._cancel_subscription(subscription_id, RefundMethod.CASH)

    def _cancel_subscription(self, subscription_id: str, method: RefundMethod) -> Optional[SubscriptionRefund]:
        sub = self._subscriptions.get_by_id(subscription_id)
        if sub is None:
            logger.info(f"Subscription {subscription_id} no longer exists; nothing to cancel")
            return None

        amount = refund_amount(sub)
        tx = None
        if amount > 0:
            template = CREDIT_REFUND_DESCRIPTION if method == RefundMethod.CREDIT else CASH_REFUND_DESCRIPTION
            tx = self._post(
                student_id=sub.student_id,
                tx_type=TransactionType.REFUND,
                amount=amount,
                description=template.format(short_id=sub.subscription_id[:4]),
                subscription_id=sub.subscription_id,
                refund_method=method,
            )
        self._subscriptions.delete(sub.subscription_id)
        logger.info(f"Cancelled subscription {sub.subscription_id}: {method.value} refund of {amount}")
        return SubscriptionRefund(subscription=sub, method=method, amount=amount, transaction=tx)

    # -- transactions -----------------------------------------------------------

    def add_transaction(
        self,
        *,
        student_id: str,
        tx_type: TransactionType | str,
        amount: float,
        description: str = "",
        subscription_id: Optional[str] = None,
        refund_method: Optional[RefundMethod | str] = None,
    ) -> Optional[FinancialTransaction]:
        """Manual ledger entry, subject to the same balance rule as automatic ones."""
        try:
            tx_type = TransactionType(tx_type)
            refund_method = RefundMethod(refund_method) if refund_method else None
        except ValueError as e:
            raise ValidationError(str(e))
        amount = require_non_negative(amount, "Amount")
        if tx_type == TransactionType.REFUND:
            refund_method = refund_method or RefundMethod.CASH
        elif refund_method is not None:
            raise ValidationError("Only refunds have a refund method")
        if self._students.get_by_id(student_id) is None:
            logger.info(f"Student {student_id} no longer exists; transaction not recorded")
            return None
        return self._post(
            student_id=student_id,
            tx_type=tx_type,
            amount=amount,
            description=(description or "").strip(),
            subscription_id=subscription_id,
            refund_method=refund_method,
        )

    def clear_all_financial_data(self, *, confirmed: bool) -> None:
        """Destructive reset of transactions, subscriptions and attendance; balances go to zero."""
        if not confirmed:
            raise ValidationError("Clearing financial data must be confirmed")
        txs = self._transactions.delete_all()
        subs = self._subscriptions.delete_all()
        marks = self._attendance.delete_all()
        self._students.reset_all_balances()
        logger.warning(f"Financial data cleared: {txs} transactions, {subs} subscriptions, {marks} attendance marks")

    # -- internals --------------------------------------------------------------

    @staticmethod
    def _require_active(student: Student) -> None:
        if not student.is_active:
            raise ValidationError(f"{student.name} is archived")

    def _post(
        self,
        *,
        student_id: str,
        tx_type: TransactionType,
        amount: float,
        description: str,
        subscription_id: Optional[str] = None,
        refund_method: Optional[RefundMethod] = None,
    ) -> FinancialTransaction:
        tx = self._transactions.create(
            FinancialTransaction(
                transaction_id="",
                student_id=student_id,
                created_at=self._clock(),
                tx_type=tx_type,
                amount=amount,
                description=description,
                subscription_id=subscription_id,
                refund_method=refund_method,
            )
        )
        delta = tx.credit_delta
        if delta:
            student = self._students.get_by_id(student_id)
            if student is None:
                logger.warning(f"Student {student_id} vanished; balance not adjusted for {tx.transaction_id}")
            else:
                self._students.set_balance(student_id, round_cents(student.balance + delta))
        return tx
