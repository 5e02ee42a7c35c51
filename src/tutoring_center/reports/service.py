"""Read-only aggregation over the flat entity collections.

The module-level functions are pure and work on whatever snapshot they are given.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Iterable, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import period_bounds
from ..core.constants import DEFAULT_UPCOMING_EVENTS
from ..core.enums import ReportPeriod, TransactionType
from ..finance.model import Expense
from ..ledger.model import FinancialTransaction
from ..schedules.model import DisplayEvent
from ..schedules.service import next_events
from ..students.model import Student
from ..subscriptions.model import StudentSubscription, SubscriptionPlan
from .model import BalanceHistoryEntry, DashboardSummary, PeriodReport, StudentFinancials

_DEPOSIT_TYPES = (TransactionType.PAYMENT, TransactionType.REFUND, TransactionType.CORRECTION)


def _within(moment: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and moment < start:
        return False
    if end is not None and moment > end:
        return False
    return True


def period_report(
    period: ReportPeriod | str,
    transactions: Iterable[FinancialTransaction],
    expenses: Iterable[Expense],
    *,
    now: datetime,
) -> PeriodReport:
    """income = payments - refunds, profit = income - expenses, all within the period."""
    period = ReportPeriod(period)
    start, end = period_bounds(period, now)
    txs = tuple(t for t in transactions if _within(t.created_at, start, end))
    spent = tuple(e for e in expenses if _within(e.spent_at, start, end))

    income = 0.0
    for tx in txs:
        if tx.tx_type == TransactionType.PAYMENT:
            income += tx.amount
        elif tx.tx_type == TransactionType.REFUND:
            income -= tx.amount

    return PeriodReport(
        period=period,
        start=start,
        end=end,
        transactions=txs,
        expenses=spent,
        income=income,
        expenses_total=sum(e.amount for e in spent),
    )


def _subscriptions_value_at(
    moment: datetime,
    subscriptions: Sequence[StudentSubscription],
    transactions: Sequence[FinancialTransaction],
    visits: Sequence[AttendanceRecord],
) -> float:
    total = 0.0
    for sub in subscriptions:
        if sub.purchase_date > moment or sub.lessons_total <= 0:
            continue
        refunded = any(
            tx.subscription_id == sub.subscription_id
            and tx.tx_type == TransactionType.REFUND
            and tx.created_at <= moment
            for tx in transactions
        )
        if refunded:
            continue
        used = sum(1 for a in visits if a.subscription_id == sub.subscription_id and _lesson_moment(a) <= moment)
        remaining = sub.lessons_total - used
        if remaining > 0:
            total += remaining * sub.lesson_price
    return total


def _lesson_moment(record: AttendanceRecord) -> datetime:
    return datetime.combine(record.lesson_date, time.min)


def balance_history(
    student: Student,
    *,
    transactions: Iterable[FinancialTransaction],
    attendance: Iterable[AttendanceRecord],
    subscriptions: Iterable[StudentSubscription],
    plans: Iterable[SubscriptionPlan],
) -> list[BalanceHistoryEntry]:
    """Replay the student's ledger and lessons, newest entry first.

    The running credit is seeded by back-solving from the stored balance, so the
    last entry always ends on the current balance plus unused subscription value.
    Lessons whose subscription is gone (or that were never linked) are replayed but
    not listed.
    """
    txs = [t for t in transactions if t.student_id == student.student_id]
    visits = [a for a in attendance if a.student_id == student.student_id and a.is_visit]
    subs = [s for s in subscriptions if s.student_id == student.student_id]
    subs_by_id = {s.subscription_id: s for s in subs}
    plan_names = {p.plan_id: p.name for p in plans}

    timeline: list[tuple[datetime, object]] = [(t.created_at, t) for t in txs]
    timeline += [(_lesson_moment(a), a) for a in visits]
    timeline.sort(key=lambda item: item[0])
    if not timeline:
        return []

    running = student.balance - sum(t.credit_delta for t in txs)
    history: list[BalanceHistoryEntry] = []
    for moment, item in timeline:
        if isinstance(item, FinancialTransaction):
            running += item.credit_delta
        worth = running + _subscriptions_value_at(moment, subs, txs, visits)

        if isinstance(item, FinancialTransaction):
            history.append(
                BalanceHistoryEntry(
                    entry_id=item.transaction_id,
                    occurred_at=moment,
                    description=item.description,
                    amount=item.amount,
                    is_deposit=item.tx_type in _DEPOSIT_TYPES,
                    is_transaction=True,
                    balance_after=worth,
                )
            )
            continue

        sub = subs_by_id.get(item.subscription_id) if item.subscription_id else None
        if sub is None:
            continue
        history.append(
            BalanceHistoryEntry(
                entry_id=f"{item.student_id}-{item.lesson_date.isoformat()}",
                occurred_at=moment,
                description=f'Lesson charged to subscription "{plan_names.get(sub.plan_id, "")}"',
                amount=sub.lesson_price,
                is_deposit=False,
                is_transaction=False,
                balance_after=worth,
            )
        )

    history.reverse()
    return history


def student_financials(student: Student, subscriptions: Iterable[StudentSubscription]) -> StudentFinancials:
    subs = [s for s in subscriptions if s.student_id == student.student_id]
    return StudentFinancials(
        student_id=student.student_id,
        balance=student.balance,
        lessons_attended=sum(s.lessons_attended for s in subs),
        lessons_total=sum(s.lessons_total for s in subs),
        subscriptions_value=sum(s.lessons_remaining * s.lesson_price for s in subs),
    )


def dashboard_summary(
    students: Iterable[Student],
    group_count: int,
    events: Iterable[DisplayEvent],
    *,
    now: datetime,
    limit: int = DEFAULT_UPCOMING_EVENTS,
) -> DashboardSummary:
    return DashboardSummary(
        active_students=sum(1 for s in students if s.is_active),
        groups=group_count,
        upcoming_events=tuple(next_events(list(events), now=now, limit=limit)),
    )

