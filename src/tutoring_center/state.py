"""Application state: the last loaded snapshot plus one mutator per operation.

Every mutator calls the owning service, reports the outcome on the notice board and
then reloads the snapshot from the store, whether the operation succeeded or not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence, TypeVar, Union

from .attendance.model import AttendanceRecord
from .attendance.repository import AttendanceRepository
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_UPCOMING_EVENTS
from .core.enums import AttendanceStatus, ReportPeriod
from .core.exceptions import DomainError, ValidationError
from .finance.model import Expense
from .finance.repository import ExpenseRepository
from .finance.service import ExpenseService
from .ledger.model import FinancialTransaction, SubscriptionPurchase, SubscriptionRefund
from .ledger.repository import TransactionRepository
from .ledger.service import LedgerService
from .notifications.notices import NoticeBoard
from .reports import service as reports
from .reports.model import BalanceHistoryEntry, DashboardSummary, PeriodReport, StudentFinancials
from .schedules.model import DisplayEvent, ScheduleEvent, ScheduleEventException
from .schedules.recurrence import RecurrenceExpander
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService, next_events
from .students.group_model import Group
from .students.group_repository import GroupRepository
from .students.model import NewStudent, Student
from .students.repository import StudentRepository
from .students.service import GroupService, StudentService
from .subscriptions.model import StudentSubscription, SubscriptionPlan
from .subscriptions.repository import PlanRepository, SubscriptionRepository
from .subscriptions.service import SubscriptionService

logger = logging.getLogger(__name__)

T = TypeVar("T")
SuccessMessage = Union[str, Callable[[T], str]]


@dataclass(frozen=True)
class Repositories:
    students: StudentRepository
    groups: GroupRepository
    plans: PlanRepository
    subscriptions: SubscriptionRepository
    attendance: AttendanceRepository
    transactions: TransactionRepository
    schedules: ScheduleRepository
    expenses: ExpenseRepository


@dataclass(frozen=True)
class Snapshot:
    students: tuple[Student, ...] = ()
    groups: tuple[Group, ...] = ()
    plans: tuple[SubscriptionPlan, ...] = ()
    subscriptions: tuple[StudentSubscription, ...] = ()
    attendance: tuple[AttendanceRecord, ...] = ()
    transactions: tuple[FinancialTransaction, ...] = ()
    events: tuple[ScheduleEvent, ...] = ()
    exceptions: tuple[ScheduleEventException, ...] = ()
    expenses: tuple[Expense, ...] = ()
    visible_events: tuple[DisplayEvent, ...] = ()

    def student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.students if s.student_id == student_id), None)


def load_snapshot(repos: Repositories, expander: RecurrenceExpander) -> Snapshot:
    events = repos.schedules.list_events()
    exceptions = repos.schedules.list_exceptions()
    return Snapshot(
        students=tuple(repos.students.list_all()),
        groups=tuple(repos.groups.list_all()),
        plans=tuple(p for p in repos.plans.list_all() if not p.is_system),
        subscriptions=tuple(repos.subscriptions.list_all()),
        attendance=tuple(repos.attendance.list_all()),
        transactions=tuple(repos.transactions.list_all()),
        events=tuple(events),
        exceptions=tuple(exceptions),
        expenses=tuple(repos.expenses.list_all()),
        visible_events=tuple(expander.expand(events, exceptions)),
    )


StateListener = Callable[[Snapshot], None]


class AppState:
    def __init__(
        self,
        repositories: Repositories,
        *,
        students: StudentService,
        groups: GroupService,
        subscriptions: SubscriptionService,
        ledger: LedgerService,
        schedule: ScheduleService,
        expenses: ExpenseService,
        expander: Optional[RecurrenceExpander] = None,
        notices: Optional[NoticeBoard] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._repos = repositories
        self._students = students
        self._groups = groups
        self._subscriptions = subscriptions
        self._ledger = ledger
        self._schedule = schedule
        self._expenses = expenses
        self._expander = expander or RecurrenceExpander()
        self._clock = clock
        self.notices = notices or NoticeBoard()
        self._snapshot = Snapshot()
        self._listeners: list[StateListener] = []

    # -- snapshot ---------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def visible_events(self) -> tuple[DisplayEvent, ...]:
        return self._snapshot.visible_events

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)

    def reload(self) -> Snapshot:
        """Replace the snapshot with the persisted truth. A failed load keeps the old one."""
        try:
            snapshot = load_snapshot(self._repos, self._expander)
        except DomainError as e:
            logger.error(f"Reload failed: {e}")
            self.notices.error(f"Could not load data: {e}")
            return self._snapshot
        self._publish(snapshot)
        return snapshot

    def _run(self, operation: str, action: Callable[[], T], success: Optional[SuccessMessage] = None) -> Optional[T]:
        try:
            result = action()
        except DomainError as e:
            logger.warning(f"{operation} failed: {e}")
            self.notices.error(str(e))
            result = None
        except Exception as e:
            logger.exception(f"{operation} failed unexpectedly")
            self.notices.error(f"{operation} failed: {e}")
            result = None
        else:
            if result is None or result is False:
                self.notices.error(f"{operation}: the record no longer exists")
            elif success is not None:
                self.notices.success(success(result) if callable(success) else success)
        finally:
            self.reload()
        return result

    # -- students & groups ------------------------------------------------------

    def add_student(self, new: NewStudent) -> Optional[Student]:
        return self._run("Add student", lambda: self._students.add_student(new), lambda s: f"{s.name} added")

    def add_students(self, batch: Sequence[NewStudent]) -> Optional[list[Student]]:
        return self._run(
            "Add students",
            lambda: self._students.add_students(batch),
            lambda created: f"{len(created)} student(s) added",
        )

    def update_student(self, student_id: str, **changes) -> Optional[Student]:
        return self._run(
            "Update student",
            lambda: self._students.update_student(student_id, **changes),
            "Student details updated",
        )

    def archive_students(self, student_ids: Sequence[str]) -> Optional[int]:
        return self._run(
            "Archive students",
            lambda: self._students.archive_students(student_ids),
            lambda n: f"{n} student(s) archived",
        )

    def restore_students(self, student_ids: Sequence[str]) -> Optional[int]:
        return self._run(
            "Restore students",
            lambda: self._students.restore_students(student_ids),
            lambda n: f"{n} student(s) restored",
        )

    def delete_students(self, student_ids: Sequence[str]) -> Optional[int]:
        return self._run(
            "Delete students",
            lambda: self._students.delete_students(student_ids),
            lambda n: f"{n} student(s) deleted",
        )

    def send_payment_reminders(self, *, due_date: date) -> Optional[int]:
        return self._run(
            "Payment reminders",
            lambda: self._students.send_payment_reminders(due_date=due_date),
            lambda n: f"Reminders sent to {n} parent(s)",
        )

    def add_group(self, name: str) -> Optional[Group]:
        return self._run("Add group", lambda: self._groups.add_group(name), lambda g: f'Group "{g.name}" added')

    def rename_group(self, group_id: str, name: str) -> Optional[bool]:
        return self._run("Rename group", lambda: self._groups.rename_group(group_id, name), "Group renamed")

    def delete_group(self, group_id: str) -> Optional[bool]:
        return self._run("Delete group", lambda: self._groups.delete_group(group_id), "Group deleted")

    # -- plans & subscriptions --------------------------------------------------

    def add_plan(self, **fields) -> Optional[SubscriptionPlan]:
        return self._run("Add plan", lambda: self._subscriptions.add_plan(**fields), lambda p: f'Plan "{p.name}" added')

    def update_plan(self, plan_id: str, **fields) -> Optional[SubscriptionPlan]:
        return self._run("Update plan", lambda: self._subscriptions.update_plan(plan_id, **fields), "Plan updated")

    def delete_plan(self, plan_id: str) -> Optional[bool]:
        return self._run("Delete plan", lambda: self._subscriptions.delete_plan(plan_id), "Plan deleted")

    def set_default_plan(self, plan_id: str) -> Optional[bool]:
        return self._run("Default plan", lambda: self._subscriptions.set_default_plan(plan_id), "Default plan changed")

    def update_subscription(self, subscription_id: str, *, assigned_group_id: Optional[str]) -> Optional[StudentSubscription]:
        return self._run(
            "Update subscription",
            lambda: self._subscriptions.update_subscription(subscription_id, assigned_group_id=assigned_group_id),
            "Subscription assignment updated",
        )

    # -- ledger -----------------------------------------------------------------

    def set_attendance(
        self,
        *,
        student_id: str,
        lesson_date: date,
        status: AttendanceStatus | str,
        group_id: Optional[str] = None,
        grade: Optional[float] = None,
    ) -> Optional[AttendanceRecord]:
        self._patch_attendance(student_id, lesson_date, status, grade)
        return self._run(
            "Attendance",
            lambda: self._ledger.set_attendance(
                student_id=student_id,
                lesson_date=lesson_date,
                status=status,
                group_id=group_id,
                grade=grade,
            ),
            "Attendance saved",
        )

    def _patch_attendance(self, student_id: str, lesson_date: date, status, grade) -> None:
        """Show the new mark right away; the reload that follows replaces it."""
        try:
            status = AttendanceStatus(status)
        except ValueError:
            return
        rows = [a for a in self._snapshot.attendance if not (a.student_id == student_id and a.lesson_date == lesson_date)]
        previous = next(
            (a for a in self._snapshot.attendance if a.student_id == student_id and a.lesson_date == lesson_date),
            None,
        )
        if previous is not None:
            patched = replace(previous, status=status, grade=grade if status == AttendanceStatus.PRESENT else None)
        else:
            patched = AttendanceRecord(student_id=student_id, lesson_date=lesson_date, status=status)
        rows.append(patched)
        self._publish(replace(self._snapshot, attendance=tuple(rows)))

    def delete_attendance(self, *, student_id: str, lesson_date: date) -> Optional[bool]:
        return self._run(
            "Delete attendance",
            lambda: self._ledger.delete_attendance(student_id=student_id, lesson_date=lesson_date),
            "Attendance mark removed",
        )

    def add_subscription(self, **fields) -> Optional[SubscriptionPurchase]:
        return self._run("Sell subscription", lambda: self._ledger.add_subscription(**fields), _purchase_message)

    def cancel_subscription_refund_to_credit(self, subscription_id: str) -> Optional[SubscriptionRefund]:
        return self._run(
            "Cancel subscription",
            lambda: self._ledger.cancel_subscription_refund_to_credit(subscription_id),
            lambda r: f"Subscription cancelled, {r.amount:.0f} returned to balance",
        )

    def cancel_subscription_cash_refund(self, subscription_id: str) -> Optional[SubscriptionRefund]:
        return self._run(
            "Cancel subscription",
            lambda: self._ledger.cancel_subscription_cash_refund(subscription_id),
            lambda r: f"Subscription cancelled, {r.amount:.0f} to be paid out in cash",
        )

    def add_transaction(self, **fields) -> Optional[FinancialTransaction]:
        return self._run("Add transaction", lambda: self._ledger.add_transaction(**fields), "Transaction recorded")

    def clear_all_financial_data(self, *, confirmed: bool) -> Optional[bool]:
        def clear() -> bool:
            self._ledger.clear_all_financial_data(confirmed=confirmed)
            return True

        return self._run("Clear financial data", clear, "All financial data cleared")

    # -- schedule ---------------------------------------------------------------

    def add_event(self, **fields) -> Optional[ScheduleEvent]:
        return self._run("Add event", lambda: self._schedule.add_event(**fields), "Event added")

    def update_event(self, event_id: str, **fields) -> Optional[ScheduleEvent]:
        return self._run("Update event", lambda: self._schedule.update_event(event_id, **fields), "Event updated")

    def delete_event(self, event_id: str) -> Optional[bool]:
        return self._run("Delete event", lambda: self._schedule.delete_event(event_id), "Event deleted")

    def override_occurrence(self, **fields) -> Optional[ScheduleEventException]:
        return self._run("Change occurrence", lambda: self._schedule.override_occurrence(**fields), "Occurrence updated")

    def delete_occurrence(self, *, event_id: str, occurrence_key: str) -> Optional[ScheduleEventException]:
        return self._run(
            "Delete occurrence",
            lambda: self._schedule.delete_occurrence(event_id=event_id, occurrence_key=occurrence_key),
            "Occurrence removed",
        )

    # -- expenses ---------------------------------------------------------------

    def add_expense(self, **fields) -> Optional[Expense]:
        return self._run("Add expense", lambda: self._expenses.add_expense(**fields), "Expense added")

    def update_expense(self, expense_id: str, **fields) -> Optional[Expense]:
        return self._run("Update expense", lambda: self._expenses.update_expense(expense_id, **fields), "Expense updated")

    def delete_expense(self, expense_id: str) -> Optional[bool]:
        return self._run("Delete expense", lambda: self._expenses.delete_expense(expense_id), "Expense deleted")

    # -- reports (read-only, over the snapshot) ---------------------------------

    def upcoming_events(self, *, now: Optional[datetime] = None, limit: int = DEFAULT_UPCOMING_EVENTS) -> list[DisplayEvent]:
        return next_events(list(self._snapshot.visible_events), now=now or self._clock(), limit=limit)

    def period_report(self, period: ReportPeriod | str, *, now: Optional[datetime] = None) -> PeriodReport:
        try:
            period = ReportPeriod(period)
        except ValueError:
            raise ValidationError(f"Unknown report period: {period!r}")
        return reports.period_report(
            period,
            self._snapshot.transactions,
            self._snapshot.expenses,
            now=now or self._clock(),
        )

    def balance_history(self, student_id: str) -> list[BalanceHistoryEntry]:
        student = self._snapshot.student(student_id)
        if student is None:
            return []
        return reports.balance_history(
            student,
            transactions=self._snapshot.transactions,
            attendance=self._snapshot.attendance,
            subscriptions=self._snapshot.subscriptions,
            plans=self._snapshot.plans,
        )

    def student_financials(self, student_id: str) -> Optional[StudentFinancials]:
        student = self._snapshot.student(student_id)
        if student is None:
            return None
        return reports.student_financials(student, self._snapshot.subscriptions)

    def dashboard_summary(self, *, now: Optional[datetime] = None) -> DashboardSummary:
        return reports.dashboard_summary(
            self._snapshot.students,
            len(self._snapshot.groups),
            self._snapshot.visible_events,
            now=now or self._clock(),
        )


def _purchase_message(purchase: SubscriptionPurchase) -> str:
    message = "Subscription sold"
    if purchase.cleared_debt_lessons:
        message += f", {purchase.cleared_debt_lessons} unpaid lesson(s) charged to it"
    return message
