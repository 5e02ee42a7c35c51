from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceTransitionFactory
from .attendance.repository import AttendanceRepository
from .core.constants import DEFAULT_LESSON_PRICE, SYSTEM_SUBSCRIPTION_PLAN_ID
from .database.connection import DBConfig, DatabaseConnection
from .database.memory_store import InMemoryEntityStore
from .database.mysql_store import MySQLEntityStore
from .database.store import EntityStore
from .finance.repository import ExpenseRepository
from .finance.service import ExpenseService
from .ledger.repository import TransactionRepository
from .ledger.service import LedgerService
from .notifications.notices import NoticeBoard
from .notifications.service import LoggingNotificationService, NotificationService
from .schedules.recurrence import RecurrenceExpander
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .state import AppState, Repositories
from .students.group_repository import GroupRepository
from .students.repository import StudentRepository
from .students.service import GroupService, StudentService
from .subscriptions.repository import PlanRepository, SubscriptionRepository
from .subscriptions.service import SubscriptionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    store: EntityStore
    repositories: Repositories

    student_service: StudentService
    group_service: GroupService
    subscription_service: SubscriptionService
    ledger_service: LedgerService
    schedule_service: ScheduleService
    expense_service: ExpenseService

    state: AppState


def system_plan_row() -> dict:
    return {
        "id": SYSTEM_SUBSCRIPTION_PLAN_ID,
        "name": "System",
        "price": 0,
        "discount": 0,
        "lesson_count": 0,
        "is_default": False,
    }


def build_store(settings: Any) -> EntityStore:
    backend = str(getattr(settings, "STORE_BACKEND", "memory")).lower()
    if backend == "mysql":
        config = DBConfig.from_dict(dict(getattr(settings, "DB_CONFIG")))
        logger.info(f"Using MySQL store {config.user}@{config.host}:{config.port}/{config.database}")
        return MySQLEntityStore(DatabaseConnection.get_instance(config))
    if backend != "memory":
        raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")
    logger.info("Using in-memory store")
    return InMemoryEntityStore({"subscription_plans": [system_plan_row()]})


def build_container(
    settings: Any = None,
    *,
    store: Optional[EntityStore] = None,
    notifier: Optional[NotificationService] = None,
    clock=None,
) -> Container:
    """Wire store, repositories, services and the application state.

    ``store``, ``notifier`` and ``clock`` are overridable for tests.
    """
    store = store if store is not None else build_store(settings)
    notifier = notifier or LoggingNotificationService()
    lesson_price = float(getattr(settings, "DEFAULT_LESSON_PRICE", DEFAULT_LESSON_PRICE))
    clock_kwargs = {"clock": clock} if clock else {}

    repos = Repositories(
        students=StudentRepository(store),
        groups=GroupRepository(store),
        plans=PlanRepository(store),
        subscriptions=SubscriptionRepository(store),
        attendance=AttendanceRepository(store),
        transactions=TransactionRepository(store),
        schedules=ScheduleRepository(store),
        expenses=ExpenseRepository(store),
    )

    expander = RecurrenceExpander()
    student_service = StudentService(
        repos.students,
        subscriptions=repos.subscriptions,
        attendance=repos.attendance,
        transactions=repos.transactions,
        notifier=notifier,
    )
    group_service = GroupService(repos.groups, repos.students)
    subscription_service = SubscriptionService(repos.plans, repos.subscriptions)
    ledger_service = LedgerService(
        repos.students,
        repos.plans,
        repos.subscriptions,
        repos.attendance,
        repos.transactions,
        transition_factory=AttendanceTransitionFactory(),
        default_lesson_price=lesson_price,
        **clock_kwargs,
    )
    schedule_service = ScheduleService(
        repos.schedules,
        expander=expander,
        students=repos.students,
        notifier=notifier,
    )
    expense_service = ExpenseService(repos.expenses, **clock_kwargs)

    state = AppState(
        repos,
        students=student_service,
        groups=group_service,
        subscriptions=subscription_service,
        ledger=ledger_service,
        schedule=schedule_service,
        expenses=expense_service,
        expander=expander,
        notices=NoticeBoard(),
        **clock_kwargs,
    )

    return Container(
        store=store,
        repositories=repos,
        student_service=student_service,
        group_service=group_service,
        subscription_service=subscription_service,
        ledger_service=ledger_service,
        schedule_service=schedule_service,
        expense_service=expense_service,
        state=state,
    )
