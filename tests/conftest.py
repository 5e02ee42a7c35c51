from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tutoring_center.container import build_container, system_plan_row
from tutoring_center.core.exceptions import StoreError
from tutoring_center.database.memory_store import InMemoryEntityStore
from tutoring_center.students.model import NewStudent

FIXED_NOW = datetime(2024, 9, 15, 12, 0)


class Settings:
    STORE_BACKEND = "memory"
    DEFAULT_LESSON_PRICE = 500.0


class FreeLessonSettings(Settings):
    DEFAULT_LESSON_PRICE = 0


class TickingClock:
    """Fixed start time; every reading moves one second forward so entries keep their order."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


class FailingStore(InMemoryEntityStore):
    """Memory store that raises StoreError for the (operation, table) pairs in ``fail_on``."""

    def __init__(self, seed=None):
        super().__init__(seed)
        self.fail_on: set[tuple[str, str]] = set()

    def _check(self, operation: str, table: str) -> None:
        if (operation, table) in self.fail_on:
            raise StoreError(f"{operation} on {table} failed")

    def insert(self, table, row):
        self._check("insert", table)
        return super().insert(table, row)

    def update(self, table, where, changes):
        self._check("update", table)
        return super().update(table, where, changes)

    def upsert(self, table, row):
        self._check("upsert", table)
        return super().upsert(table, row)

    def delete(self, table, where=None):
        self._check("delete", table)
        return super().delete(table, where)


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple] = []

    def send_welcome(self, student):
        self.sent.append(("welcome", student.student_id))

    def send_payment_reminder(self, student, *, amount, due_date):
        self.sent.append(("reminder", student.student_id, amount, due_date))

    def send_schedule_change(self, student, *, title, new_start, old_start=None):
        self.sent.append(("schedule", student.student_id, title, new_start, old_start))


@pytest.fixture
def clock():
    return TickingClock(FIXED_NOW)


@pytest.fixture
def store():
    return FailingStore({"subscription_plans": [system_plan_row()]})


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def container(store, notifier, clock):
    return build_container(Settings, store=store, notifier=notifier, clock=clock)


@pytest.fixture
def free_container(store, notifier, clock):
    return build_container(FreeLessonSettings, store=store, notifier=notifier, clock=clock)


@pytest.fixture
def group(container):
    return container.group_service.add_group("Beginners")


@pytest.fixture
def student(container, group):
    return container.student_service.add_student(NewStudent(name="Anna", group_ids=(group.group_id,)))
