from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import StudentStatus
from ..core.exceptions import ValidationError
from ..ledger.repository import TransactionRepository
from ..notifications.service import NotificationService, notify_safely
from ..subscriptions.repository import SubscriptionRepository
from .group_model import Group
from .group_repository import GroupRepository
from .model import NewStudent, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)

# Profile columns editable through update_student. Balance is owned by the ledger.
PROFILE_FIELDS = ("name", "birth_date", "parent_name", "parent_phone1", "parent_phone2", "parent_email", "group_ids")


class StudentService:
    """Use case: manage the student roster."""

    def __init__(
        self,
        students: StudentRepository,
        *,
        subscriptions: SubscriptionRepository,
        attendance: AttendanceRepository,
        transactions: TransactionRepository,
        notifier: Optional[NotificationService] = None,
    ):
        self._students = students
        self._subscriptions = subscriptions
        self._attendance = attendance
        self._transactions = transactions
        self._notifier = notifier

    def add_student(self, new: NewStudent) -> Student:
        return self.add_students([new])[0]

    def add_students(self, batch: Sequence[NewStudent]) -> list[Student]:
        """Create every student of the batch, then send each parent a welcome message."""
        drafts = [self._draft(new) for new in batch]
        created = [self._students.create(draft) for draft in drafts]
        logger.info(f"Added {len(created)} student(s)")
        if self._notifier:
            for student in created:
                notify_safely(self._notifier.send_welcome, student)
        return created

    @staticmethod
    def _draft(new: NewStudent) -> Student:
        return Student(
            student_id="",
            name=require_non_empty(new.name, "Name"),
            balance=0.0,
            status=StudentStatus.ACTIVE,
            group_ids=tuple(dict.fromkeys(g for g in new.group_ids if g)),
            birth_date=new.birth_date,
            parent_name=(new.parent_name or "").strip(),
            parent_phone1=(new.parent_phone1 or "").strip(),
            parent_phone2=(new.parent_phone2 or "").strip(),
            parent_email=(new.parent_email or "").strip(),
        )

    def update_student(self, student_id: str, **changes) -> Optional[Student]:
        unknown = set(changes) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Not editable: {', '.join(sorted(unknown))}")
        current = self._students.get_by_id(student_id)
        if current is None:
            logger.info(f"Student {student_id} no longer exists; nothing to update")
            return None

        if "name" in changes:
            changes["name"] = require_non_empty(changes["name"], "Name")
        if "group_ids" in changes:
            changes["group_ids"] = tuple(dict.fromkeys(g for g in changes["group_ids"] or () if g))
        updated = replace(current, **changes)

        columns = {}
        for field in changes:
            value = getattr(updated, field)
            if field == "group_ids":
                value = list(value)
            elif field == "birth_date":
                value = value.isoformat() if value else None
            columns[field] = value
        if columns:
            self._students.update(student_id, columns)
        return updated

    def archive_students(self, student_ids: Iterable[str], *, on: Optional[date] = None) -> int:
        archived_on = (on or now_local().date()).isoformat()
        count = 0
        for student_id in student_ids:
            if self._students.update(student_id, {"status": StudentStatus.ARCHIVED.value, "archived_date": archived_on}):
                count += 1
        logger.info(f"Archived {count} student(s)")
        return count

    def restore_students(self, student_ids: Iterable[str]) -> int:
        count = 0
        for student_id in student_ids:
            if self._students.update(student_id, {"status": StudentStatus.ACTIVE.value, "archived_date": None}):
                count += 1
        logger.info(f"Restored {count} student(s)")
        return count

    def delete_students(self, student_ids: Iterable[str]) -> int:
        """Remove students together with their subscriptions, attendance and transactions."""
        count = 0
        for student_id in student_ids:
            self._attendance.delete_for_student(student_id)
            self._subscriptions.delete_for_student(student_id)
            self._transactions.delete_for_student(student_id)
            if self._students.delete(student_id):
                count += 1
        logger.info(f"Deleted {count} student(s) with their records")
        return count

    def send_payment_reminders(self, *, due_date: date) -> int:
        """Remind the parents of every active student in debt."""
        if not self._notifier:
            return 0
        debtors = [s for s in self._students.list_all() if s.is_active and s.balance < 0]
        for student in debtors:
            notify_safely(self._notifier.send_payment_reminder, student, amount=-student.balance, due_date=due_date)
        return len(debtors)


class GroupService:
    """Use case: manage groups. Deleting a group detaches it from every student."""

    def __init__(self, groups: GroupRepository, students: StudentRepository):
        self._groups = groups
        self._students = students

    def add_group(self, name: str) -> Group:
        group = self._groups.create(name=require_non_empty(name, "Group name"))
        logger.info(f"Added group {group.group_id} ({group.name})")
        return group

    def rename_group(self, group_id: str, name: str) -> bool:
        return self._groups.rename(group_id, name=require_non_empty(name, "Group name"))

    def delete_group(self, group_id: str) -> bool:
        for student in self._students.list_all():
            if group_id in student.group_ids:
                self._students.set_group_ids(student.student_id, [g for g in student.group_ids if g != group_id])
        deleted = self._groups.delete(group_id)
        logger.info(f"Deleted group {group_id}")
        return deleted
