"""Example: drive the services directly, without Flask.

Controllers are a thin layer; the ledger rules live in the services.
"""

import logging
from datetime import date

from tutoring_center.container import build_container
from tutoring_center.core.constants import SYSTEM_SUBSCRIPTION_PLAN_ID
from tutoring_center.core.enums import AttendanceStatus
from tutoring_center.students.model import NewStudent


class Settings:
    STORE_BACKEND = "memory"
    DEFAULT_LESSON_PRICE = 500


def main():
    logging.basicConfig(level=logging.INFO)
    container = build_container(Settings)
    state = container.state

    group = state.add_group("Beginners")
    student = state.add_student(NewStudent(name="Anna Smirnova", group_ids=(group.group_id,)))

    # Two lessons before paying: both billed as debt lessons
    for day in (date(2024, 9, 2), date(2024, 9, 9)):
        state.set_attendance(student_id=student.student_id, lesson_date=day, status=AttendanceStatus.PRESENT, group_id=group.group_id)

    state.add_subscription(
        student_id=student.student_id,
        plan_id=SYSTEM_SUBSCRIPTION_PLAN_ID,
        price_paid=4000,
        lessons_total=8,
    )
    for notice in state.notices.drain():
        print(f"[{notice.level.value}] {notice.message}")

    for entry in state.balance_history(student.student_id):
        print(f"{entry.occurred_at:%d.%m.%Y} {entry.description:<55} {entry.balance_after:>8.2f}")


if __name__ == "__main__":
    main()
