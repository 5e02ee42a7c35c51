from __future__ import annotations

import logging

from .container import Container
from .students.model import NewStudent

logger = logging.getLogger(__name__)

DEMO_GROUPS = ("Beginners", "Intermediate", "Advanced", "Exam prep")

DEMO_STUDENTS = (
    ("Anna Smirnova", "Olga Smirnova", "+7 900 111-22-33", "olga.smirnova@example.com", 0),
    ("Ivan Petrov", "Sergey Petrov", "+7 900 222-33-44", "sergey.petrov@example.com", 0),
    ("Maria Kuznetsova", "Elena Kuznetsova", "+7 900 333-44-55", "", 1),
    ("Dmitry Volkov", "Pavel Volkov", "+7 900 444-55-66", "pavel.volkov@example.com", 2),
    ("Sofia Orlova", "Irina Orlova", "+7 900 555-66-77", "irina.orlova@example.com", 3),
)


def seed_demo_data(container: Container) -> bool:
    """Create demo groups, students and a default plan through the services. Only on an empty roster."""
    repos = container.repositories
    if repos.students.list_all() or repos.groups.list_all():
        logger.info("Store already has data; demo seed skipped")
        return False

    groups = [container.group_service.add_group(name) for name in DEMO_GROUPS]
    container.student_service.add_students(
        [
            NewStudent(
                name=name,
                parent_name=parent,
                parent_phone1=phone,
                parent_email=email,
                group_ids=(groups[group_index].group_id,),
            )
            for name, parent, phone, email, group_index in DEMO_STUDENTS
        ]
    )
    container.subscription_service.add_plan(name="8 lessons", price=4000, discount=0, lesson_count=8, is_default=True)
    container.subscription_service.add_plan(name="4 lessons", price=2200, discount=200, lesson_count=4)
    logger.info(f"Demo data ready: {len(groups)} groups, {len(DEMO_STUDENTS)} students")
    return True
