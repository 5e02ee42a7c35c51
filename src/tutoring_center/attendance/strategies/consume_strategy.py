from __future__ import annotations

from datetime import date
from typing import Optional

from ..model import AttendanceRecord, LessonLink
from .base import LessonLedger, TransitionStrategy


class ConsumeLessonStrategy(TransitionStrategy):
    """New visit: take one credit from a subscription, or bill a debt lesson."""

    def apply(
        self,
        ledger: LessonLedger,
        *,
        student_id: str,
        lesson_date: date,
        group_id: Optional[str],
        previous: Optional[AttendanceRecord],
    ) -> LessonLink:
        return ledger.consume_lesson(student_id=student_id, lesson_date=lesson_date, group_id=group_id)
