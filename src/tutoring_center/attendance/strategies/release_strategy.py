from __future__ import annotations

from datetime import date
from typing import Optional

from ..model import AttendanceRecord, LessonLink
from .base import LessonLedger, TransitionStrategy


class ReleaseLessonStrategy(TransitionStrategy):
    """Visit undone: give the credit back, or reverse the debt lesson."""

    def apply(
        self,
        ledger: LessonLedger,
        *,
        student_id: str,
        lesson_date: date,
        group_id: Optional[str],
        previous: Optional[AttendanceRecord],
    ) -> LessonLink:
        if previous is not None:
            ledger.release_lesson(previous)
        return LessonLink()
