from __future__ import annotations

from datetime import date
from typing import Optional

from ..model import AttendanceRecord, LessonLink
from .base import LessonLedger, TransitionStrategy


class KeepLinkStrategy(TransitionStrategy):
    """present <-> absent, grade edits, excused -> excused: credit stays where it is."""

    def apply(
        self,
        ledger: LessonLedger,
        *,
        student_id: str,
        lesson_date: date,
        group_id: Optional[str],
        previous: Optional[AttendanceRecord],
    ) -> LessonLink:
        return LessonLink.of(previous)
