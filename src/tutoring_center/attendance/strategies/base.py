from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Protocol

from ..model import AttendanceRecord, LessonLink


class LessonLedger(Protocol):
    """The ledger operations a transition may perform."""

    def consume_lesson(self, *, student_id: str, lesson_date: date, group_id: Optional[str]) -> LessonLink:
        raise NotImplementedError

    def release_lesson(self, record: AttendanceRecord) -> None:
        raise NotImplementedError


class TransitionStrategy(ABC):
    """Strategy Pattern: encapsulate how an attendance change moves lesson credit."""

    @abstractmethod
    def apply(
        self,
        ledger: LessonLedger,
        *,
        student_id: str,
        lesson_date: date,
        group_id: Optional[str],
        previous: Optional[AttendanceRecord],
    ) -> LessonLink:
        """Perform the credit movement and return the link the new record carries."""
        raise NotImplementedError
