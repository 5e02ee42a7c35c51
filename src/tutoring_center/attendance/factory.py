from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AttendanceStatus
from .strategies.base import TransitionStrategy
from .strategies.consume_strategy import ConsumeLessonStrategy
from .strategies.keep_strategy import KeepLinkStrategy
from .strategies.release_strategy import ReleaseLessonStrategy


@dataclass
class AttendanceTransitionFactory:
    """Factory Pattern: choose the credit movement for a status change.

    ``None`` stands for "no record" on either side (a deletion when it is ``new``).
    """

    def for_transition(
        self,
        *,
        previous: Optional[AttendanceStatus],
        new: Optional[AttendanceStatus],
    ) -> TransitionStrategy:
        was_visit = previous is not None and previous.is_visit
        is_visit = new is not None and new.is_visit
        if is_visit and not was_visit:
            return ConsumeLessonStrategy()
        if was_visit and not is_visit:
            return ReleaseLessonStrategy()
        return KeepLinkStrategy()
