from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_positive_duration
from ..core.constants import DEFAULT_UPCOMING_EVENTS
from ..core.exceptions import ValidationError
from ..notifications.service import NotificationService, notify_safely
from ..students.repository import StudentRepository
from .model import DisplayEvent, ScheduleEvent, ScheduleEventException
from .occurrence import is_occurrence_key, occurrence_key
from .recurrence import RecurrenceExpander
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(
        self,
        schedules: ScheduleRepository,
        *,
        expander: Optional[RecurrenceExpander] = None,
        students: Optional[StudentRepository] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self._schedules = schedules
        self._expander = expander or RecurrenceExpander()
        self._students = students
        self._notifier = notifier

    def add_event(
        self,
        *,
        title: str,
        start: datetime,
        end: datetime,
        group_id: Optional[str] = None,
        is_recurring: bool = False,
    ) -> ScheduleEvent:
        title = require_non_empty(title, "Title")
        require_positive_duration(start, end)
        event = self._schedules.create_event(
            ScheduleEvent(
                event_id="",
                title=title,
                start=start,
                end=end,
                group_id=group_id or None,
                is_recurring=bool(is_recurring),
            )
        )
        logger.info(f"Created event {event.event_id} ({title}, recurring={event.is_recurring})")
        return event

    def update_event(
        self,
        event_id: str,
        *,
        title: str,
        start: datetime,
        end: datetime,
        group_id: Optional[str] = None,
        is_recurring: bool = False,
    ) -> Optional[ScheduleEvent]:
        """Edit the whole series. Existing exceptions stay keyed to their old occurrences."""
        title = require_non_empty(title, "Title")
        require_positive_duration(start, end)
        if not self._schedules.get_event(event_id):
            logger.info(f"Event {event_id} no longer exists; nothing to update")
            return None
        self._schedules.update_event(
            event_id,
            {
                "title": title,
                "start": start,
                "end": end,
                "group_id": group_id or None,
                "is_recurring": bool(is_recurring),
            },
        )
        return self._schedules.get_event(event_id)

    def delete_event(self, event_id: str) -> bool:
        if not self._schedules.delete_event(event_id):
            return False
        self._schedules.delete_exceptions_for_event(event_id)
        logger.info(f"Deleted event {event_id} with its exceptions")
        return True

    def _require_recurring(self, event_id: str, key: str) -> Optional[ScheduleEvent]:
        if not is_occurrence_key(key):
            raise ValidationError(f"Invalid occurrence key: {key!r}")
        event = self._schedules.get_event(event_id)
        if event is None:
            logger.info(f"Event {event_id} no longer exists; occurrence {key} ignored")
            return None
        if not event.is_recurring:
            raise ValidationError("Only occurrences of a recurring event can be changed one by one")
        if key == occurrence_key(event.start):
            raise ValidationError("The first occurrence is the event itself; edit the whole series instead")
        return event

    def override_occurrence(
        self,
        *,
        event_id: str,
        occurrence_key: str,
        title: str,
        start: datetime,
        end: datetime,
        group_id: Optional[str] = None,
        previous_start: Optional[datetime] = None,
    ) -> Optional[ScheduleEventException]:
        """Reshape a single occurrence; the series and other occurrences are untouched.

        ``group_id`` is always applied, so None moves the occurrence out of any group.
        """
        title = require_non_empty(title, "Title")
        require_positive_duration(start, end)
        event = self._require_recurring(event_id, occurrence_key)
        if event is None:
            return None
        exception = self._schedules.upsert_exception(
            ScheduleEventException(
                original_event_id=event_id,
                occurrence_key=occurrence_key,
                new_title=title,
                new_group_id=group_id or None,
                new_start=start,
                new_end=end,
                is_deleted=False,
            )
        )
        if previous_start is not None and previous_start != start:
            self._notify_group(group_id or None, title=title, new_start=start, old_start=previous_start)
        return exception

    def delete_occurrence(self, *, event_id: str, occurrence_key: str) -> Optional[ScheduleEventException]:
        if self._require_recurring(event_id, occurrence_key) is None:
            return None
        return self._schedules.upsert_exception(
            ScheduleEventException(original_event_id=event_id, occurrence_key=occurrence_key, is_deleted=True)
        )

    def visible_events(self) -> list[DisplayEvent]:
        return self._expander.expand(self._schedules.list_events(), self._schedules.list_exceptions())

    def upcoming_events(self, *, now: Optional[datetime] = None, limit: int = DEFAULT_UPCOMING_EVENTS) -> list[DisplayEvent]:
        return next_events(self.visible_events(), now=now or now_local(), limit=limit)

    def _notify_group(self, group_id: Optional[str], *, title: str, new_start: datetime, old_start: datetime) -> None:
        if not group_id or not self._students or not self._notifier:
            return
        for student in self._students.list_all():
            if student.is_active and group_id in student.group_ids:
                notify_safely(
                    self._notifier.send_schedule_change,
                    student,
                    title=title,
                    new_start=new_start,
                    old_start=old_start,
                )


def next_events(events: list[DisplayEvent], *, now: datetime, limit: int) -> list[DisplayEvent]:
    upcoming = [e for e in events if e.start > now]
    upcoming.sort(key=lambda e: e.start)
    return upcoming[:limit]
