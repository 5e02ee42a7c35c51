from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..common.datetime_utils import parse_local_datetime
from ..core.constants import RECURRENCE_INTERVAL_DAYS, RECURRENCE_OCCURRENCES
from .model import DisplayEvent, ScheduleEvent, ScheduleEventException
from .occurrence import occurrence_key

logger = logging.getLogger(__name__)


class RecurrenceExpander:
    """Turns stored events + exceptions into the visible calendar.

    Every stored event is emitted as itself; a recurring one additionally yields
    ``occurrences`` weekly copies. Exceptions are matched by (event id, occurrence
    key) and either drop or reshape a single copy. Bad data skips the affected
    instance only.
    """

    def __init__(
        self,
        *,
        occurrences: int = RECURRENCE_OCCURRENCES,
        interval: timedelta = timedelta(days=RECURRENCE_INTERVAL_DAYS),
    ):
        self._occurrences = int(occurrences)
        self._interval = interval

    def expand(
        self,
        events: Iterable[ScheduleEvent],
        exceptions: Iterable[ScheduleEventException] = (),
    ) -> list[DisplayEvent]:
        by_key = {(ex.original_event_id, ex.occurrence_key): ex for ex in exceptions}
        out: list[DisplayEvent] = []
        for event in events:
            if not isinstance(event.start, datetime) or not isinstance(event.end, datetime):
                logger.warning(f"Skipping event {event.event_id!r}: missing or invalid start/end")
                continue
            out.append(
                DisplayEvent(
                    display_id=event.event_id,
                    original_id=event.event_id,
                    title=event.title,
                    start=event.start,
                    end=event.end,
                    group_id=event.group_id,
                    is_recurring=event.is_recurring,
                    is_virtual=False,
                    occurrence_key=occurrence_key(event.start),
                )
            )
            if event.is_recurring:
                out.extend(self._occurrences_of(event, by_key))
        return out

    def _occurrences_of(self, event: ScheduleEvent, by_key: dict) -> Iterable[DisplayEvent]:
        duration = event.end - event.start
        for i in range(1, self._occurrences + 1):
            candidate = event.start + self._interval * i
            key = occurrence_key(candidate)
            exception: Optional[ScheduleEventException] = by_key.get((event.event_id, key))
            if exception and exception.is_deleted:
                continue

            start = candidate
            if exception and exception.new_start:
                start = parse_local_datetime(exception.new_start)
                if start is None:
                    logger.warning(f"Skipping occurrence {key} of {event.event_id!r}: invalid start override")
                    continue
            end = start + duration
            if exception and exception.new_end:
                end = parse_local_datetime(exception.new_end)
                if end is None:
                    logger.warning(f"Skipping occurrence {key} of {event.event_id!r}: invalid end override")
                    continue

            group_id = event.group_id
            if exception and exception.overrides_group:
                group_id = exception.new_group_id

            yield DisplayEvent(
                display_id=f"{event.event_id}-recur-{i}",
                original_id=event.event_id,
                title=(exception.new_title if exception and exception.new_title else event.title),
                start=start,
                end=end,
                group_id=group_id,
                is_recurring=True,
                is_virtual=True,
                occurrence_key=key,
                exception=exception,
            )
