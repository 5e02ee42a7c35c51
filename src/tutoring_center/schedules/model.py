from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ScheduleEvent:
    event_id: str
    title: str
    start: datetime
    end: datetime
    group_id: Optional[str] = None
    is_recurring: bool = False


# No group override, as opposed to an explicit override to "no group" (None).
UNSET = object()


@dataclass(frozen=True)
class ScheduleEventException:
    """Per-occurrence override or deletion, keyed by (event id, occurrence key).

    Start/end overrides are kept raw (as stored) and parsed at expansion time, so a
    malformed override only skips its own occurrence.
    """

    original_event_id: str
    occurrence_key: str
    new_title: Optional[str] = None
    new_group_id: object = UNSET
    new_start: object = None
    new_end: object = None
    is_deleted: bool = False

    @property
    def overrides_group(self) -> bool:
        return self.new_group_id is not UNSET


@dataclass(frozen=True)
class DisplayEvent:
    """One visible calendar instance: the stored event itself or a generated occurrence."""

    display_id: str
    original_id: str
    title: str
    start: datetime
    end: datetime
    group_id: Optional[str]
    is_recurring: bool
    is_virtual: bool
    occurrence_key: str
    exception: Optional[ScheduleEventException] = None
