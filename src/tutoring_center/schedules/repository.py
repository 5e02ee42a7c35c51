from __future__ import annotations

from typing import Any, Mapping, Optional

from ..database.rows import decode_event, decode_exception, decode_rows, encode_event, encode_exception
from ..database.store import EntityStore
from .model import ScheduleEvent, ScheduleEventException

EVENTS = "schedule_events"
EXCEPTIONS = "schedule_event_exceptions"


class ScheduleRepository:
    def __init__(self, store: EntityStore):
        self._store = store

    def list_events(self) -> list[ScheduleEvent]:
        return decode_rows(EVENTS, self._store.select(EVENTS), decode_event)

    def get_event(self, event_id: str) -> Optional[ScheduleEvent]:
        rows = decode_rows(EVENTS, self._store.select(EVENTS, {"id": event_id}), decode_event)
        return rows[0] if rows else None

    def create_event(self, event: ScheduleEvent) -> ScheduleEvent:
        row = encode_event(event)
        if not event.event_id:
            row.pop("id")
        return decode_event(self._store.insert(EVENTS, row))

    def update_event(self, event_id: str, changes: Mapping[str, Any]) -> bool:
        return self._store.update(EVENTS, {"id": event_id}, dict(changes)) > 0

    def delete_event(self, event_id: str) -> bool:
        return self._store.delete(EVENTS, {"id": event_id}) > 0

    def list_exceptions(self) -> list[ScheduleEventException]:
        return decode_rows(EXCEPTIONS, self._store.select(EXCEPTIONS), decode_exception)

    def upsert_exception(self, exception: ScheduleEventException) -> ScheduleEventException:
        """Create or replace the exception of one occurrence."""
        return decode_exception(self._store.upsert(EXCEPTIONS, encode_exception(exception)))

    def delete_exceptions_for_event(self, event_id: str) -> int:
        return self._store.delete(EXCEPTIONS, {"original_event_id": event_id})
