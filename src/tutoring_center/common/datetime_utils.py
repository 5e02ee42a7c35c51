from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from ..core.enums import ReportPeriod


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_local_naive(value: datetime) -> datetime:
    """Drop timezone info, keeping the local wall-clock reading of the instant."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_local_datetime(value: Any) -> Optional[datetime]:
    """Best-effort conversion of stored timestamp values to naive local datetimes.

    Accepts datetime, date and ISO-8601 strings (a trailing ``Z`` is understood as
    UTC). Returns None for anything that does not describe a valid instant.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_local_naive(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def parse_local_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return to_local_naive(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_date(value.strip()[:10])
        except ValueError:
            return None
    return None


def period_bounds(period: ReportPeriod, now: datetime) -> tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive [start, end] of the period containing ``now``; (None, None) for all time."""
    if period == ReportPeriod.MONTH:
        start = datetime(now.year, now.month, 1)
        if now.month == 12:
            next_start = datetime(now.year + 1, 1, 1)
        else:
            next_start = datetime(now.year, now.month + 1, 1)
        return start, next_start - timedelta(microseconds=1)
    if period == ReportPeriod.YEAR:
        return datetime(now.year, 1, 1), datetime(now.year, 12, 31, 23, 59, 59, 999999)
    return None, None
