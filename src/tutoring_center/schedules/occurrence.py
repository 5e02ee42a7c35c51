from __future__ import annotations

import re
from datetime import datetime

from ..common.datetime_utils import to_local_naive

_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")


def occurrence_key(moment: datetime) -> str:
    """Stable identity of an occurrence: its local wall-clock time, ``YYYY-MM-DDThh:mm``.

    Aware datetimes are first converted to local time, so the same wall-clock moment
    yields the same key however the timestamp was stored.
    """
    local = to_local_naive(moment)
    return f"{local.year:04d}-{local.month:02d}-{local.day:02d}T{local.hour:02d}:{local.minute:02d}"


def is_occurrence_key(value: str) -> bool:
    return bool(value) and bool(_KEY_RE.match(value))
