"""JSON helpers shared by the Flask controllers."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from flask import jsonify, request

from ..core.enums import NoticeLevel
from ..core.exceptions import ValidationError
from .datetime_utils import parse_local_date, parse_local_datetime


def to_json(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
        # Derived values the clients need alongside the stored fields
        for name in ("profit", "total_worth", "effective_price", "lessons_remaining"):
            if hasattr(value, name) and name not in data:
                data[name] = to_json(getattr(value, name))
        return data
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, dict):
        return {str(k): to_json(v) for k, v in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    # UNSET and other sentinels
    return None


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def require_date(value: Any, field_name: str) -> date:
    parsed = parse_local_date(value)
    if parsed is None:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")
    return parsed


def require_datetime(value: Any, field_name: str) -> datetime:
    parsed = parse_local_datetime(value)
    if parsed is None:
        raise ValidationError(f"{field_name} must be a date and time")
    return parsed


def optional_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return require_datetime(value, field_name)


def state_response(state, result: Any):
    """Result of an AppState mutator together with the notices it produced."""
    notices = state.notices.drain()
    ok = result is not None and result is not False and not any(n.level == NoticeLevel.ERROR for n in notices)
    body = {
        "success": ok,
        "message": notices[-1].message if notices else "",
        "notices": [{"message": n.message, "level": n.level.value} for n in notices],
        "data": to_json(result),
    }
    return jsonify(body), 200 if ok else 400


def error_response(message: str, status: int = 400):
    return jsonify({"success": False, "message": message, "notices": [], "data": None}), status
