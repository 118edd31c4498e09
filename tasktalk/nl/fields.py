from __future__ import annotations
import re
from datetime import date
from typing import Any, Optional

from tasktalk.core.types import Validation
from .datetime_phrases import resolve_date, resolve_time

PRIORITIES = ("low", "medium", "high", "critical")
STATUSES = ("pending", "in_progress", "completed", "cancelled", "rescheduled")
SUPPORTED_FIELDS = ("title", "description", "priority", "date", "time", "duration", "status", "location")

DEFAULT_PRIORITY = "medium"
DEFAULT_DURATION = "30"
TITLE_MAX = 200

FIELD_SYNONYMS = {
    "title": "title",
    "name": "title",
    "description": "description",
    "desc": "description",
    "priority": "priority",
    "prio": "priority",
    "status": "status",
    "state": "status",
    "date": "scheduledDate",
    "day": "scheduledDate",
    "scheduleddate": "scheduledDate",
    "time": "scheduledTime",
    "scheduledtime": "scheduledTime",
    "duration": "estimatedDuration",
    "estimatedduration": "estimatedDuration",
    "location": "location",
    "place": "location",
    "where": "location",
}

STATUS_SYNONYMS = {
    "done": "completed",
    "finished": "completed",
    "complete": "completed",
    "completed": "completed",
    "todo": "pending",
    "to do": "pending",
    "pending": "pending",
    "open": "pending",
    "in progress": "in_progress",
    "in_progress": "in_progress",
    "inprogress": "in_progress",
    "working": "in_progress",
    "active": "in_progress",
    "started": "in_progress",
    "cancelled": "cancelled",
    "canceled": "cancelled",
    "rescheduled": "rescheduled",
}

_DISPLAY_NAMES = {
    "scheduledDate": "date",
    "scheduledTime": "time",
    "estimatedDuration": "duration",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def normalize_field(name: str) -> str:
    key = re.sub(r"[^a-z]", "", (name or "").lower())
    return FIELD_SYNONYMS.get(key, "")


def _parse_int(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    m = _LEADING_INT.match(str(raw))
    return int(m.group(1)) if m else None


def normalize_value(field: str, raw: Any, today: Optional[date] = None) -> str:
    """Coerce ``raw`` into the canonical representation of ``field``.

    Dates raise InvalidValueError when unparsable. Priority and duration fall
    back to ``medium`` and ``30`` instead of failing.
    """
    value = str(raw).strip() if raw is not None else ""
    if field == "priority":
        lowered = value.lower()
        return lowered if lowered in PRIORITIES else DEFAULT_PRIORITY
    if field == "status":
        lowered = " ".join(value.lower().split())
        return STATUS_SYNONYMS.get(lowered, lowered)
    if field == "scheduledDate":
        return resolve_date(value, today=today).isoformat()
    if field == "scheduledTime":
        return resolve_time(value)
    if field == "estimatedDuration":
        n = _parse_int(raw)
        return DEFAULT_DURATION if n is None else str(n)
    return value


def validate_field_value(field: str, value: str) -> Validation:
    if field == "priority" and value not in PRIORITIES:
        return Validation(False, f"Priority must be one of: {', '.join(PRIORITIES)}")
    if field == "status" and value not in STATUSES:
        return Validation(False, f"Status must be one of: {', '.join(STATUSES)}")
    if field == "estimatedDuration":
        n = _parse_int(value)
        if n is None or n <= 0:
            return Validation(False, "Duration must be a positive number (in minutes)")
    if field == "title" and not (1 <= len(value) <= TITLE_MAX):
        return Validation(False, f"Title must be between 1 and {TITLE_MAX} characters")
    return Validation(True, "")


def field_display_name(field: str) -> str:
    return _DISPLAY_NAMES.get(field, field)


def value_display_text(field: str, value: str) -> str:
    if field == "scheduledDate":
        try:
            return date.fromisoformat(value).strftime("%a %b %d, %Y")
        except ValueError:
            return value
    if field == "estimatedDuration":
        minutes = _parse_int(value) or 0
        if minutes >= 60:
            hours, rest = divmod(minutes, 60)
            return f"{hours}h {rest}m" if rest else f"{hours}h"
        return f"{minutes} minutes"
    return value
