"""Relative and absolute date/time phrases to canonical values."""

from __future__ import annotations
import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser

from tasktalk.core.errors import InvalidValueError

# Index matches date.weekday(): Monday is 0.
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

WEEKDAY_PATTERN = "|".join(WEEKDAYS)
DATE_WORD_PATTERN = f"today|tomorrow|yesterday|{WEEKDAY_PATTERN}"

_WEEKDAY_PHRASE = re.compile(rf"^(?:on\s+|this\s+|next\s+)?({WEEKDAY_PATTERN})$")
_AMPM = re.compile(r"^(\d{1,2})(?::(\d{2}))?([ap])\.?m\.?$")
_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})$")


def next_weekday(target: int, today: date) -> date:
    """Next occurrence of ``target``; a weekday naming today means a week out."""
    ahead = (target - today.weekday() + 7) % 7
    return today + timedelta(days=ahead or 7)


def resolve_date(phrase: str, today: Optional[date] = None) -> date:
    today = today or date.today()
    text = " ".join((phrase or "").lower().split())
    if not text:
        raise InvalidValueError("Please provide a date, e.g. today, tomorrow or friday")
    if text == "today":
        return today
    if text == "tomorrow":
        return today + timedelta(days=1)
    if text == "yesterday":
        return today - timedelta(days=1)
    if text == "next week":
        return today + timedelta(days=7)
    m = _WEEKDAY_PHRASE.match(text)
    if m:
        return next_weekday(WEEKDAYS.index(m.group(1)), today)
    try:
        default = datetime(today.year, today.month, today.day)
        return date_parser.parse(text, default=default).date()
    except (ValueError, OverflowError) as e:
        raise InvalidValueError(f'Invalid date "{phrase}". Try today, tomorrow, a weekday or YYYY-MM-DD') from e


def resolve_time(phrase: str) -> str:
    """Convert a time phrase to 24-hour ``HH:MM``; unparsable input comes back unchanged."""
    cleaned = re.sub(r"\s", "", (phrase or "").lower())
    m = _AMPM.match(cleaned)
    if m:
        hour = int(m.group(1))
        minutes = m.group(2) or "00"
        if not 1 <= hour <= 12 or int(minutes) > 59:
            return phrase
        pm = m.group(3) == "p"
        if pm and hour != 12:
            hour += 12
        elif not pm and hour == 12:
            hour = 0
        return f"{hour:02d}:{minutes}"
    m = _CLOCK.match(cleaned)
    if m:
        hour, minutes = int(m.group(1)), int(m.group(2))
        if hour > 23 or minutes > 59:
            return phrase
        return f"{hour:02d}:{minutes:02d}"
    if cleaned.isdigit() and 0 <= int(cleaned) <= 23:
        return f"{int(cleaned):02d}:00"
    return phrase
