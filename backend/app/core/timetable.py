"""Normalization helpers for meeting days and clock times."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from app.core.errors import ValidationError

MEETING_DAY_CODES: dict[str, int] = {"M": 1, "T": 2, "W": 3, "H": 4, "F": 5, "S": 6, "U": 7}
MEETING_DAY_NAMES: dict[str, str] = {
    "M": "Mon",
    "T": "Tue",
    "W": "Wed",
    "H": "Thu",
    "F": "Fri",
    "S": "Sat",
    "U": "Sun",
}

_TWELVE_HOUR = re.compile(r"^(\d{1,2})(?:[:.](\d{2}))?\s*([ap])\.?\s*m?\.?$")
_COLON = re.compile(r"^(\d{1,2})[:.](\d{2})(?::\d{2})?$")
_MILITARY = re.compile(r"^(\d{1,2})(\d{2})$")


def normalize_time(value: str) -> str:
    """Return ``value`` as zero-padded 24-hour ``HH:MM``.

    Accepts ``9:05``, ``09:05:00``, military ``0905``/``905`` and 12-hour
    forms such as ``9:05 AM`` or ``1pm``.
    """

    raw = (value or "").strip().lower().replace("：", ":")
    if not raw:
        raise ValidationError("Time value is required")

    match = _TWELVE_HOUR.match(raw)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if not 1 <= hour <= 12:
            raise ValidationError(f"Invalid time value: {value!r}")
        hour %= 12
        if match.group(3) == "p":
            hour += 12
    else:
        match = _COLON.match(raw) or _MILITARY.match(raw)
        if match is None:
            raise ValidationError(f"Invalid time value: {value!r}")
        hour, minute = int(match.group(1)), int(match.group(2))

    if hour > 23 or minute > 59:
        raise ValidationError(f"Invalid time value: {value!r}")
    return f"{hour:02d}:{minute:02d}"


def validate_day_of_week(day: int) -> int:
    if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 7:
        raise ValidationError("Day of week must be between 1 and 7")
    return day


def day_from_meeting_code(codes: str | None) -> int | None:
    """Map the first catalog meeting-day letter to ISO day of week."""

    for letter in (codes or "").strip().upper():
        if letter in MEETING_DAY_CODES:
            return MEETING_DAY_CODES[letter]
    return None


def format_meeting_days(codes: str) -> str:
    return "/".join(MEETING_DAY_NAMES.get(letter, letter) for letter in codes.upper())


def format_military_time(value: str) -> str:
    """Render ``1330`` as ``1:30 PM``; values shorter than four digits are returned as-is."""

    if not value or len(value) < 4:
        return value
    hours = int(value[:2])
    minutes = value[2:4]
    if hours == 0:
        return f"12:{minutes} AM"
    if hours < 12:
        return f"{hours}:{minutes} AM"
    if hours == 12:
        return f"12:{minutes} PM"
    return f"{hours - 12}:{minutes} PM"


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_utc_midnight(now: datetime) -> datetime:
    current = as_utc(now)
    return (current + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
