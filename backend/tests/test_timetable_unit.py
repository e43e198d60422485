"""Tests for meeting day and clock time normalization."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.core.errors import ValidationError
from app.core.timetable import (
    as_utc,
    day_from_meeting_code,
    format_meeting_days,
    format_military_time,
    next_utc_midnight,
    normalize_time,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("9:30", "09:30"),
        ("09:30:00", "09:30"),
        ("0930", "09:30"),
        ("930", "09:30"),
        ("1330", "13:30"),
        ("9:30 AM", "09:30"),
        ("1:05pm", "13:05"),
        ("12:00 PM", "12:00"),
        ("12:15 am", "00:15"),
        ("3 p.m.", "15:00"),
    ],
)
def test_normalize_time_accepts_common_forms(raw, expected):
    assert normalize_time(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "25:00", "9:75", "13 pm", "morning", "12345"])
def test_normalize_time_rejects_garbage(raw):
    with pytest.raises(ValidationError):
        normalize_time(raw)


def test_meeting_day_codes_map_to_iso_days():
    assert day_from_meeting_code("MW") == 1
    assert day_from_meeting_code("TH") == 2
    assert day_from_meeting_code("h") == 4
    assert day_from_meeting_code("U") == 7
    assert day_from_meeting_code("") is None
    assert day_from_meeting_code(None) is None


def test_display_helpers():
    assert format_military_time("1330") == "1:30 PM"
    assert format_military_time("0900") == "9:00 AM"
    assert format_military_time("1200") == "12:00 PM"
    assert format_military_time("0005") == "12:05 AM"
    assert format_meeting_days("MW") == "Mon/Wed"
    assert format_meeting_days("TH") == "Tue/Thu"


def test_next_utc_midnight_handles_naive_values():
    naive = datetime(2026, 12, 31, 23, 59)
    assert next_utc_midnight(naive) == datetime(2027, 1, 1, tzinfo=timezone.utc)
    assert as_utc(naive).tzinfo is timezone.utc
