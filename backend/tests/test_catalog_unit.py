"""Unit tests for catalog cache lookups."""

from __future__ import annotations

from datetime import date

import pytest

from app.core.errors import NotFound, ValidationError
from app.services import catalog, rooms


@pytest.fixture()
def sections(db_session, catalog_section):
    rows = [
        catalog_section(),
        catalog_section(index="09215", instructor="DOE, JANE", meeting_day="TH"),
        catalog_section(
            index="12001",
            course_string="01:640:151",
            title="CALCULUS I",
            instructor="NEWTON, ISAAC",
        ),
        catalog_section(index="09214", term=1),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def test_find_section_by_index_and_term(db_session, sections):
    section = catalog.find_section(db_session, "09214", 2026, 9)
    assert section.title == "DATA STRUCTURES"

    with pytest.raises(NotFound):
        catalog.find_section(db_session, "99999", 2026, 9)


def test_numeric_query_searches_index_prefix(db_session, sections):
    found = catalog.search_sections(db_session, "092", 2026, 9)
    assert sorted(section.index for section in found) == ["09214", "09215"]


def test_text_query_matches_title_code_or_instructor(db_session, sections):
    assert [s.index for s in catalog.search_sections(db_session, "calculus", 2026, 9)] == ["12001"]
    assert [s.index for s in catalog.search_sections(db_session, "640:151", 2026, 9)] == ["12001"]
    assert [s.index for s in catalog.search_sections(db_session, "doe", 2026, 9)] == ["09215"]


def test_wildcards_in_query_match_literally(db_session, sections, catalog_section):
    db_session.add(catalog_section(index="30001", title="TOPICS_A: 100% PROJECTS"))
    db_session.commit()

    assert [s.index for s in catalog.search_sections(db_session, "_a", 2026, 9)] == ["30001"]
    assert [s.index for s in catalog.search_sections(db_session, "0%", 2026, 9)] == ["30001"]
    assert catalog.search_sections(db_session, "%%", 2026, 9) == []


def test_search_respects_limit_and_minimum_length(db_session, sections):
    with pytest.raises(ValidationError):
        catalog.search_sections(db_session, "d", 2026, 9)
    assert len(catalog.search_sections(db_session, "09", 2026, 9, limit=1)) == 1


def test_section_room_key(catalog_section):
    key = catalog.section_room_key(catalog_section())

    assert key.course_name == "DATA STRUCTURES"
    assert key.course_code == "01:198:112"
    assert key.school == "Rutgers University"
    assert key.semester == "2026-summer"
    assert key.day_of_week == 1
    assert (key.start_time, key.end_time) == ("10:20", "11:40")
    assert key.location == "HLL 114"
    assert key.weeks == ""


def test_section_without_meeting_time_cannot_be_joined(catalog_section):
    with pytest.raises(ValidationError, match="no scheduled meeting time"):
        catalog.section_room_key(catalog_section(meeting_day=None))
    with pytest.raises(ValidationError):
        catalog.section_room_key(catalog_section(start_time=None))


def test_sections_of_same_meeting_share_a_room(db_session, catalog_section):
    first = rooms.resolve_room(db_session, catalog.section_room_key(catalog_section()))
    again = rooms.resolve_room(db_session, catalog.section_room_key(catalog_section()))
    db_session.commit()

    assert first.id == again.id
    assert first.course.code == "01:198:112"


@pytest.mark.parametrize(
    ("today", "current", "previous"),
    [
        (date(2026, 2, 10), "2026-spring", "2025-fall"),
        (date(2026, 7, 1), "2026-summer", "2026-spring"),
        (date(2026, 10, 19), "2026-fall", "2026-summer"),
    ],
)
def test_current_semesters(today, current, previous):
    now, before = catalog.current_semesters(today)
    assert (now.id, before.id) == (current, previous)


def test_unknown_term_code_is_rejected():
    with pytest.raises(ValidationError):
        catalog.semester_id(2026, 4)
