"""Read access to the cached external course catalog."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import NotFound, ValidationError
from app.core.timetable import day_from_meeting_code, normalize_time
from app.models import CatalogSection
from app.services.rooms import RoomKey

TERM_NAMES: dict[int, str] = {1: "spring", 7: "fall", 9: "summer", 0: "winter"}

MIN_QUERY_LENGTH = 2
MAX_SEARCH_LIMIT = 50


@dataclass(slots=True, frozen=True)
class Semester:
    year: int
    term: int

    @property
    def term_name(self) -> str:
        return TERM_NAMES.get(self.term, str(self.term))

    @property
    def id(self) -> str:
        return semester_id(self.year, self.term)

    @property
    def display(self) -> str:
        return f"{self.term_name.capitalize()} {self.year}"


def semester_id(year: int, term: int) -> str:
    if term not in TERM_NAMES:
        raise ValidationError(f"Unknown term code: {term}")
    return f"{year}-{TERM_NAMES[term]}"


def current_semesters(today: date) -> tuple[Semester, Semester]:
    """Return ``(current, previous)`` for the academic calendar."""

    if today.month <= 5:
        current = Semester(today.year, 1)
        previous = Semester(today.year - 1, 7)
    elif today.month <= 8:
        current = Semester(today.year, 9)
        previous = Semester(today.year, 1)
    else:
        current = Semester(today.year, 7)
        previous = Semester(today.year, 9)
    return current, previous


def find_section(db: Session, index: str, year: int, term: int) -> CatalogSection:
    stmt = select(CatalogSection).where(
        CatalogSection.index == index.strip(),
        CatalogSection.year == year,
        CatalogSection.term == term,
    )
    section = db.execute(stmt).scalar_one_or_none()
    if section is None:
        raise NotFound("Course section not found")
    return section


def search_sections(
    db: Session, query: str, year: int, term: int, limit: int = 20
) -> Sequence[CatalogSection]:
    """Index-prefix search for numeric queries, text match otherwise."""

    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise ValidationError(f"Query must be at least {MIN_QUERY_LENGTH} characters")
    limit = max(1, min(limit, MAX_SEARCH_LIMIT))

    stmt = select(CatalogSection).where(CatalogSection.year == year, CatalogSection.term == term)
    if query.isdigit():
        stmt = stmt.where(CatalogSection.index.startswith(query, autoescape=True))
    else:
        stmt = stmt.where(
            or_(
                CatalogSection.title.icontains(query, autoescape=True),
                CatalogSection.course_string.icontains(query, autoescape=True),
                CatalogSection.instructor.icontains(query, autoescape=True),
            )
        )
    stmt = stmt.order_by(CatalogSection.course_string, CatalogSection.index).limit(limit)
    return db.execute(stmt).scalars().all()


def section_room_key(section: CatalogSection) -> RoomKey:
    """Translate a cached section into the natural key of its room."""

    day = day_from_meeting_code(section.meeting_day)
    if day is None or not section.start_time or not section.end_time:
        raise ValidationError("Section has no scheduled meeting time")

    location = " ".join(part for part in (section.building, section.room_number) if part)
    return RoomKey(
        course_name=section.title or section.course_string or section.index,
        school=get_settings().catalog_school,
        semester=semester_id(section.year, section.term),
        day_of_week=day,
        start_time=normalize_time(section.start_time),
        end_time=normalize_time(section.end_time),
        instructor=section.instructor or "",
        location=location,
        weeks="",
        course_code=section.course_string,
    )
