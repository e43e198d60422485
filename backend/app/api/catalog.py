"""Read-only catalog cache endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.timetable import format_meeting_days, format_military_time
from app.database import get_db
from app.models import CatalogSection, User
from app.schemas import SectionRead, SemesterRead, SemestersRead
from app.services import catalog

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _serialize_section(section: CatalogSection) -> SectionRead:
    time_display = None
    if section.start_time and section.end_time:
        time_display = (
            f"{format_military_time(section.start_time)} - {format_military_time(section.end_time)}"
        )
    data = SectionRead.model_validate(section)
    data.meeting_days_display = format_meeting_days(section.meeting_day) if section.meeting_day else None
    data.time_display = time_display
    return data


def _serialize_semester(semester: catalog.Semester) -> SemesterRead:
    return SemesterRead(
        year=semester.year,
        term=semester.term,
        term_name=semester.term_name.capitalize(),
        id=semester.id,
        display=semester.display,
    )


@router.get("/semesters", response_model=SemestersRead)
def list_semesters() -> SemestersRead:
    current, previous = catalog.current_semesters(date.today())
    return SemestersRead(current=_serialize_semester(current), previous=_serialize_semester(previous))


@router.get("/search", response_model=list[SectionRead])
def search_sections(
    q: str = Query(..., max_length=100),
    year: int = Query(...),
    term: int = Query(...),
    limit: int = Query(default=20, ge=1, le=catalog.MAX_SEARCH_LIMIT),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[SectionRead]:
    return [_serialize_section(section) for section in catalog.search_sections(db, q, year, term, limit)]


@router.get("/sections/{index}", response_model=SectionRead)
def read_section(
    index: str,
    year: int = Query(...),
    term: int = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SectionRead:
    return _serialize_section(catalog.find_section(db, index, year, term))
