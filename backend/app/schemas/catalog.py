"""Schemas for catalog cache reads."""

from app.schemas.base import CamelModel


class SemesterRead(CamelModel):
    year: int
    term: int
    term_name: str
    id: str
    display: str


class SemestersRead(CamelModel):
    current: SemesterRead
    previous: SemesterRead


class SectionRead(CamelModel):
    index: str
    year: int
    term: int
    campus: str
    subject: str | None = None
    course_number: str | None = None
    course_string: str | None = None
    title: str | None = None
    instructor: str | None = None
    meeting_day: str | None = None
    meeting_days_display: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    time_display: str | None = None
    building: str | None = None
    room_number: str | None = None
    campus_name: str | None = None
    open_status: bool
    credits: str | None = None
