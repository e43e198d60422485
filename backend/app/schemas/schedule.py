"""Schemas for the schedule import flow."""

from pydantic import Field, constr

from app.schemas.base import CamelModel


class ParseRequest(CamelModel):
    """Base64 image (or data URL) handed to the schedule parser."""

    image: constr(min_length=1)


class ParsedCourseRead(CamelModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=200)
    day_of_week: int = Field(ge=1, le=7)
    start_time: constr(strip_whitespace=True, min_length=1)
    end_time: constr(strip_whitespace=True, min_length=1)
    classroom: str = ""
    professor: str = ""
    weeks: str = ""


class ParseResponse(CamelModel):
    courses: list[ParsedCourseRead]
    quota_remaining: int | None = None


class ConfirmRequest(CamelModel):
    user_id: str
    semester: constr(strip_whitespace=True, min_length=1, max_length=20)
    school: constr(strip_whitespace=True, min_length=1, max_length=100)
    courses: list[ParsedCourseRead] = Field(min_length=1)


class ConfirmedRoom(CamelModel):
    id: int
    course_name: str
    day_of_week: int
    start_time: str
    end_time: str
    member_count: int


class ConfirmResponse(CamelModel):
    created: int
    joined: int
    rooms: list[ConfirmedRoom]
