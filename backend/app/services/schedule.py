"""Schedule import: untrusted parser output in, rooms and memberships out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol, Sequence

from sqlalchemy.orm import Session

from app.core.errors import ServiceError, UpstreamFailure, ValidationError
from app.core.timetable import normalize_time
from app.models import Room
from app.services.rooms import RoomKey, join_room, resolve_room_with_status

logger = logging.getLogger(__name__)


class ScheduleParser(Protocol):
    """External collaborator that extracts course rows from a schedule image."""

    def parse(self, image: str) -> list[dict[str, Any]]:
        """Return raw rows with name, day, start/end time, classroom, professor and weeks."""


class UnconfiguredScheduleParser:
    """Placeholder used until a deployment wires in a vision provider."""

    def parse(self, image: str) -> list[dict[str, Any]]:
        raise UpstreamFailure("Schedule parser is not configured")


@dataclass(slots=True)
class ParsedCourse:
    name: str
    day_of_week: int
    start_time: str
    end_time: str
    classroom: str = ""
    professor: str = ""
    weeks: str = ""


def _pick(row: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = row.get(name)
        if value is not None:
            return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _day(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        day = value
    elif isinstance(value, str) and value.strip().isdigit():
        day = int(value.strip())
    else:
        return None
    return day if 1 <= day <= 7 else None


def clean_parsed_course(row: Any) -> ParsedCourse | None:
    """Validate one parser row; ``None`` when it cannot become a room."""

    if not isinstance(row, Mapping):
        return None
    name = _text(row.get("name"))
    day = _day(_pick(row, "day", "dayOfWeek", "day_of_week"))
    start = _text(_pick(row, "startTime", "start_time"))
    end = _text(_pick(row, "endTime", "end_time"))
    if not name or day is None or not start or not end:
        return None
    try:
        start, end = normalize_time(start), normalize_time(end)
    except ValidationError:
        return None
    return ParsedCourse(
        name=name,
        day_of_week=day,
        start_time=start,
        end_time=end,
        classroom=_text(row.get("classroom")),
        professor=_text(row.get("professor")),
        weeks=_text(row.get("weeks")),
    )


def clean_parsed_courses(rows: Iterable[Any] | None) -> list[ParsedCourse]:
    rows = list(rows or [])
    cleaned = [course for course in map(clean_parsed_course, rows) if course is not None]
    dropped = len(rows) - len(cleaned)
    if dropped:
        logger.warning("Dropped %d malformed course rows from parser output", dropped)
    return cleaned


def parse_schedule(parser: ScheduleParser, image: str) -> list[ParsedCourse]:
    """Run the parser and clean its output.

    Quota is consumed by the caller before this runs.
    """

    if not image or not image.strip():
        raise ValidationError("Image is required")
    try:
        rows = parser.parse(image)
    except ServiceError:
        raise
    except Exception as exc:
        logger.exception("Schedule parser failed")
        raise UpstreamFailure("Failed to parse schedule") from exc

    courses = clean_parsed_courses(rows)
    if not courses:
        raise ValidationError("No courses found in the image")
    return courses


@dataclass(slots=True)
class ConfirmResult:
    created: int = 0
    joined: int = 0
    rooms: list[tuple[Room, ParsedCourse]] = field(default_factory=list)


def confirm_schedule(
    db: Session,
    user_id: str,
    semester: str,
    school: str,
    courses: Sequence[ParsedCourse],
) -> ConfirmResult:
    """Resolve and join a room per course; each join commits on its own.

    ``created`` counts rooms materialized by this call and ``joined`` counts
    new memberships, so a retried import reports zeros for what it already did.
    """

    result = ConfirmResult()
    for course in courses:
        key = RoomKey(
            course_name=course.name,
            school=school,
            semester=semester,
            day_of_week=course.day_of_week,
            start_time=course.start_time,
            end_time=course.end_time,
            instructor=course.professor,
            location=course.classroom,
            weeks=course.weeks,
        )
        room, room_created = resolve_room_with_status(db, key)
        joined = join_room(db, user_id, room.id)
        result.created += int(room_created)
        result.joined += int(joined.created)
        result.rooms.append((joined.room, course))
    logger.info(
        "Schedule confirmed for %s: %d rooms created, %d joined",
        user_id,
        result.created,
        result.joined,
    )
    return result
