"""Schedule import endpoints: parse an image, then confirm the rows."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import ensure_self, get_current_user, get_schedule_parser
from app.database import get_db
from app.models import User
from app.schemas import (
    ConfirmedRoom,
    ConfirmRequest,
    ConfirmResponse,
    ParsedCourseRead,
    ParseRequest,
    ParseResponse,
)
from app.services import schedule
from app.services.quota import consume_quota

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.post("/parse", response_model=ParseResponse)
def parse_schedule(
    payload: ParseRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    parser: schedule.ScheduleParser = Depends(get_schedule_parser),
) -> ParseResponse:
    """Spend one import from the daily quota and extract course rows."""

    remaining = consume_quota(db, current_user.id, current_user.is_privileged)
    courses = schedule.parse_schedule(parser, payload.image)
    return ParseResponse(
        courses=[
            ParsedCourseRead(
                name=course.name,
                day_of_week=course.day_of_week,
                start_time=course.start_time,
                end_time=course.end_time,
                classroom=course.classroom,
                professor=course.professor,
                weeks=course.weeks,
            )
            for course in courses
        ],
        quota_remaining=remaining,
    )


@router.post("/confirm", response_model=ConfirmResponse)
def confirm_schedule(
    payload: ConfirmRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ConfirmResponse:
    ensure_self(current_user, payload.user_id)
    courses = [
        schedule.ParsedCourse(
            name=course.name,
            day_of_week=course.day_of_week,
            start_time=course.start_time,
            end_time=course.end_time,
            classroom=course.classroom,
            professor=course.professor,
            weeks=course.weeks,
        )
        for course in payload.courses
    ]
    result = schedule.confirm_schedule(
        db, current_user.id, payload.semester, payload.school, courses
    )
    return ConfirmResponse(
        created=result.created,
        joined=result.joined,
        rooms=[
            ConfirmedRoom(
                id=room.id,
                course_name=course.name,
                day_of_week=room.day_of_week,
                start_time=room.start_time,
                end_time=room.end_time,
                member_count=room.member_count,
            )
            for room, course in result.rooms
        ],
    )
