"""Room resolution and membership bookkeeping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.timetable import normalize_time, validate_day_of_week
from app.models import Course, NotificationType, Room, RoomMember, RoomPrivacySetting, User
from app.monitoring.metrics import room_joins_total, rooms_created_total
from app.services.notifications import notify

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RoomKey:
    """Natural key of a room; empty optional fields are stored as ``""``."""

    course_name: str
    school: str
    semester: str
    day_of_week: int
    start_time: str
    end_time: str
    instructor: str = ""
    location: str = ""
    weeks: str = ""
    course_code: str | None = None


@dataclass(slots=True)
class JoinResult:
    created: bool
    room: Room


def _clean(value: str | None) -> str:
    return (value or "").strip()


def normalize_key(key: RoomKey) -> RoomKey:
    """Validate and canonicalize every component of ``key``."""

    course_name = _clean(key.course_name)
    school = _clean(key.school)
    semester = _clean(key.semester)
    if not course_name:
        raise ValidationError("Course name is required")
    if not school:
        raise ValidationError("School is required")
    if not semester:
        raise ValidationError("Semester is required")
    return RoomKey(
        course_name=course_name,
        school=school,
        semester=semester,
        day_of_week=validate_day_of_week(key.day_of_week),
        start_time=normalize_time(key.start_time),
        end_time=normalize_time(key.end_time),
        instructor=_clean(key.instructor),
        location=_clean(key.location),
        weeks=_clean(key.weeks),
        course_code=_clean(key.course_code) or None,
    )


def _find_course(db: Session, name: str, school: str, *, lock: bool = False) -> Course | None:
    stmt = select(Course).where(Course.name == name, Course.school == school)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def ensure_course(db: Session, name: str, school: str, code: str | None = None) -> Course:
    """Return the course for ``(name, school)``, creating it on first sight."""

    attempts = get_settings().room_resolve_max_attempts
    lost_race = False
    for _ in range(attempts):
        course = _find_course(db, name, school, lock=lost_race)
        if course is not None:
            if code and not course.code:
                course.code = code
            return course
        try:
            with db.begin_nested():
                course = Course(name=name, school=school, code=code)
                db.add(course)
                db.flush()
            return course
        except IntegrityError:
            logger.info("Course %r at %r created concurrently, refetching", name, school)
            lost_race = True
    raise Conflict()


def _find_room(db: Session, course_id: int, key: RoomKey, *, lock: bool = False) -> Room | None:
    stmt = select(Room).where(
        Room.course_id == course_id,
        Room.semester == key.semester,
        Room.day_of_week == key.day_of_week,
        Room.start_time == key.start_time,
        Room.end_time == key.end_time,
        Room.instructor == key.instructor,
        Room.location == key.location,
        Room.weeks == key.weeks,
    )
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def resolve_room(db: Session, key: RoomKey) -> Room:
    """Find or create the room identified by ``key``; the caller owns the commit."""

    room, _ = resolve_room_with_status(db, key)
    return room


def resolve_room_with_status(db: Session, key: RoomKey) -> tuple[Room, bool]:
    """Like :func:`resolve_room`, also reporting whether the room was created.

    Inserts run in savepoints backed by the unique constraints. Losing a
    race re-runs the lookup as a locking read, which sees the winner's
    committed row even under REPEATABLE READ snapshots.
    """

    key = normalize_key(key)
    course = ensure_course(db, key.course_name, key.school, key.course_code)

    attempts = get_settings().room_resolve_max_attempts
    lost_race = False
    for attempt in range(1, attempts + 1):
        room = _find_room(db, course.id, key, lock=lost_race)
        if room is not None:
            return room, False
        try:
            with db.begin_nested():
                room = Room(
                    course_id=course.id,
                    semester=key.semester,
                    day_of_week=key.day_of_week,
                    start_time=key.start_time,
                    end_time=key.end_time,
                    instructor=key.instructor,
                    location=key.location,
                    weeks=key.weeks,
                    member_count=0,
                )
                db.add(room)
                db.flush()
        except IntegrityError:
            logger.info("Room insert for course %s lost a race (attempt %d)", course.id, attempt)
            lost_race = True
            continue
        rooms_created_total.inc()
        return room, True

    logger.error("Unable to resolve room for course %s after %d attempts", course.id, attempts)
    raise Conflict()


def get_room(db: Session, room_id: int) -> Room:
    stmt = select(Room).where(Room.id == room_id).options(selectinload(Room.course))
    room = db.execute(stmt).scalar_one_or_none()
    if room is None:
        raise NotFound("Room not found")
    return room


def get_membership(db: Session, room_id: int, user_id: str) -> RoomMember | None:
    stmt = select(RoomMember).where(RoomMember.room_id == room_id, RoomMember.user_id == user_id)
    return db.execute(stmt).scalar_one_or_none()


def _notify_new_member(db: Session, room_id: int, user_id: str) -> None:
    try:
        others = db.execute(
            select(RoomMember.user_id).where(
                RoomMember.room_id == room_id, RoomMember.user_id != user_id
            )
        ).scalars().all()
        if not others:
            return
        nickname = db.execute(select(User.nickname).where(User.id == user_id)).scalar_one_or_none()
        course_name = db.execute(
            select(Course.name).join(Room, Room.course_id == Course.id).where(Room.id == room_id)
        ).scalar_one_or_none()
        written = notify(
            db,
            others,
            NotificationType.NEW_MEMBER,
            title="New classmate",
            content=f"{nickname or 'Someone'} joined {course_name or 'your class'}",
            data={"room_id": room_id, "user_id": user_id},
        )
        if written:
            db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("New member fan-out failed for room %s", room_id)


def join_room(db: Session, user_id: str, room_id: int) -> JoinResult:
    """Add ``user_id`` to the room exactly once and notify the other members."""

    room = db.get(Room, room_id)
    if room is None:
        raise NotFound("Room not found")

    if get_membership(db, room_id, user_id) is not None:
        room_joins_total.inc(outcome="existing")
        return JoinResult(created=False, room=room)

    created = True
    try:
        with db.begin_nested():
            db.add(RoomMember(room_id=room_id, user_id=user_id))
            db.flush()
    except IntegrityError:
        created = False
    db.commit()

    room_joins_total.inc(outcome="created" if created else "existing")
    if created:
        logger.info("User %s joined room %s", user_id, room_id)
        _notify_new_member(db, room_id, user_id)
    return JoinResult(created=created, room=room)


def leave_room(db: Session, user_id: str, room_id: int) -> bool:
    membership = get_membership(db, room_id, user_id)
    if membership is None:
        return False
    db.delete(membership)
    db.commit()
    logger.info("User %s left room %s", user_id, room_id)
    return True


def list_user_rooms(db: Session, user_id: str) -> list[tuple[Room, datetime]]:
    """Rooms the user belongs to with their join time, newest join first."""

    stmt = (
        select(Room, RoomMember.joined_at)
        .join(RoomMember, RoomMember.room_id == Room.id)
        .where(RoomMember.user_id == user_id)
        .options(selectinload(Room.course))
        .order_by(RoomMember.joined_at.desc(), RoomMember.id.desc())
    )
    return [(room, joined_at) for room, joined_at in db.execute(stmt).all()]


def other_sections(db: Session, room: Room) -> Sequence[Room]:
    stmt = (
        select(Room)
        .where(
            Room.course_id == room.course_id,
            Room.semester == room.semester,
            Room.id != room.id,
        )
        .order_by(Room.day_of_week, Room.start_time, Room.id)
    )
    return db.execute(stmt).scalars().all()


def get_privacy(
    db: Session, user_id: str, room_id: int, *, lock: bool = False
) -> RoomPrivacySetting | None:
    stmt = select(RoomPrivacySetting).where(
        RoomPrivacySetting.user_id == user_id,
        RoomPrivacySetting.room_id == room_id,
    )
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def set_privacy(db: Session, user_id: str, room_id: int, is_public: bool) -> RoomPrivacySetting:
    """Upsert the user's contact sharing choice for one room."""

    if db.get(Room, room_id) is None:
        raise NotFound("Room not found")

    setting = get_privacy(db, user_id, room_id)
    if setting is None:
        try:
            with db.begin_nested():
                setting = RoomPrivacySetting(user_id=user_id, room_id=room_id, is_public=is_public)
                db.add(setting)
                db.flush()
        except IntegrityError:
            setting = get_privacy(db, user_id, room_id, lock=True)
            if setting is None:
                raise Conflict() from None
    setting.is_public = is_public
    db.commit()
    db.refresh(setting)
    return setting
