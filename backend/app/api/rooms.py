"""Course room API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import ensure_self, get_current_user
from app.core.errors import Forbidden, NotFound
from app.database import get_db
from app.models import Room, User
from app.schemas import (
    JoinRoomRequest,
    JoinRoomResponse,
    MemberRead,
    OtherSectionRead,
    PrivacyRead,
    PrivacyUpdate,
    RoomDetail,
    RoomRead,
    UserRoomRead,
)
from app.services import catalog, rooms, visibility

router = APIRouter(prefix="/rooms", tags=["rooms"])


def _serialize_room(room: Room) -> RoomRead:
    return RoomRead(
        id=room.id,
        course_name=room.course.name,
        course_code=room.course.code,
        school=room.course.school,
        semester=room.semester,
        day_of_week=room.day_of_week,
        start_time=room.start_time,
        end_time=room.end_time,
        instructor=room.instructor,
        location=room.location,
        weeks=room.weeks,
        member_count=room.member_count,
    )


@router.post("/join", response_model=JoinRoomResponse)
def join_section_room(
    payload: JoinRoomRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> JoinRoomResponse:
    """Join the room of a catalog section, materializing it when needed."""

    section = catalog.find_section(db, payload.index, payload.year, payload.term)
    room = rooms.resolve_room(db, catalog.section_room_key(section))
    result = rooms.join_room(db, current_user.id, room.id)
    return JoinRoomResponse(room_id=result.room.id, created=result.created)


@router.get("/my/{user_id}", response_model=list[UserRoomRead])
def list_my_rooms(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[UserRoomRead]:
    ensure_self(current_user, user_id)
    return [
        UserRoomRead(**_serialize_room(room).model_dump(), joined_at=joined_at)
        for room, joined_at in rooms.list_user_rooms(db, user_id)
    ]


@router.get("/{room_id}", response_model=RoomDetail)
def get_room_detail(
    room_id: int,
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomDetail:
    """Room info, members as seen by the caller, and sibling sections."""

    if user_id is not None and user_id != current_user.id:
        raise Forbidden()

    room = rooms.get_room(db, room_id)
    members = visibility.resolve_members(db, room.id, current_user.id)
    siblings = rooms.other_sections(db, room)
    return RoomDetail(
        room=_serialize_room(room),
        members=[MemberRead.model_validate(member) for member in members],
        other_sections=[OtherSectionRead.model_validate(sibling) for sibling in siblings],
    )


@router.post("/{room_id}/privacy", response_model=PrivacyRead)
def set_room_privacy(
    room_id: int,
    payload: PrivacyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PrivacyRead:
    ensure_self(current_user, payload.user_id)
    setting = rooms.set_privacy(db, current_user.id, room_id, payload.is_public)
    return PrivacyRead(has_set=True, is_public=setting.is_public)


@router.get("/{room_id}/privacy/{user_id}", response_model=PrivacyRead)
def get_room_privacy(
    room_id: int,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PrivacyRead:
    ensure_self(current_user, user_id)
    setting = rooms.get_privacy(db, user_id, room_id)
    if setting is None:
        return PrivacyRead(has_set=False, is_public=False)
    return PrivacyRead(has_set=True, is_public=setting.is_public)


@router.delete(
    "/{room_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def leave_room(
    room_id: int,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    ensure_self(current_user, user_id)
    if not rooms.leave_room(db, user_id, room_id):
        raise NotFound("Membership not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
