"""Schemas for rooms, members and privacy choices."""

from datetime import datetime

from pydantic import Field, constr

from app.models.enums import ContactVisibility
from app.schemas.base import CamelModel


class JoinRoomRequest(CamelModel):
    """Join the room of a catalog section."""

    index: constr(strip_whitespace=True, min_length=1, max_length=10)
    year: int = Field(ge=2000, le=2100)
    term: int


class JoinRoomResponse(CamelModel):
    room_id: int
    created: bool


class RoomRead(CamelModel):
    id: int
    course_name: str
    course_code: str | None = None
    school: str
    semester: str
    day_of_week: int
    start_time: str
    end_time: str
    instructor: str
    location: str
    weeks: str
    member_count: int


class UserRoomRead(RoomRead):
    joined_at: datetime


class MemberRead(CamelModel):
    id: str
    nickname: str
    avatar: str | None = None
    wechat: str | None = None
    qq: str | None = None
    joined_at: datetime
    contact_status: ContactVisibility
    is_connected: bool


class OtherSectionRead(CamelModel):
    id: int
    instructor: str
    day_of_week: int
    start_time: str
    member_count: int


class RoomDetail(CamelModel):
    room: RoomRead
    members: list[MemberRead]
    other_sections: list[OtherSectionRead]


class PrivacyUpdate(CamelModel):
    user_id: str
    is_public: bool


class PrivacyRead(CamelModel):
    has_set: bool
    is_public: bool
