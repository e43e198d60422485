"""Schemas for contact requests and connections."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.models.enums import ContactRequestStatus
from app.schemas.base import CamelModel
from app.schemas.users import PublicProfile


class ContactRequestCreate(CamelModel):
    requester_id: str
    target_id: str
    room_id: int | None = None
    message: str | None = None


class ContactRespond(CamelModel):
    request_id: int
    user_id: str
    accept: bool


class ContactRequestRead(CamelModel):
    id: int
    requester_id: str
    target_id: str
    room_id: int | None = None
    status: ContactRequestStatus
    message: str | None = None
    created_at: datetime
    responded_at: datetime | None = None


class FriendProfile(PublicProfile):
    """Profile of a connected user, contact details included."""

    wechat: str | None = None
    qq: str | None = None


class ConnectionRead(CamelModel):
    id: int
    friend: FriendProfile
    room_id: int | None = None
    room_name: str | None = None
    connected_at: datetime


class PendingRequestRead(CamelModel):
    id: int
    requester: PublicProfile
    room_id: int | None = None
    room_name: str | None = None
    message: str | None = None
    created_at: datetime


class ContactStatusRead(CamelModel):
    status: Literal["connected", "pending", "none"]
    is_sender: bool | None = Field(default=None)
    request_id: int | None = None
    can_request: bool | None = None
