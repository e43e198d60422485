"""Pydantic schemas for API payloads."""

from .base import CamelModel
from .catalog import SectionRead, SemesterRead, SemestersRead
from .contacts import (
    ConnectionRead,
    ContactRequestCreate,
    ContactRequestRead,
    ContactRespond,
    ContactStatusRead,
    FriendProfile,
    PendingRequestRead,
)
from .rooms import (
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
from .schedule import (
    ConfirmedRoom,
    ConfirmRequest,
    ConfirmResponse,
    ParsedCourseRead,
    ParseRequest,
    ParseResponse,
)
from .users import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationList,
    NotificationRead,
    PublicProfile,
    QuotaRead,
    UserProfileRead,
    UserProfileUpdate,
)

__all__ = [
    "CamelModel",
    "SectionRead",
    "SemesterRead",
    "SemestersRead",
    "ConnectionRead",
    "ContactRequestCreate",
    "ContactRequestRead",
    "ContactRespond",
    "ContactStatusRead",
    "FriendProfile",
    "PendingRequestRead",
    "JoinRoomRequest",
    "JoinRoomResponse",
    "MemberRead",
    "OtherSectionRead",
    "PrivacyRead",
    "PrivacyUpdate",
    "RoomDetail",
    "RoomRead",
    "UserRoomRead",
    "ConfirmedRoom",
    "ConfirmRequest",
    "ConfirmResponse",
    "ParsedCourseRead",
    "ParseRequest",
    "ParseResponse",
    "MarkReadRequest",
    "MarkReadResponse",
    "NotificationList",
    "NotificationRead",
    "PublicProfile",
    "QuotaRead",
    "UserProfileRead",
    "UserProfileUpdate",
]
