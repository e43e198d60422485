"""Database models package."""

from .base import Base
from .campus import (
    CatalogSection,
    Connection,
    ContactRequest,
    Course,
    Notification,
    Room,
    RoomMember,
    RoomPrivacySetting,
    User,
)
from .enums import ContactRequestStatus, ContactVisibility, NotificationType

__all__ = [
    "Base",
    "User",
    "Course",
    "Room",
    "RoomMember",
    "RoomPrivacySetting",
    "ContactRequest",
    "Connection",
    "Notification",
    "CatalogSection",
    "ContactRequestStatus",
    "ContactVisibility",
    "NotificationType",
]
