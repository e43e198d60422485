"""Schemas related to user profiles and notifications."""

from datetime import datetime
from typing import Any

from pydantic import Field, constr

from app.models.enums import NotificationType
from app.schemas.base import CamelModel


class PublicProfile(CamelModel):
    """Minimal public-facing user information."""

    id: str
    nickname: str
    avatar_url: str | None = None
    school: str | None = None


class QuotaRead(CamelModel):
    unlimited: bool
    remaining: int | None = None
    reset_at: datetime | None = None
    daily_allowance: int


class UserProfileRead(CamelModel):
    """Full profile of the authenticated user."""

    id: str
    email: str | None = None
    nickname: str
    avatar_url: str | None = None
    wechat: str | None = None
    qq: str | None = None
    school: str | None = None
    is_privileged: bool
    auto_share_contact: bool
    quota: QuotaRead
    created_at: datetime
    updated_at: datetime


class UserProfileUpdate(CamelModel):
    """Partial profile update; omitted fields are left untouched."""

    nickname: constr(strip_whitespace=True, min_length=1, max_length=50) | None = None
    wechat: constr(strip_whitespace=True, max_length=50) | None = None
    qq: constr(strip_whitespace=True, max_length=20) | None = None
    school: constr(strip_whitespace=True, max_length=100) | None = None
    avatar_url: str | None = Field(default=None, max_length=2048)
    auto_share_contact: bool | None = None


class NotificationRead(CamelModel):
    id: int
    type: NotificationType
    title: str | None = None
    content: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime


class NotificationList(CamelModel):
    notifications: list[NotificationRead]
    unread_count: int


class MarkReadRequest(CamelModel):
    """Ids to mark as read; ``null`` marks every notification."""

    notification_ids: list[int] | None = None


class MarkReadResponse(CamelModel):
    updated: int
