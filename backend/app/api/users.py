"""User profile and notification inbox endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import ensure_self, get_current_user
from app.database import get_db
from app.models import Notification, User
from app.schemas import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationList,
    NotificationRead,
    QuotaRead,
    UserProfileRead,
    UserProfileUpdate,
)
from app.services import notifications
from app.services.quota import quota_snapshot

router = APIRouter(prefix="/users", tags=["users"])


def _serialize_profile(user: User) -> UserProfileRead:
    return UserProfileRead(
        id=user.id,
        email=user.email,
        nickname=user.nickname,
        avatar_url=user.avatar_url,
        wechat=user.wechat,
        qq=user.qq,
        school=user.school,
        is_privileged=user.is_privileged,
        auto_share_contact=user.auto_share_contact,
        quota=QuotaRead.model_validate(quota_snapshot(user)),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("/{user_id}", response_model=UserProfileRead)
def read_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> UserProfileRead:
    ensure_self(current_user, user_id)
    return _serialize_profile(current_user)


@router.patch("/{user_id}", response_model=UserProfileRead)
def update_profile(
    user_id: str,
    payload: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserProfileRead:
    """Apply the provided fields; empty contact handles clear the stored value."""

    ensure_self(current_user, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("nickname") is None:
        changes.pop("nickname", None)
    if changes.get("auto_share_contact") is None:
        changes.pop("auto_share_contact", None)
    for field in ("wechat", "qq", "school", "avatar_url"):
        if field in changes and not changes[field]:
            changes[field] = None

    for field, value in changes.items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return _serialize_profile(current_user)


@router.get("/{user_id}/notifications", response_model=NotificationList)
def list_notifications(
    user_id: str,
    unread: bool = Query(default=False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationList:
    ensure_self(current_user, user_id)
    items = notifications.list_notifications(db, user_id, unread_only=unread)
    unread_count = db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
    ).scalar_one()
    return NotificationList(
        notifications=[NotificationRead.model_validate(item) for item in items],
        unread_count=unread_count,
    )


@router.post("/{user_id}/notifications/read", response_model=MarkReadResponse)
def mark_notifications_read(
    user_id: str,
    payload: MarkReadRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MarkReadResponse:
    ensure_self(current_user, user_id)
    updated = notifications.mark_read(db, user_id, payload.notification_ids)
    return MarkReadResponse(updated=updated)


@router.post("/{user_id}/notifications/read-all", response_model=MarkReadResponse)
def mark_all_notifications_read(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MarkReadResponse:
    ensure_self(current_user, user_id)
    return MarkReadResponse(updated=notifications.mark_all_read(db, user_id))


@router.post("/{user_id}/notifications/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    user_id: str,
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationRead:
    ensure_self(current_user, user_id)
    notification = notifications.mark_one_read(db, user_id, notification_id)
    return NotificationRead.model_validate(notification)
