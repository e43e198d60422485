"""Polling notifications: best-effort writes and inbox reads."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import NotFound
from app.models import Notification, NotificationType
from app.monitoring.metrics import notification_failures_total

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    user_ids: Iterable[str],
    type_: NotificationType,
    *,
    title: str | None = None,
    content: str | None = None,
    data: dict[str, Any] | None = None,
) -> int:
    """Queue one notification per recipient inside a savepoint.

    Failures are logged and swallowed; the caller's transaction is left
    untouched. Returns the number of rows written.
    """

    recipients = list(dict.fromkeys(user_ids))
    if not recipients:
        return 0
    try:
        with db.begin_nested():
            db.add_all(
                Notification(
                    user_id=user_id,
                    type=type_,
                    title=title,
                    content=content,
                    data=dict(data or {}),
                )
                for user_id in recipients
            )
    except SQLAlchemyError:
        notification_failures_total.inc(type=type_.value)
        logger.exception("Failed to queue %s notifications for %d users", type_.value, len(recipients))
        return 0
    return len(recipients)


def list_notifications(
    db: Session,
    user_id: str,
    *,
    unread_only: bool = False,
    limit: int | None = None,
) -> Sequence[Notification]:
    limit = limit or get_settings().notifications_page_size
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    return db.execute(stmt).scalars().all()


def mark_read(db: Session, user_id: str, notification_ids: Sequence[int] | None = None) -> int:
    """Mark the given notifications (or all of them when ``None``) as read."""

    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    if notification_ids is not None:
        if not notification_ids:
            return 0
        stmt = stmt.where(Notification.id.in_(notification_ids))
    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0


def mark_one_read(db: Session, user_id: str, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise NotFound("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    return mark_read(db, user_id, None)
