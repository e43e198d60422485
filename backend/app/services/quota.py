"""Daily allowance for expensive schedule imports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import NotFound, QuotaExceeded
from app.core.timetable import as_utc, next_utc_midnight, utcnow
from app.models import User
from app.monitoring.metrics import quota_rejections_total

logger = logging.getLogger(__name__)


def _window_expired(reset_at: datetime | None, now: datetime) -> bool:
    return reset_at is None or as_utc(reset_at) <= as_utc(now)


def consume_quota(
    db: Session, user_id: str, is_privileged: bool, now: datetime | None = None
) -> int | None:
    """Spend one unit of the user's daily allowance.

    Privileged users bypass the gate and their row is not touched; ``None``
    is returned for them. Otherwise the remaining count is returned.
    Raises ``QuotaExceeded`` when nothing is left for the current window.
    """

    if is_privileged:
        return None

    now = now or utcnow()
    stmt = (
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = db.execute(stmt).scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")

    if _window_expired(user.match_quota_reset_at, now) or user.match_quota_remaining is None:
        user.match_quota_remaining = get_settings().daily_match_quota

    if user.match_quota_remaining <= 0:
        db.rollback()
        quota_rejections_total.inc()
        logger.info("Quota exhausted for user %s", user_id)
        raise QuotaExceeded()

    user.match_quota_remaining -= 1
    user.match_quota_reset_at = next_utc_midnight(now)
    db.commit()
    return user.match_quota_remaining


@dataclass(slots=True)
class QuotaSnapshot:
    unlimited: bool
    remaining: int | None
    reset_at: datetime | None
    daily_allowance: int


def quota_snapshot(user: User, now: datetime | None = None) -> QuotaSnapshot:
    """Describe the user's allowance without writing the lazy reset."""

    allowance = get_settings().daily_match_quota
    if user.is_privileged:
        return QuotaSnapshot(unlimited=True, remaining=None, reset_at=None, daily_allowance=allowance)

    now = now or utcnow()
    if _window_expired(user.match_quota_reset_at, now) or user.match_quota_remaining is None:
        return QuotaSnapshot(unlimited=False, remaining=allowance, reset_at=None, daily_allowance=allowance)
    return QuotaSnapshot(
        unlimited=False,
        remaining=user.match_quota_remaining,
        reset_at=as_utc(user.match_quota_reset_at),
        daily_allowance=allowance,
    )
