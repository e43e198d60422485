"""Per-member contact visibility inside a room."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.timetable import utcnow
from app.models import (
    Connection,
    ContactRequest,
    ContactRequestStatus,
    ContactVisibility,
    RoomMember,
    RoomPrivacySetting,
    User,
)
from app.services.contacts import cooldown_elapsed


@dataclass(slots=True)
class MemberView:
    id: str
    nickname: str
    avatar: str | None
    wechat: str | None
    qq: str | None
    joined_at: datetime
    contact_status: ContactVisibility
    is_connected: bool


def _viewer_connections(db: Session, viewer_id: str) -> set[str]:
    stmt = select(Connection.user_id_1, Connection.user_id_2).where(
        or_(Connection.user_id_1 == viewer_id, Connection.user_id_2 == viewer_id)
    )
    return {second if first == viewer_id else first for first, second in db.execute(stmt)}


def _viewer_request_states(
    db: Session, viewer_id: str, member_ids: list[str], now: datetime
) -> dict[str, ContactVisibility]:
    stmt = select(
        ContactRequest.target_id, ContactRequest.status, ContactRequest.responded_at
    ).where(
        ContactRequest.requester_id == viewer_id,
        ContactRequest.target_id.in_(member_ids),
    )
    states: dict[str, ContactVisibility] = {}
    for target_id, status, responded_at in db.execute(stmt):
        if status == ContactRequestStatus.PENDING:
            states[target_id] = ContactVisibility.PENDING
        elif status == ContactRequestStatus.REJECTED and not cooldown_elapsed(responded_at, now):
            states[target_id] = ContactVisibility.REJECTED
    return states


def resolve_members(
    db: Session,
    room_id: int,
    viewer_id: str | None = None,
    now: datetime | None = None,
) -> list[MemberView]:
    """Return every member of the room as seen by ``viewer_id``.

    Contact details are exposed when the member is the viewer, is connected
    to the viewer, shares contacts globally, or opted in for this room.
    Otherwise wechat and qq are withheld and ``contact_status`` reflects the
    viewer's outstanding request, if any.
    """

    now = now or utcnow()
    rows = db.execute(
        select(User, RoomMember.joined_at)
        .join(RoomMember, RoomMember.user_id == User.id)
        .where(RoomMember.room_id == room_id)
        .order_by(RoomMember.joined_at.asc(), RoomMember.id.asc())
    ).all()
    if not rows:
        return []

    member_ids = [user.id for user, _ in rows]
    public_in_room = set(
        db.execute(
            select(RoomPrivacySetting.user_id).where(
                RoomPrivacySetting.room_id == room_id,
                RoomPrivacySetting.is_public.is_(True),
            )
        ).scalars()
    )
    connected: set[str] = set()
    requests: dict[str, ContactVisibility] = {}
    if viewer_id:
        connected = _viewer_connections(db, viewer_id)
        requests = _viewer_request_states(db, viewer_id, member_ids, now)

    views = []
    for user, joined_at in rows:
        is_connected = user.id in connected
        can_see = (
            user.id == viewer_id
            or is_connected
            or user.auto_share_contact
            or user.id in public_in_room
        )
        if can_see:
            status = ContactVisibility.VISIBLE
        else:
            status = requests.get(user.id, ContactVisibility.HIDDEN)
        views.append(
            MemberView(
                id=user.id,
                nickname=user.nickname,
                avatar=user.avatar_url,
                wechat=user.wechat if can_see else None,
                qq=user.qq if can_see else None,
                joined_at=joined_at,
                contact_status=status,
                is_connected=is_connected,
            )
        )
    return views
