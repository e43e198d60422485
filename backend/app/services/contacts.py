"""Contact request state machine and the connection graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.errors import NotFound, ValidationError
from app.core.timetable import as_utc, utcnow
from app.models import (
    Connection,
    ContactRequest,
    ContactRequestStatus,
    NotificationType,
    Room,
    User,
)
from app.monitoring.metrics import contact_requests_total
from app.services.notifications import notify

logger = logging.getLogger(__name__)

REQUEST_BLOCKED_DETAIL = "Cannot send request. Either pending or need to wait after rejection."


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a < b else (b, a)


def cooldown() -> timedelta:
    return timedelta(minutes=get_settings().contact_request_cooldown_minutes)


def cooldown_elapsed(responded_at: datetime | None, now: datetime) -> bool:
    """A rejection stops blocking once the cooldown has strictly passed."""

    if responded_at is None:
        return True
    return as_utc(responded_at) + cooldown() < as_utc(now)


def are_connected(db: Session, a: str, b: str) -> bool:
    if a == b:
        return False
    first, second = canonical_pair(a, b)
    stmt = select(Connection.id).where(Connection.user_id_1 == first, Connection.user_id_2 == second)
    return db.execute(stmt).first() is not None


def _request_row(db: Session, requester_id: str, target_id: str) -> ContactRequest | None:
    stmt = select(ContactRequest).where(
        ContactRequest.requester_id == requester_id,
        ContactRequest.target_id == target_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def can_request(db: Session, requester_id: str, target_id: str, now: datetime | None = None) -> bool:
    """Whether ``requester_id`` may send a fresh request to ``target_id``."""

    if requester_id == target_id:
        return False
    if are_connected(db, requester_id, target_id):
        return False
    existing = _request_row(db, requester_id, target_id)
    if existing is None:
        return True
    if existing.status == ContactRequestStatus.REJECTED:
        return cooldown_elapsed(existing.responded_at, now or utcnow())
    return False


def send_request(
    db: Session,
    requester_id: str,
    target_id: str,
    *,
    room_id: int | None = None,
    message: str | None = None,
    now: datetime | None = None,
) -> ContactRequest:
    """Create a pending request, replacing a stale rejected one."""

    if requester_id == target_id:
        raise ValidationError("Cannot request your own contact")

    message = (message or "").strip() or None
    max_length = get_settings().contact_message_max_length
    if message is not None and len(message) > max_length:
        raise ValidationError(f"Message must be at most {max_length} characters")

    target = db.get(User, target_id)
    if target is None:
        raise NotFound("User not found")
    room = None
    if room_id is not None:
        room = db.get(Room, room_id)
        if room is None:
            raise NotFound("Room not found")

    if are_connected(db, requester_id, target_id):
        raise ValidationError("Already connected")
    if not can_request(db, requester_id, target_id, now):
        raise ValidationError(REQUEST_BLOCKED_DETAIL)

    db.execute(
        delete(ContactRequest).where(
            ContactRequest.requester_id == requester_id,
            ContactRequest.target_id == target_id,
            ContactRequest.status != ContactRequestStatus.PENDING,
        )
    )
    request = ContactRequest(
        requester_id=requester_id,
        target_id=target_id,
        room_id=room_id,
        status=ContactRequestStatus.PENDING,
        message=message,
    )
    try:
        with db.begin_nested():
            db.add(request)
            db.flush()
    except IntegrityError:
        db.rollback()
        logger.info("Duplicate contact request %s -> %s raced in", requester_id, target_id)
        raise ValidationError(REQUEST_BLOCKED_DETAIL) from None

    requester = db.get(User, requester_id)
    room_name = room.course.name if room is not None else None
    from_room = f' from "{room_name}"' if room_name else ""
    notify(
        db,
        [target_id],
        NotificationType.CONTACT_REQUEST,
        title="New contact request",
        content=f"{requester.nickname if requester else 'A classmate'}{from_room} wants to see your contact info",
        data={"request_id": request.id, "requester_id": requester_id, "room_id": room_id},
    )
    db.commit()
    db.refresh(request)

    contact_requests_total.inc(action="sent")
    logger.info("Contact request %s sent from %s to %s", request.id, requester_id, target_id)
    return request


def respond(
    db: Session,
    request_id: int,
    responder_id: str,
    accept: bool,
    now: datetime | None = None,
) -> ContactRequest:
    """Accept or reject a pending request addressed to ``responder_id``."""

    stmt = select(ContactRequest).where(
        ContactRequest.id == request_id,
        ContactRequest.target_id == responder_id,
        ContactRequest.status == ContactRequestStatus.PENDING,
    )
    request = db.execute(stmt).scalar_one_or_none()
    if request is None:
        raise NotFound("Request not found or already responded")

    request.status = ContactRequestStatus.ACCEPTED if accept else ContactRequestStatus.REJECTED
    request.responded_at = now or utcnow()
    db.flush()

    if accept:
        first, second = canonical_pair(request.requester_id, request.target_id)
        try:
            with db.begin_nested():
                db.add(Connection(user_id_1=first, user_id_2=second, room_id=request.room_id))
                db.flush()
        except IntegrityError:
            logger.info("Connection %s/%s already exists", first, second)

    responder = db.get(User, responder_id)
    nickname = responder.nickname if responder else "A classmate"
    if accept:
        title = "Contact request accepted!"
        content = f"{nickname} accepted your request. You can now see each other's contact info."
    else:
        title = "Contact request declined"
        content = f"{nickname} declined your request. You can try again later."
    notify(
        db,
        [request.requester_id],
        NotificationType.CONTACT_ACCEPTED if accept else NotificationType.CONTACT_REJECTED,
        title=title,
        content=content,
        data={"request_id": request.id, "target_id": responder_id},
    )
    db.commit()
    db.refresh(request)

    contact_requests_total.inc(action="accepted" if accept else "rejected")
    return request


@dataclass(slots=True)
class ConnectionEntry:
    connection: Connection
    friend: User
    room_name: str | None


def list_connections(db: Session, user_id: str) -> list[ConnectionEntry]:
    stmt = (
        select(Connection)
        .where(or_(Connection.user_id_1 == user_id, Connection.user_id_2 == user_id))
        .options(selectinload(Connection.room).selectinload(Room.course))
        .order_by(Connection.created_at.desc(), Connection.id.desc())
    )
    connections = db.execute(stmt).scalars().all()
    if not connections:
        return []

    friend_ids = {connection.other(user_id) for connection in connections}
    friends = {
        user.id: user
        for user in db.execute(select(User).where(User.id.in_(friend_ids))).scalars()
    }
    entries = []
    for connection in connections:
        friend = friends.get(connection.other(user_id))
        if friend is None:
            continue
        room_name = connection.room.course.name if connection.room is not None else None
        entries.append(ConnectionEntry(connection=connection, friend=friend, room_name=room_name))
    return entries


def list_pending(db: Session, user_id: str) -> Sequence[ContactRequest]:
    """Incoming pending requests, newest first, with requester and room loaded."""

    stmt = (
        select(ContactRequest)
        .where(
            ContactRequest.target_id == user_id,
            ContactRequest.status == ContactRequestStatus.PENDING,
        )
        .options(
            selectinload(ContactRequest.requester),
            selectinload(ContactRequest.room).selectinload(Room.course),
        )
        .order_by(ContactRequest.created_at.desc(), ContactRequest.id.desc())
    )
    return db.execute(stmt).scalars().all()


@dataclass(slots=True)
class PairStatus:
    status: str
    is_sender: bool | None = None
    request_id: int | None = None
    can_request: bool | None = None


def contact_status(
    db: Session, user_id: str, target_id: str, now: datetime | None = None
) -> PairStatus:
    if are_connected(db, user_id, target_id):
        return PairStatus(status="connected")

    stmt = select(ContactRequest).where(
        ContactRequest.status == ContactRequestStatus.PENDING,
        or_(
            and_(ContactRequest.requester_id == user_id, ContactRequest.target_id == target_id),
            and_(ContactRequest.requester_id == target_id, ContactRequest.target_id == user_id),
        ),
    ).order_by(ContactRequest.created_at.desc())
    pending = db.execute(stmt).scalars().first()
    if pending is not None:
        return PairStatus(
            status="pending",
            is_sender=pending.requester_id == user_id,
            request_id=pending.id,
        )
    return PairStatus(status="none", can_request=can_request(db, user_id, target_id, now))
