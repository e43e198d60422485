"""Unit tests for the contact request state machine."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from app.core.errors import NotFound, ValidationError
from app.models import (
    Connection,
    ContactRequest,
    ContactRequestStatus,
    Notification,
    NotificationType,
)
from app.services import contacts

T0 = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


@pytest.fixture()
def pair(make_user):
    make_user("xavier", nickname="Xavier", wechat="xav_wx")
    make_user("yara", nickname="Yara", wechat="yara_wx", qq="123456")
    return "xavier", "yara"


def _reject(db_session, requester: str, target: str, at: datetime) -> ContactRequest:
    request = contacts.send_request(db_session, requester, target, now=at)
    return contacts.respond(db_session, request.id, target, False, now=at)


def test_accepting_request_connects_both_users(db_session, pair):
    x, y = pair
    assert contacts.can_request(db_session, x, y, T0) is True

    request = contacts.send_request(db_session, x, y, message="Hi from lecture", now=T0)
    assert request.status == ContactRequestStatus.PENDING

    accepted = contacts.respond(db_session, request.id, y, True, now=T0)

    assert accepted.status == ContactRequestStatus.ACCEPTED
    assert contacts.are_connected(db_session, x, y)
    assert contacts.are_connected(db_session, y, x)
    connection = db_session.execute(select(Connection)).scalar_one()
    assert (connection.user_id_1, connection.user_id_2) == ("xavier", "yara")


def test_request_and_response_emit_notifications(db_session, pair):
    x, y = pair
    request = contacts.send_request(db_session, x, y, now=T0)
    contacts.respond(db_session, request.id, y, True, now=T0)

    rows = db_session.execute(select(Notification).order_by(Notification.id)).scalars().all()

    assert [(row.user_id, row.type) for row in rows] == [
        (y, NotificationType.CONTACT_REQUEST),
        (x, NotificationType.CONTACT_ACCEPTED),
    ]
    assert rows[0].data == {"request_id": request.id, "requester_id": x, "room_id": None}
    assert rows[1].data == {"request_id": request.id, "target_id": y}


def test_rejection_blocks_until_cooldown_passes(db_session, pair):
    x, y = pair
    _reject(db_session, x, y, T0)

    assert contacts.can_request(db_session, x, y, T0) is False
    with pytest.raises(ValidationError):
        contacts.send_request(db_session, x, y, now=T0 + timedelta(minutes=30))

    later = T0 + timedelta(minutes=61)
    assert contacts.can_request(db_session, x, y, later) is True
    fresh = contacts.send_request(db_session, x, y, now=later)

    assert fresh.status == ContactRequestStatus.PENDING
    count = db_session.execute(
        select(func.count(ContactRequest.id)).where(ContactRequest.requester_id == x)
    ).scalar_one()
    assert count == 1


def test_cooldown_boundary(db_session, pair):
    x, y = pair
    _reject(db_session, x, y, T0)

    assert contacts.can_request(db_session, x, y, T0 + timedelta(minutes=59, seconds=59)) is False
    assert contacts.can_request(db_session, x, y, T0 + timedelta(hours=1)) is False
    assert contacts.can_request(db_session, x, y, T0 + timedelta(hours=1, seconds=1)) is True


def test_cooldown_is_configurable(db_session, pair, monkeypatch):
    from app.config import get_settings

    monkeypatch.setattr(get_settings(), "contact_request_cooldown_minutes", 5)
    x, y = pair
    _reject(db_session, x, y, T0)

    assert contacts.can_request(db_session, x, y, T0 + timedelta(minutes=6)) is True


def test_self_request_always_fails(db_session, pair):
    x, _ = pair
    assert contacts.can_request(db_session, x, x, T0) is False
    with pytest.raises(ValidationError):
        contacts.send_request(db_session, x, x, now=T0)


def test_pending_request_cannot_be_duplicated(db_session, pair):
    x, y = pair
    contacts.send_request(db_session, x, y, now=T0)

    assert contacts.can_request(db_session, x, y, T0) is False
    with pytest.raises(ValidationError):
        contacts.send_request(db_session, x, y, now=T0)


def test_racing_duplicate_request_is_rejected_cleanly(db_session, pair, monkeypatch):
    x, y = pair
    first = contacts.send_request(db_session, x, y, now=T0)
    monkeypatch.setattr(contacts, "can_request", lambda *args, **kwargs: True)

    with pytest.raises(ValidationError, match="Either pending"):
        contacts.send_request(db_session, x, y, now=T0)

    rows = db_session.execute(select(ContactRequest)).scalars().all()
    assert [row.id for row in rows] == [first.id]
    assert rows[0].status == ContactRequestStatus.PENDING


def test_connected_users_cannot_request_again(db_session, pair):
    x, y = pair
    request = contacts.send_request(db_session, x, y, now=T0)
    contacts.respond(db_session, request.id, y, True, now=T0)

    assert contacts.can_request(db_session, y, x, T0) is False
    with pytest.raises(ValidationError, match="Already connected"):
        contacts.send_request(db_session, y, x, now=T0)


def test_request_to_unknown_user_is_not_found(db_session, pair):
    x, _ = pair
    with pytest.raises(NotFound):
        contacts.send_request(db_session, x, "ghost", now=T0)


def test_request_message_length_is_limited(db_session, pair):
    x, y = pair
    with pytest.raises(ValidationError):
        contacts.send_request(db_session, x, y, message="a" * 201, now=T0)


def test_only_target_can_respond_once(db_session, pair, make_user):
    x, y = pair
    make_user("zoe")
    request = contacts.send_request(db_session, x, y, now=T0)

    with pytest.raises(NotFound, match="already responded"):
        contacts.respond(db_session, request.id, "zoe", True, now=T0)
    with pytest.raises(NotFound):
        contacts.respond(db_session, request.id, x, True, now=T0)

    contacts.respond(db_session, request.id, y, False, now=T0)
    with pytest.raises(NotFound):
        contacts.respond(db_session, request.id, y, True, now=T0)


def test_accepting_mirror_requests_keeps_single_connection(db_session, pair):
    x, y = pair
    forward = contacts.send_request(db_session, x, y, now=T0)
    backward = contacts.send_request(db_session, y, x, now=T0)

    contacts.respond(db_session, forward.id, y, True, now=T0)
    contacts.respond(db_session, backward.id, x, True, now=T0)

    assert db_session.execute(select(func.count(Connection.id))).scalar_one() == 1


def test_contact_status_reports_pair_state(db_session, pair):
    x, y = pair
    assert contacts.contact_status(db_session, x, y, T0).can_request is True

    request = contacts.send_request(db_session, x, y, now=T0)
    as_sender = contacts.contact_status(db_session, x, y, T0)
    as_target = contacts.contact_status(db_session, y, x, T0)
    assert (as_sender.status, as_sender.is_sender, as_sender.request_id) == ("pending", True, request.id)
    assert (as_target.status, as_target.is_sender) == ("pending", False)

    contacts.respond(db_session, request.id, y, True, now=T0)
    assert contacts.contact_status(db_session, x, y, T0).status == "connected"


def test_list_connections_and_pending(db_session, pair, make_user, make_room):
    x, y = pair
    make_user("zoe", nickname="Zoe")
    room = make_room()

    accepted = contacts.send_request(db_session, x, y, room_id=room.id, now=T0)
    contacts.respond(db_session, accepted.id, y, True, now=T0)
    contacts.send_request(db_session, "zoe", x, room_id=room.id, message="hey", now=T0)

    connections = contacts.list_connections(db_session, x)
    assert len(connections) == 1
    assert connections[0].friend.id == y
    assert connections[0].friend.qq == "123456"
    assert connections[0].room_name == "Data Structures"

    pending = contacts.list_pending(db_session, x)
    assert [request.requester.nickname for request in pending] == ["Zoe"]
    assert pending[0].room.course.name == "Data Structures"
    assert contacts.list_pending(db_session, y) == []
