"""Contact request and connection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import ensure_self, get_current_user
from app.database import get_db
from app.models import User
from app.schemas import (
    ConnectionRead,
    ContactRequestCreate,
    ContactRequestRead,
    ContactRespond,
    ContactStatusRead,
    FriendProfile,
    PendingRequestRead,
    PublicProfile,
)
from app.services import contacts

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.post("/request", response_model=ContactRequestRead, status_code=status.HTTP_201_CREATED)
def request_contact(
    payload: ContactRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ContactRequestRead:
    ensure_self(current_user, payload.requester_id)
    request = contacts.send_request(
        db,
        current_user.id,
        payload.target_id,
        room_id=payload.room_id,
        message=payload.message,
    )
    return ContactRequestRead.model_validate(request)


@router.post("/respond", response_model=ContactRequestRead)
def respond_to_request(
    payload: ContactRespond,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ContactRequestRead:
    ensure_self(current_user, payload.user_id)
    request = contacts.respond(db, payload.request_id, current_user.id, payload.accept)
    return ContactRequestRead.model_validate(request)


@router.get("/connections/{user_id}", response_model=list[ConnectionRead])
def list_connections(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ConnectionRead]:
    ensure_self(current_user, user_id)
    return [
        ConnectionRead(
            id=entry.connection.id,
            friend=FriendProfile.model_validate(entry.friend),
            room_id=entry.connection.room_id,
            room_name=entry.room_name,
            connected_at=entry.connection.created_at,
        )
        for entry in contacts.list_connections(db, user_id)
    ]


@router.get("/pending/{user_id}", response_model=list[PendingRequestRead])
def list_pending_requests(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PendingRequestRead]:
    ensure_self(current_user, user_id)
    return [
        PendingRequestRead(
            id=request.id,
            requester=PublicProfile.model_validate(request.requester),
            room_id=request.room_id,
            room_name=request.room.course.name if request.room is not None else None,
            message=request.message,
            created_at=request.created_at,
        )
        for request in contacts.list_pending(db, user_id)
    ]


@router.get(
    "/status/{user_id}/{target_id}",
    response_model=ContactStatusRead,
    response_model_exclude_none=True,
)
def get_contact_status(
    user_id: str,
    target_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ContactStatusRead:
    ensure_self(current_user, user_id)
    pair = contacts.contact_status(db, user_id, target_id)
    return ContactStatusRead.model_validate(pair)
