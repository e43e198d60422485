"""FastAPI dependencies for the API layer."""

from __future__ import annotations

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, Unauthorized
from app.core.security import Identity, identity_from_token, is_institutional_email
from app.database import get_db
from app.models import User
from app.services.schedule import ScheduleParser, UnconfiguredScheduleParser

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """Resolve the caller from the ``Authorization: Bearer`` header."""

    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing authorization token")
    return identity_from_token(credentials.credentials)


def _default_nickname(identity: Identity) -> str:
    if identity.email:
        local_part = identity.email.split("@", 1)[0].strip()
        if local_part:
            return local_part[:50]
    return f"user-{identity.user_id[:8]}"


def provision_user(db: Session, identity: Identity) -> User:
    """Return the user row for ``identity``, creating it on first sight."""

    privileged = identity.email_confirmed and is_institutional_email(identity.email)
    user = db.get(User, identity.user_id)
    if user is None:
        try:
            with db.begin_nested():
                user = User(
                    id=identity.user_id,
                    email=identity.email,
                    nickname=_default_nickname(identity),
                    is_privileged=privileged,
                )
                db.add(user)
                db.flush()
            logger.info("Provisioned user %s", identity.user_id)
        except IntegrityError:
            user = db.get(User, identity.user_id, with_for_update=True, populate_existing=True)
            if user is None:
                raise
    if user.is_privileged != privileged:
        user.is_privileged = privileged
    if identity.email and not user.email:
        user.email = identity.email
    db.commit()
    return user


def get_current_user(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> User:
    """Retrieve (and lazily provision) the user behind the bearer token."""

    return provision_user(db, identity)


def ensure_self(current_user: User, user_id: str) -> None:
    """Callers may only act on their own user id."""

    if current_user.id != user_id:
        raise Forbidden()


def get_schedule_parser() -> ScheduleParser:
    return UnconfiguredScheduleParser()
