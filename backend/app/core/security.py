"""Helpers for consuming identity-provider access tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

import jwt

from app.config import get_settings
from app.core.errors import Unauthorized

settings = get_settings()


@dataclass(slots=True)
class Identity:
    """Caller identity resolved from a bearer token."""

    user_id: str
    email: str | None
    email_confirmed: bool


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT access token issued by the identity provider."""

    options = {"verify_aud": settings.auth_jwt_audience is not None}
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError as exc:
        raise Unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Unauthorized() from exc
    return payload


def identity_from_token(token: str) -> Identity:
    """Resolve the caller identity from a bearer token or raise ``Unauthorized``."""

    payload = decode_access_token(token)
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise Unauthorized()

    email = payload.get("email")
    confirmed = bool(payload.get("email_confirmed_at") or payload.get("email_verified"))
    return Identity(
        user_id=subject.strip(),
        email=email if isinstance(email, str) and email else None,
        email_confirmed=confirmed,
    )


def is_institutional_email(email: str | None) -> bool:
    if not email:
        return False
    return re.search(settings.institutional_email_pattern, email.strip(), re.IGNORECASE) is not None
