"""Unit tests for token decoding and user provisioning."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as SettingsError

from app.api.deps import ensure_self, provision_user
from app.config import INSECURE_JWT_SECRET, Settings
from app.core.errors import Forbidden, Unauthorized
from app.core.security import Identity, identity_from_token, is_institutional_email
from app.models import User


def test_identity_from_token_reads_claims(access_token):
    identity = identity_from_token(access_token("alice", email="alice@rutgers.edu"))

    assert identity.user_id == "alice"
    assert identity.email == "alice@rutgers.edu"
    assert identity.email_confirmed is True


def test_email_verified_claim_also_confirms(access_token):
    token = access_token("bob", email_confirmed=False, email_verified=True)
    assert identity_from_token(token).email_confirmed is True


def test_expired_token_is_rejected(access_token):
    expired = int((datetime.now(timezone.utc) - timedelta(minutes=5)).timestamp())
    with pytest.raises(Unauthorized, match="expired"):
        identity_from_token(access_token("alice", exp=expired))


def test_token_without_subject_is_rejected(access_token):
    with pytest.raises(Unauthorized):
        identity_from_token(access_token("  "))


@pytest.mark.parametrize(
    ("email", "expected"),
    [
        ("student@rutgers.edu", True),
        ("student@PKU.EDU.CN", True),
        ("student@ox.ac.uk", True),
        ("student@gmail.com", False),
        ("edu@example.com", False),
        (None, False),
    ],
)
def test_institutional_email(email, expected):
    assert is_institutional_email(email) is expected


def test_provision_user_creates_row_once(db_session):
    identity = Identity(user_id="carol", email="carol@example.com", email_confirmed=True)

    created = provision_user(db_session, identity)
    again = provision_user(db_session, identity)

    assert created.id == again.id == "carol"
    assert created.nickname == "carol"
    assert db_session.query(User).count() == 1


def test_provision_user_refreshes_privilege(db_session):
    unconfirmed = Identity(user_id="dave", email="dave@rutgers.edu", email_confirmed=False)
    assert provision_user(db_session, unconfirmed).is_privileged is False

    confirmed = Identity(user_id="dave", email="dave@rutgers.edu", email_confirmed=True)
    assert provision_user(db_session, confirmed).is_privileged is True


def test_provision_user_without_email_gets_placeholder_nickname(db_session):
    user = provision_user(db_session, Identity(user_id="0123456789ab", email=None, email_confirmed=False))
    assert user.nickname == "user-01234567"
    assert user.email is None


def test_ensure_self(make_user):
    user = make_user("erin")
    ensure_self(user, "erin")
    with pytest.raises(Forbidden):
        ensure_self(user, "frank")


def test_default_jwt_secret_is_refused_in_production():
    with pytest.raises(SettingsError, match="AUTH_JWT_SECRET"):
        Settings(environment="production", auth_jwt_secret=INSECURE_JWT_SECRET, _env_file=None)

    local = Settings(environment="development", auth_jwt_secret=INSECURE_JWT_SECRET, _env_file=None)
    assert local.auth_jwt_secret == INSECURE_JWT_SECRET
    assert Settings(environment="production", auth_jwt_secret="s3cret", _env_file=None).environment == "production"


def test_provision_user_adopts_concurrently_created_row(session_factory, monkeypatch):
    with session_factory() as other:
        provision_user(other, Identity(user_id="gina", email="gina@example.com", email_confirmed=True))

    with session_factory() as session:
        real_get = session.get
        calls: list[dict] = []

        def stale_then_real(entity, ident, **kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                return None
            return real_get(entity, ident, **kwargs)

        monkeypatch.setattr(session, "get", stale_then_real)
        user = provision_user(
            session, Identity(user_id="gina", email="gina@example.com", email_confirmed=True)
        )

        assert user.id == "gina"
        assert calls[1] == {"with_for_update": True, "populate_existing": True}
        assert session.query(User).count() == 1
