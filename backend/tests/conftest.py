"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("AUTH_JWT_SECRET", "test-signing-secret-that-is-long-enough-for-hs256")
os.environ.pop("RATE_LIMIT_REDIS_URL", None)

from app.config import get_settings
from app.database import get_db
from app.main import app
from app.models import Base, CatalogSection, Room, User
from app.services.rate_limit import get_rate_limit_store
from app.services.rooms import RoomKey, resolve_room


@pytest.fixture()
def test_engine() -> Iterator[Engine]:
    """Provide an in-memory SQLite engine for isolated tests."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to behave.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(test_engine) -> sessionmaker[Session]:
    """Return a session factory bound to the test engine."""

    return sessionmaker(bind=test_engine, autoflush=False, future=True)


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    """Yield a SQLAlchemy session for unit tests."""

    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _reset_rate_limit_store() -> Iterator[None]:
    get_rate_limit_store.cache_clear()
    yield
    get_rate_limit_store.cache_clear()


@pytest.fixture()
def client(session_factory) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient with the database dependency overridden."""

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(
    user_id: str,
    *,
    email: str | None = None,
    email_confirmed: bool = True,
    **claims: object,
) -> str:
    settings = get_settings()
    payload: dict[str, object] = {
        "sub": user_id,
        "email": email if email is not None else f"{user_id}@example.com",
        "iat": int(datetime.now(timezone.utc).timestamp()),
    }
    if email_confirmed:
        payload["email_confirmed_at"] = "2026-01-01T00:00:00Z"
    payload.update(claims)
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def _auth_headers(user_id: str, **kwargs: object) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}


@pytest.fixture()
def access_token() -> Callable[..., str]:
    return make_token


@pytest.fixture()
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build bearer headers for a user id, signed like the identity provider would."""

    return _auth_headers


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make_user(user_id: str, **fields: object) -> User:
        user = User(id=user_id, nickname=fields.pop("nickname", user_id.title()), **fields)
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


def _room_key(**overrides: object) -> RoomKey:
    values: dict[str, object] = {
        "course_name": "Data Structures",
        "school": "Rutgers University",
        "semester": "2026-fall",
        "day_of_week": 1,
        "start_time": "10:20",
        "end_time": "11:40",
        "instructor": "Smith",
        "location": "HLL 114",
        "weeks": "",
    }
    values.update(overrides)
    return RoomKey(**values)  # type: ignore[arg-type]


@pytest.fixture()
def make_room(db_session: Session) -> Callable[..., Room]:
    def _make_room(**overrides: object) -> Room:
        room = resolve_room(db_session, _room_key(**overrides))
        db_session.commit()
        return room

    return _make_room


def _catalog_section(**overrides: object) -> CatalogSection:
    values: dict[str, object] = {
        "index": "09214",
        "year": 2026,
        "term": 9,
        "campus": "NB",
        "subject": "198",
        "course_number": "112",
        "course_string": "01:198:112",
        "title": "DATA STRUCTURES",
        "instructor": "SMITH, JOHN",
        "meeting_day": "MW",
        "start_time": "1020",
        "end_time": "1140",
        "building": "HLL",
        "room_number": "114",
        "campus_name": "BUSCH",
        "open_status": True,
        "credits": "4",
    }
    values.update(overrides)
    return CatalogSection(**values)


@pytest.fixture()
def room_key() -> Callable[..., RoomKey]:
    return _room_key


@pytest.fixture()
def catalog_section() -> Callable[..., CatalogSection]:
    return _catalog_section
