from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    func,
    update,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import ContactRequestStatus, NotificationType


def _enum_column(enum_cls: type, name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


class User(Base):
    """Student profile keyed by the identity provider's subject."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    nickname: Mapped[str] = mapped_column(String(50), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text)
    wechat: Mapped[str | None] = mapped_column(String(50))
    qq: Mapped[str | None] = mapped_column(String(20))
    school: Mapped[str | None] = mapped_column(String(100))
    is_privileged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    auto_share_contact: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    match_quota_remaining: Mapped[int | None] = mapped_column(Integer)
    match_quota_reset_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    memberships: Mapped[list["RoomMember"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class Course(Base):
    """Course identified by its name within a school."""

    __tablename__ = "courses"
    __table_args__ = (UniqueConstraint("name", "school", name="uq_course_name_school"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    school: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    code: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    rooms: Mapped[list["Room"]] = relationship(back_populates="course")


class Room(Base):
    """A recurring meeting of a course section; the unit students match on.

    ``member_count`` is maintained by the membership insert/delete hooks below
    and must never be assigned directly.
    """

    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint(
            "course_id",
            "semester",
            "day_of_week",
            "start_time",
            "end_time",
            "instructor",
            "location",
            "weeks",
            name="uq_room_section",
        ),
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_room_day_of_week"),
        Index("ix_rooms_course_semester", "course_id", "semester"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    semester: Mapped[str] = mapped_column(String(20), nullable=False)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    instructor: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    location: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    weeks: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    member_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    course: Mapped[Course] = relationship(back_populates="rooms")
    members: Mapped[list["RoomMember"]] = relationship(
        back_populates="room", cascade="all, delete-orphan", passive_deletes=True
    )


class RoomMember(Base):
    """Membership of a user in a room."""

    __tablename__ = "room_members"
    __table_args__ = (UniqueConstraint("room_id", "user_id", name="uq_room_member"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    room_id: Mapped[int] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    room: Mapped[Room] = relationship(back_populates="members")
    user: Mapped[User] = relationship(back_populates="memberships")


_rooms = Room.__table__


@event.listens_for(RoomMember, "after_insert")
def _increment_member_count(mapper, connection, target: RoomMember) -> None:
    connection.execute(
        update(_rooms)
        .where(_rooms.c.id == target.room_id)
        .values(member_count=_rooms.c.member_count + 1)
    )


@event.listens_for(RoomMember, "after_delete")
def _decrement_member_count(mapper, connection, target: RoomMember) -> None:
    connection.execute(
        update(_rooms)
        .where(_rooms.c.id == target.room_id)
        .values(member_count=_rooms.c.member_count - 1)
    )


class RoomPrivacySetting(Base):
    """Per-room opt-in to expose contact details to fellow members."""

    __tablename__ = "room_privacy_settings"
    __table_args__ = (UniqueConstraint("user_id", "room_id", name="uq_room_privacy"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    room_id: Mapped[int] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ContactRequest(Base):
    """Directional request to see another user's contact details."""

    __tablename__ = "contact_requests"
    __table_args__ = (
        UniqueConstraint("requester_id", "target_id", name="uq_contact_request_pair"),
        Index("ix_contact_requests_target_status", "target_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    requester_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id", ondelete="SET NULL"))
    status: Mapped[ContactRequestStatus] = mapped_column(
        _enum_column(ContactRequestStatus, "contact_request_status"),
        default=ContactRequestStatus.PENDING,
        nullable=False,
    )
    message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    requester: Mapped[User] = relationship(foreign_keys=[requester_id])
    target: Mapped[User] = relationship(foreign_keys=[target_id])
    room: Mapped[Room | None] = relationship()


class Connection(Base):
    """Mutual contact visibility between two users, stored once per pair."""

    __tablename__ = "user_connections"
    __table_args__ = (
        UniqueConstraint("user_id_1", "user_id_2", name="uq_user_connection"),
        CheckConstraint("user_id_1 < user_id_2", name="ck_user_connection_order"),
        Index("ix_user_connections_user_2", "user_id_2"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id_1: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    user_id_2: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    room: Mapped[Room | None] = relationship()

    def other(self, user_id: str) -> str:
        return self.user_id_2 if self.user_id_1 == user_id else self.user_id_1


class Notification(Base):
    """Polling notification addressed to a single user."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
        Index("ix_notifications_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[NotificationType] = mapped_column(
        _enum_column(NotificationType, "notification_type"), nullable=False
    )
    title: Mapped[str | None] = mapped_column(String(200))
    content: Mapped[str | None] = mapped_column(Text)
    data: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=dict, nullable=False
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CatalogSection(Base):
    """Cached course section imported from the external catalog."""

    __tablename__ = "catalog_sections"
    __table_args__ = (
        UniqueConstraint("index", "year", "term", name="uq_catalog_section"),
        Index("ix_catalog_sections_term", "year", "term", "campus"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    index: Mapped[str] = mapped_column("index", String(10), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    term: Mapped[int] = mapped_column(Integer, nullable=False)
    campus: Mapped[str] = mapped_column(String(10), default="NB", nullable=False)
    subject: Mapped[str | None] = mapped_column(String(10))
    course_number: Mapped[str | None] = mapped_column(String(10))
    course_string: Mapped[str | None] = mapped_column(String(50))
    title: Mapped[str | None] = mapped_column(String(200))
    instructor: Mapped[str | None] = mapped_column(Text)
    meeting_day: Mapped[str | None] = mapped_column(String(20))
    start_time: Mapped[str | None] = mapped_column(String(10))
    end_time: Mapped[str | None] = mapped_column(String(10))
    building: Mapped[str | None] = mapped_column(String(50))
    room_number: Mapped[str | None] = mapped_column(String(50))
    campus_name: Mapped[str | None] = mapped_column(String(100))
    open_status: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    credits: Mapped[str | None] = mapped_column(String(10))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
