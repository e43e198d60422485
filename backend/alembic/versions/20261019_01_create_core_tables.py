"""create users, rooms and contact tables

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


CONTACT_REQUEST_STATUS = sa.Enum("pending", "accepted", "rejected", name="contact_request_status")
NOTIFICATION_TYPE = sa.Enum(
    "new_member",
    "contact_request",
    "contact_accepted",
    "contact_rejected",
    "system",
    name="notification_type",
)


def _timestamp(name: str, *, onupdate: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now() if onupdate else None,
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("nickname", sa.String(length=50), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("wechat", sa.String(length=50), nullable=True),
        sa.Column("qq", sa.String(length=20), nullable=True),
        sa.Column("school", sa.String(length=100), nullable=True),
        sa.Column("is_privileged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("auto_share_contact", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("match_quota_remaining", sa.Integer(), nullable=True),
        sa.Column("match_quota_reset_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at", onupdate=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("school", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=True),
        _timestamp("created_at"),
        sa.UniqueConstraint("name", "school", name="uq_course_name_school"),
    )
    op.create_index("ix_courses_school", "courses", ["school"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("semester", sa.String(length=20), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("instructor", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("location", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("weeks", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("member_count", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
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
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_room_day_of_week"),
    )
    op.create_index("ix_rooms_course_semester", "rooms", ["course_id", "semester"])

    op.create_table(
        "room_members",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        _timestamp("joined_at"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("room_id", "user_id", name="uq_room_member"),
    )
    op.create_index("ix_room_members_room_id", "room_members", ["room_id"])
    op.create_index("ix_room_members_user_id", "room_members", ["user_id"])

    op.create_table(
        "room_privacy_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at", onupdate=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "room_id", name="uq_room_privacy"),
    )
    op.create_index("ix_room_privacy_settings_room_id", "room_privacy_settings", ["room_id"])

    op.create_table(
        "contact_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("requester_id", sa.String(length=64), nullable=False),
        sa.Column("target_id", sa.String(length=64), nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=True),
        sa.Column("status", CONTACT_REQUEST_STATUS, nullable=False, server_default="pending"),
        sa.Column("message", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("requester_id", "target_id", name="uq_contact_request_pair"),
    )
    op.create_index(
        "ix_contact_requests_target_status", "contact_requests", ["target_id", "status"]
    )

    op.create_table(
        "user_connections",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id_1", sa.String(length=64), nullable=False),
        sa.Column("user_id_2", sa.String(length=64), nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["user_id_1"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id_2"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("user_id_1", "user_id_2", name="uq_user_connection"),
        sa.CheckConstraint("user_id_1 < user_id_2", name="ck_user_connection_order"),
    )
    op.create_index("ix_user_connections_user_2", "user_connections", ["user_id_2"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("type", NOTIFICATION_TYPE, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_index("ix_notifications_user_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_user_connections_user_2", table_name="user_connections")
    op.drop_table("user_connections")
    op.drop_index("ix_contact_requests_target_status", table_name="contact_requests")
    op.drop_table("contact_requests")
    op.drop_index("ix_room_privacy_settings_room_id", table_name="room_privacy_settings")
    op.drop_table("room_privacy_settings")
    op.drop_index("ix_room_members_user_id", table_name="room_members")
    op.drop_index("ix_room_members_room_id", table_name="room_members")
    op.drop_table("room_members")
    op.drop_index("ix_rooms_course_semester", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_courses_school", table_name="courses")
    op.drop_table("courses")
    op.drop_table("users")

    bind = op.get_bind()
    NOTIFICATION_TYPE.drop(bind, checkfirst=True)
    CONTACT_REQUEST_STATUS.drop(bind, checkfirst=True)
