"""add catalog section cache

Revision ID: 20261019_02
Revises: 20261019_01
Create Date: 2026-10-19 00:00:01.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_02"
down_revision = "20261019_01"
branch_labels = None
depends_on = None


TABLE_NAME = "catalog_sections"


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if TABLE_NAME in inspector.get_table_names():
        return

    op.create_table(
        TABLE_NAME,
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("index", sa.String(length=10), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("term", sa.Integer(), nullable=False),
        sa.Column("campus", sa.String(length=10), nullable=False, server_default="NB"),
        sa.Column("subject", sa.String(length=10), nullable=True),
        sa.Column("course_number", sa.String(length=10), nullable=True),
        sa.Column("course_string", sa.String(length=50), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("instructor", sa.Text(), nullable=True),
        sa.Column("meeting_day", sa.String(length=20), nullable=True),
        sa.Column("start_time", sa.String(length=10), nullable=True),
        sa.Column("end_time", sa.String(length=10), nullable=True),
        sa.Column("building", sa.String(length=50), nullable=True),
        sa.Column("room_number", sa.String(length=50), nullable=True),
        sa.Column("campus_name", sa.String(length=100), nullable=True),
        sa.Column("open_status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("credits", sa.String(length=10), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("index", "year", "term", name="uq_catalog_section"),
    )
    op.create_index("ix_catalog_sections_term", TABLE_NAME, ["year", "term", "campus"])


def downgrade() -> None:
    op.drop_index("ix_catalog_sections_term", table_name=TABLE_NAME)
    op.drop_table(TABLE_NAME)
