"""initial schema: catalog references, video progress and offensives

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

offensive_tier = sa.Enum("NORMAL", "SUPER", "ULTRA", "KING", "INFINITY", name="offensive_tier")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "sub_courses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "videos",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sub_course_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["sub_course_id"], ["sub_courses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_videos_sub_course_id", "videos", ["sub_course_id"])

    op.create_table(
        "video_progress",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("video_id", sa.Uuid(), nullable=False),
        sa.Column("sub_course_id", sa.Uuid(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_timestamp", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sub_course_id"], ["sub_courses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "video_id", name="uq_video_progress_user_video"),
    )
    op.create_index("ix_video_progress_user_id", "video_progress", ["user_id"])
    op.create_index("ix_video_progress_video_id", "video_progress", ["video_id"])
    op.create_index("ix_video_progress_sub_course_id", "video_progress", ["sub_course_id"])
    op.create_index("ix_video_progress_completed_at", "video_progress", ["completed_at"])

    op.create_table(
        "offensives",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("tier", offensive_tier, nullable=False),
        sa.Column("consecutive_days", sa.Integer(), nullable=False),
        sa.Column("last_video_completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("streak_start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_offensives", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("consecutive_days >= 1", name="ck_offensives_consecutive_days_positive"),
        sa.CheckConstraint("total_offensives >= 1", name="ck_offensives_total_offensives_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_offensives_tier", "offensives", ["tier"])
    op.create_index("ix_offensives_consecutive_days", "offensives", ["consecutive_days"])


def downgrade() -> None:
    op.drop_index("ix_offensives_consecutive_days", table_name="offensives")
    op.drop_index("ix_offensives_tier", table_name="offensives")
    op.drop_table("offensives")
    offensive_tier.drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_video_progress_completed_at", table_name="video_progress")
    op.drop_index("ix_video_progress_sub_course_id", table_name="video_progress")
    op.drop_index("ix_video_progress_video_id", table_name="video_progress")
    op.drop_index("ix_video_progress_user_id", table_name="video_progress")
    op.drop_table("video_progress")

    op.drop_index("ix_videos_sub_course_id", table_name="videos")
    op.drop_table("videos")
    op.drop_table("sub_courses")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
