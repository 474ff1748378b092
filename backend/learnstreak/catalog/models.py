"""Catalog tables the engine references but does not manage.

Only the columns needed for existence checks and foreign keys are mapped here;
registration, course and video management live in their own services.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from uuid import UUID as UUID_TYPE

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnstreak.database.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """Model for users."""

    __tablename__ = "users"

    id: Mapped[UUID_TYPE] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class SubCourse(Base):
    """A course section that groups videos; progress is reported per sub-course."""

    __tablename__ = "sub_courses"

    id: Mapped[UUID_TYPE] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    videos: Mapped[list[Video]] = relationship("Video", back_populates="sub_course")


class Video(Base):
    """Video model for course videos."""

    __tablename__ = "videos"

    id: Mapped[UUID_TYPE] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sub_course_id: Mapped[UUID_TYPE] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("sub_courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # Duration in seconds
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    sub_course: Mapped[SubCourse] = relationship("SubCourse", back_populates="videos")
