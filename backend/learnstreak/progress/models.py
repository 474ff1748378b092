"""Progress Ledger model: one completion and playback record per (user, video)."""

import uuid
from datetime import UTC, datetime
from uuid import UUID as UUID_TYPE

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from learnstreak.database.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class VideoProgress(Base):
    """Model for tracking whether a user completed a video."""

    __tablename__ = "video_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_video_progress_user_video"),
    )

    id: Mapped[UUID_TYPE] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[UUID_TYPE] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    video_id: Mapped[UUID_TYPE] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("videos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sub_course_id: Mapped[UUID_TYPE] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("sub_courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    current_timestamp: Mapped[int | None] = mapped_column(Integer, nullable=True)  # Playback position in seconds
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        """Return string representation of the progress."""
        return (
            f"<VideoProgress(user_id={self.user_id}, video_id={self.video_id}, "
            f"is_completed={self.is_completed})>"
        )
