"""Offensive (learning streak) persistence model."""

import enum
import uuid
from datetime import UTC, datetime
from uuid import UUID as UUID_TYPE

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from learnstreak.database.base import Base


class OffensiveTier(str, enum.Enum):
    """Streak strength, listed from weakest to strongest."""

    NORMAL = "NORMAL"
    SUPER = "SUPER"
    ULTRA = "ULTRA"
    KING = "KING"
    INFINITY = "INFINITY"

    @property
    def rank(self) -> int:
        """Position in the tier order (NORMAL is 0)."""
        return TIER_ORDER.index(self)


TIER_ORDER: tuple[OffensiveTier, ...] = tuple(OffensiveTier)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Offensive(Base):
    """One row per user holding the current streak run."""

    __tablename__ = "offensives"
    __table_args__ = (
        CheckConstraint("consecutive_days >= 1", name="ck_offensives_consecutive_days_positive"),
        CheckConstraint("total_offensives >= 1", name="ck_offensives_total_offensives_positive"),
    )

    id: Mapped[UUID_TYPE] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[UUID_TYPE] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    tier: Mapped[OffensiveTier] = mapped_column(
        Enum(OffensiveTier, name="offensive_tier"),
        nullable=False,
        default=OffensiveTier.NORMAL,
        index=True,
    )
    consecutive_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    last_video_completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    streak_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_offensives: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        """Return string representation of the offensive."""
        return (
            f"<Offensive(user_id={self.user_id}, tier={self.tier.value}, "
            f"consecutive_days={self.consecutive_days}, total_offensives={self.total_offensives})>"
        )
