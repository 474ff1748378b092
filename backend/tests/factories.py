"""Test data helpers shared across test modules."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID


@dataclass
class Catalog:
    """Seeded rows: one user and one sub-course with four videos."""

    user_id: UUID
    sub_course_id: UUID
    video_ids: list[UUID]


def at(day: int, hour: int = 12, minute: int = 0) -> datetime:
    """Timestamp on ``day`` of March 2024 (UTC), safely in the past."""
    return datetime(2024, 3, day, hour, minute, tzinfo=UTC)
