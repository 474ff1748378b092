"""Schemas for progress API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnstreak.core.clock import as_utc
from learnstreak.offensives.schemas import OffensiveResult

from .models import VideoProgress


class CompleteVideoRequest(BaseModel):
    """Body of a completion request."""

    completed_at: datetime | None = Field(
        default=None,
        description="Simulated completion time for testing; omit to use the current time",
    )


class UpdatePositionRequest(BaseModel):
    """Body of a playback position update."""

    current_timestamp: int = Field(ge=0, description="Playback position in seconds")


class VideoProgressView(BaseModel):
    """Schema for a user's progress on one video."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    user_id: UUID
    video_id: UUID
    sub_course_id: UUID
    is_completed: bool = False
    completed_at: datetime | None = None
    current_timestamp: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, progress: VideoProgress) -> "VideoProgressView":
        return cls(
            id=progress.id,
            user_id=progress.user_id,
            video_id=progress.video_id,
            sub_course_id=progress.sub_course_id,
            is_completed=progress.is_completed,
            completed_at=as_utc(progress.completed_at) if progress.completed_at else None,
            current_timestamp=progress.current_timestamp,
            created_at=as_utc(progress.created_at),
            updated_at=as_utc(progress.updated_at),
        )


class CompleteVideoResponse(BaseModel):
    """Schema for the outcome of completing a video."""

    progress: VideoProgressView
    offensive_result: OffensiveResult | None = None


class CourseProgressResponse(BaseModel):
    """Schema for course progress response."""

    sub_course_id: UUID
    sub_course_name: str
    total_videos: int
    completed_videos: int
    progress_percentage: int
    is_completed: bool


class InProgressVideo(BaseModel):
    """A started video the user has not completed yet."""

    video_id: UUID
    title: str
    sub_course_id: UUID
    current_timestamp: int
    duration: int | None = None
    progress_percentage: int = Field(ge=0, le=100)
    last_watched_at: datetime


class InProgressVideosResponse(BaseModel):
    """Schema for the in-progress list, most recently watched first."""

    videos: list[InProgressVideo]
