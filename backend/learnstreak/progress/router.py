"""Progress tracking API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Request

from learnstreak.auth import CurrentAuth
from learnstreak.middleware.security import completion_rate_limit

from .schemas import (
    CompleteVideoRequest,
    CompleteVideoResponse,
    CourseProgressResponse,
    InProgressVideosResponse,
    UpdatePositionRequest,
    VideoProgressView,
)
from .service import CompletionService, PlaybackService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/progress", tags=["progress"])


@router.post("/videos/{video_id}/complete")
@completion_rate_limit
async def complete_video(
    request: Request,  # noqa: ARG001 - required by the rate limiter
    video_id: UUID,
    auth: CurrentAuth,
    body: CompleteVideoRequest | None = None,
) -> CompleteVideoResponse:
    """Mark a video completed and update the user's offensive.

    ``completed_at`` in the body simulates a completion at another time.
    """
    await auth.authorize("complete", "video", video_id)

    service = CompletionService(auth.session)
    completed_at = body.completed_at if body else None
    return await service.record_completion(auth.user_id, video_id, completed_at)


@router.post("/videos/{video_id}/position")
async def update_video_position(
    video_id: UUID,
    body: UpdatePositionRequest,
    auth: CurrentAuth,
) -> VideoProgressView:
    """Save the playback position of a video without completing it."""
    await auth.authorize("watch", "video", video_id)

    service = PlaybackService(auth.session)
    return await service.update_position(auth.user_id, video_id, body.current_timestamp)


# Declared before /videos/{video_id} so the path is not parsed as a UUID
@router.get("/videos/in-progress")
async def get_in_progress_videos(auth: CurrentAuth) -> InProgressVideosResponse:
    """List started but not completed videos, most recently watched first."""
    await auth.authorize("read", "video")

    service = PlaybackService(auth.session)
    return await service.get_in_progress_videos(auth.user_id)


@router.get("/videos/{video_id}")
async def get_video_progress(
    video_id: UUID,
    auth: CurrentAuth,
) -> VideoProgressView:
    """Get progress for a single video."""
    await auth.authorize("read", "video", video_id)

    service = CompletionService(auth.session)
    return await service.get_video_progress(auth.user_id, video_id)


@router.get("/courses/{sub_course_id}")
async def get_course_progress(
    sub_course_id: UUID,
    auth: CurrentAuth,
) -> CourseProgressResponse:
    """Get completed-video counts for a sub-course."""
    await auth.authorize("read", "sub_course", sub_course_id)

    service = CompletionService(auth.session)
    return await service.get_course_progress(auth.user_id, sub_course_id)
