"""Offensive (learning streak) API endpoints."""

import logging

from fastapi import APIRouter

from learnstreak.auth import CurrentAuth

from .schemas import OffensiveSummaryResponse, RebuildOffensiveResponse
from .service import OffensiveService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/offensives", tags=["offensives"])


@router.get("/me")
async def get_my_offensive(auth: CurrentAuth) -> OffensiveSummaryResponse:
    """Get the current user's offensive with history, stats and milestones."""
    await auth.authorize("read", "offensive", auth.user_id)

    service = OffensiveService(auth.session)
    return await service.get_summary(auth.user_id)


@router.post("/me/rebuild")
async def rebuild_my_offensive(auth: CurrentAuth) -> RebuildOffensiveResponse:
    """Recompute the current user's offensive from their completed videos."""
    await auth.authorize("rebuild", "offensive", auth.user_id)

    service = OffensiveService(auth.session)
    return await service.rebuild(auth.user_id)
