"""Endpoints scoped to the authenticated user's badges."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api import deps
from app.schemas import BadgeStats, CurrentUser, UserBadgeListResponse
from app.services.badge_stats import BadgeStatsService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/badges", response_model=UserBadgeListResponse)
def read_my_badges(
    *,
    stats: BadgeStatsService = Depends(deps.get_stats_service),
    current_user: CurrentUser = Depends(deps.get_current_user),
) -> UserBadgeListResponse:
    return UserBadgeListResponse(items=stats.list_user_badges(current_user.id))


@router.get("/me/badges/stats", response_model=BadgeStats)
def read_my_badge_stats(
    *,
    stats: BadgeStatsService = Depends(deps.get_stats_service),
    current_user: CurrentUser = Depends(deps.get_current_user),
) -> BadgeStats:
    """Return badge totals, buckets, recent unlocks and closest badges."""

    return stats.get_stats(current_user.id)
