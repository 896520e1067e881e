"""
Leaderboard and Badge API Routes
"""
from typing import List

from fastapi import APIRouter, Depends, Path

from quizblitz.api.dependencies import (
    get_badge_service,
    get_current_user_id,
    get_leaderboard_service,
)
from quizblitz.models.badge import Badge, UserBadge
from quizblitz.models.user import PublicUser
from quizblitz.services.badge_service import BadgeService
from quizblitz.services.leaderboard_service import LeaderboardService

router = APIRouter(prefix="/api/leaderboard", tags=["Leaderboard"])
badges_router = APIRouter(prefix="/api/badges", tags=["Badges"])


@router.get(
    "/{board}",
    response_model=List[PublicUser],
    summary="Top students by total score, games played, or games won"
)
async def get_leaderboard(
    board: str = Path(..., description="score, games or wins"),
    service: LeaderboardService = Depends(get_leaderboard_service)
) -> List[PublicUser]:
    return await service.get_leaderboard(board)


@badges_router.get("", response_model=List[Badge], summary="All badges")
async def list_badges(service: BadgeService = Depends(get_badge_service)) -> List[Badge]:
    return await service.get_all_badges()


@badges_router.get("/user", response_model=List[UserBadge], summary="Badges earned by the caller")
async def my_badges(
    user_id: str = Depends(get_current_user_id),
    service: BadgeService = Depends(get_badge_service)
) -> List[UserBadge]:
    return await service.get_user_badges(user_id)
