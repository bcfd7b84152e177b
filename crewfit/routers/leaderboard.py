from fastapi import APIRouter, Depends

from crewfit.dependencies import get_current_user, get_leaderboard_service
from crewfit.models.user import User
from crewfit.schemas.leaderboard import Leaderboard, LeaderboardCategory, TimeRange
from crewfit.schemas.users import UserProfile
from crewfit.services.leaderboard_ranker import LeaderboardService

router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard", response_model=Leaderboard)
async def get_leaderboard(
    category: LeaderboardCategory = LeaderboardCategory.MASTER,
    time_range: TimeRange = TimeRange.WEEK,
    refresh: bool = False,
    user: User = Depends(get_current_user),
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
):
    me = UserProfile(
        uid=user.id,
        username=user.username,
        display_name=user.display_name,
        photo_url=user.photo_url,
    )
    return await leaderboard.load(me, category=category, time_range=time_range, refresh=refresh)
