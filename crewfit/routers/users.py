from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crewfit.database import get_db
from crewfit.dependencies import get_current_user
from crewfit.models.user import User
from crewfit.schemas.users import UserProfile, UsernameAvailability
from crewfit.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserProfile])
async def search_users(
    q: str = Query("", max_length=15),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.search_users(db, q, user.id)


@router.get("/username-available", response_model=UsernameAvailability)
async def username_available(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    normalized = user_service.validate_username(username)
    available = await user_service.check_username_available(db, normalized)
    return UsernameAvailability(username=normalized, available=available)
