import re
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crewfit.config import settings
from crewfit.errors import ValidationError
from crewfit.models.user import User
from crewfit.schemas.users import UserProfile

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,15}$")

# Upper bound for a prefix range scan over usernames
_PREFIX_SENTINEL = "\uf8ff"


def normalize_username(username: str) -> str:
    return username.strip().lower()


def validate_username(username: str) -> str:
    """Return the normalized username or raise ValidationError."""
    normalized = normalize_username(username or "")
    if not USERNAME_PATTERN.match(normalized):
        raise ValidationError(
            "Username must be 3-15 characters of lowercase letters, numbers or underscores"
        )
    return normalized


async def check_username_available(db: AsyncSession, username: str) -> bool:
    normalized = validate_username(username)
    result = await db.execute(select(User.id).where(User.username == normalized))
    return result.scalar_one_or_none() is None


async def search_users(
    db: AsyncSession,
    query: str,
    current_uid: uuid.UUID,
    limit: int | None = None,
) -> list[UserProfile]:
    """Username prefix search, excluding the caller."""
    prefix = normalize_username(query or "")
    if not prefix:
        return []

    result = await db.execute(
        select(User)
        .where(
            User.username >= prefix,
            User.username <= prefix + _PREFIX_SENTINEL,
            User.id != current_uid,
        )
        .order_by(User.username)
        .limit(limit or settings.SEARCH_RESULT_LIMIT)
    )
    return [
        UserProfile(
            uid=user.id,
            username=user.username,
            display_name=user.display_name,
            photo_url=user.photo_url,
        )
        for user in result.scalars().all()
    ]
