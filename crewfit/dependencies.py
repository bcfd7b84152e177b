import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crewfit.config import settings
from crewfit.database import get_db, get_session_factory
from crewfit.models.user import User
from crewfit.schemas.feed import FeedResult
from crewfit.schemas.leaderboard import LeaderboardSnapshot
from crewfit.services.annotation_service import ReactionCommentStore
from crewfit.services.cache_service import FriendListCache, SnapshotCache
from crewfit.services.feed_aggregator import FeedAggregator, FeedService
from crewfit.services.leaderboard_ranker import LeaderboardRanker, LeaderboardService
from crewfit.services.relationship_graph import RelationshipGraph
from crewfit.stores.sql import (
    SqlActivitySource,
    SqlAnnotationStore,
    SqlFriendGraphStore,
    SqlProfileStore,
)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from a bearer access token (``sub`` = user id)."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing access token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        user_id = uuid.UUID(payload["sub"])
    except (JWTError, KeyError, ValueError):
        raise unauthorized

    if payload.get("type", "access") != "access":
        raise unauthorized

    user = await db.get(User, user_id)
    if user is None:
        raise unauthorized
    return user


def feed_snapshots(request: Request) -> SnapshotCache[FeedResult]:
    return SnapshotCache(
        request.app.state.redis, "feed", FeedResult, settings.SNAPSHOT_TTL_SECONDS
    )


def leaderboard_snapshots(request: Request) -> SnapshotCache[LeaderboardSnapshot]:
    return SnapshotCache(
        request.app.state.redis,
        "leaderboard",
        LeaderboardSnapshot,
        settings.SNAPSHOT_TTL_SECONDS,
    )


def get_profile_store(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> SqlProfileStore:
    return SqlProfileStore(session_factory)


def get_relationship_graph(
    request: Request,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    profiles: SqlProfileStore = Depends(get_profile_store),
) -> RelationshipGraph:
    # Any edge change also drops both users' feed and leaderboard snapshots
    cache = FriendListCache(
        request.app.state.redis,
        settings.FRIEND_CACHE_TTL_SECONDS,
        dependents=(feed_snapshots(request), leaderboard_snapshots(request)),
    )
    return RelationshipGraph(SqlFriendGraphStore(session_factory), profiles, cache)


def get_annotation_store(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    graph: RelationshipGraph = Depends(get_relationship_graph),
) -> ReactionCommentStore:
    return ReactionCommentStore(
        SqlAnnotationStore(session_factory),
        activities=SqlActivitySource(session_factory),
        graph=graph,
    )


def get_feed_service(
    request: Request,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    graph: RelationshipGraph = Depends(get_relationship_graph),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
) -> FeedService:
    aggregator = FeedAggregator(SqlActivitySource(session_factory), annotations)
    return FeedService(graph, aggregator, feed_snapshots(request))


def get_leaderboard_service(
    request: Request,
    graph: RelationshipGraph = Depends(get_relationship_graph),
    profiles: SqlProfileStore = Depends(get_profile_store),
) -> LeaderboardService:
    return LeaderboardService(graph, LeaderboardRanker(profiles), leaderboard_snapshots(request))
