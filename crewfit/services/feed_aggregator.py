import asyncio
import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, time

from crewfit.config import settings
from crewfit.schemas.activity import ActivityRecord, activity_key
from crewfit.schemas.feed import FeedActivity, FeedResult
from crewfit.schemas.users import UserProfile
from crewfit.services.annotation_service import ReactionCommentStore
from crewfit.services.cache_service import SnapshotCache
from crewfit.services.fanout import fetch_with_retry, gather_outcomes
from crewfit.services.relationship_graph import RelationshipGraph
from crewfit.stores.base import ActivitySource

logger = logging.getLogger(__name__)

# Activities logged without a time sort as if they happened at midday
DEFAULT_ACTIVITY_TIME = time(12, 0)


def _parse_time(value: str | None) -> time | None:
    if not value:
        return None
    try:
        hours, minutes = value.split(":")[:2]
        return time(int(hours), int(minutes))
    except ValueError:
        return None


def effective_timestamp(activity: ActivityRecord) -> datetime:
    """``date`` combined with ``time``, or with midday when time is missing or unreadable."""
    return datetime.combine(activity.date, _parse_time(activity.time) or DEFAULT_ACTIVITY_TIME)


def _tag(activity: ActivityRecord, friend: UserProfile) -> FeedActivity:
    data = activity.model_dump()
    if activity.is_photo_private:
        data["photo_url"] = None
    return FeedActivity(
        **data,
        friend=UserProfile(
            uid=friend.uid,
            username=friend.username,
            display_name=friend.display_name,
            photo_url=friend.photo_url,
        ),
        key=activity_key(friend.uid, activity.id) if activity.id else None,
    )


class FeedAggregator:
    """Merge friends' activities into one newest-first, capped, annotated feed.

    Every per-friend and per-activity fetch is isolated: a failure is logged
    and that slice is left out (activities) or left empty (annotations).
    """

    def __init__(
        self,
        activities: ActivitySource,
        annotations: ReactionCommentStore,
        limit: int | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        retry_delay: float | None = None,
    ):
        self._activities = activities
        self._annotations = annotations
        self._limit = settings.FEED_LIMIT if limit is None else limit
        self._timeout = settings.FETCH_TIMEOUT_SECONDS if timeout is None else timeout
        self._retries = settings.FETCH_RETRIES if retries is None else retries
        self._retry_delay = (
            settings.FETCH_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        )

    async def _fetch(self, call, description: str):
        return await fetch_with_retry(
            call,
            description=description,
            timeout=self._timeout,
            retries=self._retries,
            retry_delay=self._retry_delay,
        )

    async def _friend_activities(self, friend: UserProfile) -> list[FeedActivity]:
        activities = await self._fetch(
            lambda: self._activities.list_activities(friend.uid),
            f"activities for {friend.uid}",
        )
        return [_tag(activity, friend) for activity in activities]

    async def build_feed(self, friends: Sequence[UserProfile]) -> FeedResult:
        outcomes = await gather_outcomes(friends, self._friend_activities)

        merged: list[FeedActivity] = []
        failed_friends: list[uuid.UUID] = []
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "Skipping feed contribution of %s: %s", outcome.key.uid, outcome.error
                )
                failed_friends.append(outcome.key.uid)
                continue
            merged.extend(outcome.value)

        # sorted() is stable, so equal timestamps keep fetch order
        merged = sorted(merged, key=effective_timestamp, reverse=True)
        retained = merged[: self._limit]

        reactions, comments = await self._annotate(retained)
        return FeedResult(
            activities=retained,
            reactions=reactions,
            comments=comments,
            failed_friends=failed_friends,
        )

    async def _annotate(self, activities: list[FeedActivity]):
        keyed = [a for a in activities if a.id]

        reaction_outcomes, comment_outcomes = await asyncio.gather(
            gather_outcomes(
                keyed,
                lambda a: self._fetch(
                    lambda: self._annotations.get_reactions((a.friend.uid, a.id)),
                    f"reactions for {a.key}",
                ),
            ),
            gather_outcomes(
                keyed,
                lambda a: self._fetch(
                    lambda: self._annotations.get_comments((a.friend.uid, a.id)),
                    f"comments for {a.key}",
                ),
            ),
        )

        reactions = {}
        for outcome in reaction_outcomes:
            if not outcome.ok:
                logger.warning("Reactions unavailable for %s: %s", outcome.key.key, outcome.error)
            reactions[outcome.key.key] = outcome.value if outcome.ok else []

        comments = {}
        for outcome in comment_outcomes:
            if not outcome.ok:
                logger.warning("Comments unavailable for %s: %s", outcome.key.key, outcome.error)
            comments[outcome.key.key] = outcome.value if outcome.ok else []

        return reactions, comments


class FeedService:
    """Owns the per-user feed snapshot; every rebuild is tagged with a generation token."""

    def __init__(
        self,
        graph: RelationshipGraph,
        aggregator: FeedAggregator,
        snapshots: SnapshotCache[FeedResult],
    ):
        self._graph = graph
        self._aggregator = aggregator
        self._snapshots = snapshots

    async def load(self, uid: uuid.UUID, refresh: bool = False) -> FeedResult:
        if not refresh:
            cached = await self._snapshots.load(uid)
            if cached is not None:
                return cached

        generation = await self._snapshots.begin(uid)
        friends = await self._graph.list_friends(uid)
        result = await self._aggregator.build_feed(friends)
        result.generation = generation
        await self._snapshots.commit(uid, generation, result)
        return result
