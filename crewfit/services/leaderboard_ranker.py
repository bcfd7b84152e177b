import logging
import math
import uuid
from collections.abc import Sequence

from crewfit.config import settings
from crewfit.schemas.leaderboard import (
    STREAK_CATEGORIES,
    Leaderboard,
    LeaderboardCategory,
    LeaderboardRow,
    LeaderboardSnapshot,
    RankedEntry,
    StatsDocument,
    TimeRange,
    Trend,
    TrendResult,
)
from crewfit.schemas.users import UserProfile
from crewfit.services.cache_service import SnapshotCache
from crewfit.services.fanout import fetch_with_retry, gather_outcomes
from crewfit.services.relationship_graph import RelationshipGraph
from crewfit.stores.base import ProfileStore

logger = logging.getLogger(__name__)

PODIUM_SIZE = 3

# Next-broader bucket and how many of the narrower period fit into it
_BROADER_BUCKET: dict[TimeRange, tuple[TimeRange, int]] = {
    TimeRange.WEEK: (TimeRange.MONTH, 4),
    TimeRange.MONTH: (TimeRange.YEAR, 12),
    TimeRange.YEAR: (TimeRange.ALL, 1),
}


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def rolling_hash(text: str) -> int:
    """``hash = hash * 31 + ord(ch)`` with signed 32-bit wraparound."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def heuristic_trend(uid: uuid.UUID | str, category: LeaderboardCategory, time_range: TimeRange) -> Trend:
    """Display-only trend for streak categories.

    Streaks keep no history, so the arrow is derived from a hash of
    ``uid + category + time_range``: stable for the same tuple, but not a
    measurement of change. Fraction > 0.6 is up, < 0.3 is down.
    """
    fraction = (abs(rolling_hash(f"{uid}{category.value}{time_range.value}")) % 1000) / 1000
    if fraction > 0.6:
        return Trend.UP
    if fraction < 0.3:
        return Trend.DOWN
    return Trend.SAME


def value_for(row: LeaderboardRow, category: LeaderboardCategory, time_range: TimeRange) -> float:
    if category == LeaderboardCategory.STRENGTH:
        return row.streaks.strength
    if category == LeaderboardCategory.CARDIO:
        return row.streaks.cardio
    if category == LeaderboardCategory.RECOVERY:
        return row.streaks.recovery
    if category == LeaderboardCategory.CALORIES:
        return row.calories.get(time_range)
    if category == LeaderboardCategory.STEPS:
        return row.steps.get(time_range)
    return row.streaks.master


def build_row(profile: UserProfile, stats: StatsDocument | None, is_current_user: bool = False) -> LeaderboardRow:
    stats = stats or StatsDocument()
    return LeaderboardRow(
        uid=profile.uid,
        username=profile.username,
        display_name=profile.display_name,
        photo_url=profile.photo_url,
        streaks=stats.streaks,
        weeks_won=stats.weeks_won,
        total_workouts=stats.total_workouts,
        calories=stats.calories,
        steps=stats.steps,
        volume=stats.volume,
        is_current_user=is_current_user,
    )


class LeaderboardRanker:
    def __init__(
        self,
        profiles: ProfileStore,
        timeout: float | None = None,
        retries: int | None = None,
        retry_delay: float | None = None,
    ):
        self._profiles = profiles
        self._timeout = settings.FETCH_TIMEOUT_SECONDS if timeout is None else timeout
        self._retries = settings.FETCH_RETRIES if retries is None else retries
        self._retry_delay = (
            settings.FETCH_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        )

    async def _stats(self, profile: UserProfile) -> StatsDocument | None:
        return await fetch_with_retry(
            lambda: self._profiles.get_stats(profile.uid),
            description=f"stats for {profile.uid}",
            timeout=self._timeout,
            retries=self._retries,
            retry_delay=self._retry_delay,
        )

    async def compose_rows(
        self, friends: Sequence[UserProfile], current_user: UserProfile
    ) -> list[LeaderboardRow]:
        """One row per friend, then the current user's row.

        A missing or unreachable stats document yields an all-zero row.
        """
        members = [f for f in friends if f.uid != current_user.uid] + [current_user]
        outcomes = await gather_outcomes(members, self._stats)

        rows = []
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "Stats unavailable for %s, using defaults: %s", outcome.key.uid, outcome.error
                )
            rows.append(
                build_row(
                    outcome.key,
                    outcome.value,
                    is_current_user=outcome.key.uid == current_user.uid,
                )
            )
        return rows

    def rank(
        self,
        rows: Sequence[LeaderboardRow],
        category: LeaderboardCategory,
        time_range: TimeRange,
    ) -> Leaderboard:
        # Stable: tied rows keep their compose order
        ranked = sorted(rows, key=lambda r: value_for(r, category, time_range), reverse=True)
        max_value = value_for(ranked[0], category, time_range) if ranked else 0

        entries = []
        for position, row in enumerate(ranked, start=1):
            value = value_for(row, category, time_range)
            entries.append(
                RankedEntry(
                    rank=position,
                    value=value,
                    progress=value / max_value if max_value > 0 else 0,
                    trend=self.trend(row, category, time_range),
                    row=row,
                )
            )

        current_user_rank = next(
            (e.rank for e in entries if e.row.is_current_user), None
        )
        return Leaderboard(
            category=category,
            time_range=time_range,
            max_value=max_value,
            entries=entries,
            podium=entries[:PODIUM_SIZE],
            rest=entries[PODIUM_SIZE:],
            current_user_rank=current_user_rank,
        )

    def trend(
        self, row: LeaderboardRow, category: LeaderboardCategory, time_range: TimeRange
    ) -> TrendResult:
        if category in STREAK_CATEGORIES:
            return TrendResult(trend=heuristic_trend(row.uid, category, time_range))

        if time_range not in _BROADER_BUCKET:
            return TrendResult(trend=Trend.SAME)

        broader, periods = _BROADER_BUCKET[time_range]
        current = value_for(row, category, time_range)
        broader_value = value_for(row, category, broader)
        expected = _round_half_up(broader_value / periods) if periods > 1 else broader_value

        delta = current - expected
        percent_change = _round_half_up(100 * delta / expected) if expected > 0 else 0
        if delta > 0:
            trend = Trend.UP
        elif delta < 0:
            trend = Trend.DOWN
        else:
            trend = Trend.SAME
        return TrendResult(trend=trend, delta=delta, percent_change=percent_change)


class LeaderboardService:
    """Caches composed rows per viewer; category switches re-rank without refetching."""

    def __init__(
        self,
        graph: RelationshipGraph,
        ranker: LeaderboardRanker,
        snapshots: SnapshotCache[LeaderboardSnapshot],
    ):
        self._graph = graph
        self._ranker = ranker
        self._snapshots = snapshots

    async def load(
        self,
        current_user: UserProfile,
        category: LeaderboardCategory = LeaderboardCategory.MASTER,
        time_range: TimeRange = TimeRange.WEEK,
        refresh: bool = False,
    ) -> Leaderboard:
        snapshot = None if refresh else await self._snapshots.load(current_user.uid)
        generation = None

        if snapshot is None:
            generation = await self._snapshots.begin(current_user.uid)
            friends = await self._graph.list_friends(current_user.uid)
            rows = await self._ranker.compose_rows(friends, current_user)
            snapshot = LeaderboardSnapshot(rows=rows)
            await self._snapshots.commit(current_user.uid, generation, snapshot)

        leaderboard = self._ranker.rank(snapshot.rows, category, time_range)
        leaderboard.generation = generation
        return leaderboard
