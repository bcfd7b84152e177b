import uuid

import pytest

from crewfit.schemas.leaderboard import (
    LeaderboardCategory,
    LeaderboardSnapshot,
    StatsDocument,
    Streaks,
    TimeBuckets,
    TimeRange,
    Trend,
)
from crewfit.schemas.users import UserProfile
from crewfit.services.cache_service import SnapshotCache
from crewfit.services.leaderboard_ranker import (
    LeaderboardRanker,
    LeaderboardService,
    build_row,
    heuristic_trend,
    rolling_hash,
    value_for,
)
from crewfit.services.relationship_graph import RelationshipGraph

from fakes import FakeFriendGraphStore, FakeProfileStore


@pytest.fixture
def profiles():
    return FakeProfileStore()


@pytest.fixture
def ranker(profiles):
    return LeaderboardRanker(profiles, timeout=1.0, retries=0, retry_delay=0)


def solo() -> UserProfile:
    return UserProfile(uid=uuid.uuid4(), username="solo")


def calories(week=0, month=0, year=0, all=0) -> StatsDocument:
    return StatsDocument(calories=TimeBuckets(week=week, month=month, year=year, all=all))


def test_rolling_hash_wraps_to_signed_32_bit():
    assert rolling_hash("") == 0
    assert rolling_hash("a") == 97
    assert rolling_hash("ab") == 97 * 31 + 98
    # Long enough input overflows and must stay within int32
    value = rolling_hash("x" * 200)
    assert -(2**31) <= value < 2**31


def test_heuristic_trend_is_deterministic():
    uid = uuid.uuid4()
    first = heuristic_trend(uid, LeaderboardCategory.STRENGTH, TimeRange.WEEK)
    for _ in range(5):
        assert heuristic_trend(uid, LeaderboardCategory.STRENGTH, TimeRange.WEEK) == first


def test_heuristic_trend_thresholds():
    seen = set()
    for n in range(200):
        uid = f"user-{n}"
        fraction = (abs(rolling_hash(f"{uid}masterweek")) % 1000) / 1000
        trend = heuristic_trend(uid, LeaderboardCategory.MASTER, TimeRange.WEEK)
        seen.add(trend)
        if fraction > 0.6:
            assert trend == Trend.UP
        elif fraction < 0.3:
            assert trend == Trend.DOWN
        else:
            assert trend == Trend.SAME
    assert seen == {Trend.UP, Trend.DOWN, Trend.SAME}


@pytest.mark.asyncio
async def test_rank_orders_descending_with_progress(ranker, profiles):
    a = profiles.add("anna", calories(week=500))
    b = profiles.add("ben", calories(week=2000))
    me = profiles.add("cara", calories(week=1000))

    rows = await ranker.compose_rows([a, b], me)
    board = ranker.rank(rows, LeaderboardCategory.CALORIES, TimeRange.WEEK)

    assert [e.value for e in board.entries] == [2000, 1000, 500]
    assert [e.rank for e in board.entries] == [1, 2, 3]
    assert board.max_value == 2000
    assert [e.progress for e in board.entries] == [1.0, 0.5, 0.25]
    assert board.current_user_rank == 2
    assert board.entries[1].row.is_current_user is True


@pytest.mark.asyncio
async def test_current_user_row_is_last_in_compose_order(ranker, profiles):
    a = profiles.add("anna")
    b = profiles.add("ben")
    me = profiles.add("cara")

    rows = await ranker.compose_rows([a, b], me)

    assert [r.username for r in rows] == ["anna", "ben", "cara"]
    assert [r.is_current_user for r in rows] == [False, False, True]


@pytest.mark.asyncio
async def test_ties_keep_compose_order(ranker, profiles):
    a = profiles.add("anna", StatsDocument(streaks=Streaks(master=3)))
    b = profiles.add("ben", StatsDocument(streaks=Streaks(master=3)))
    me = profiles.add("cara", StatsDocument(streaks=Streaks(master=3)))

    rows = await ranker.compose_rows([a, b], me)
    board = ranker.rank(rows, LeaderboardCategory.MASTER, TimeRange.WEEK)

    assert [e.row.username for e in board.entries] == ["anna", "ben", "cara"]


@pytest.mark.asyncio
async def test_missing_or_failing_stats_default_to_zero(ranker, profiles):
    a = profiles.add("anna")
    b = profiles.add("ben", calories(week=300))
    me = profiles.add("cara", calories(week=100))
    profiles.failing_stats.add(b.uid)

    rows = await ranker.compose_rows([a, b], me)
    board = ranker.rank(rows, LeaderboardCategory.CALORIES, TimeRange.WEEK)

    assert len(board.entries) == 3
    assert board.entries[0].row.username == "cara"
    assert [e.value for e in board.entries] == [100, 0, 0]


@pytest.mark.asyncio
async def test_all_zero_board_has_zero_progress(ranker, profiles):
    me = profiles.add("cara")
    rows = await ranker.compose_rows([], me)
    board = ranker.rank(rows, LeaderboardCategory.STEPS, TimeRange.MONTH)

    assert board.max_value == 0
    assert board.entries[0].progress == 0
    assert board.current_user_rank == 1


@pytest.mark.asyncio
async def test_podium_and_rest(ranker, profiles):
    friends = [profiles.add(f"user{i}", calories(week=100 * i)) for i in range(1, 6)]
    me = profiles.add("me", calories(week=50))

    rows = await ranker.compose_rows(friends, me)
    board = ranker.rank(rows, LeaderboardCategory.CALORIES, TimeRange.WEEK)

    assert [e.row.username for e in board.podium] == ["user5", "user4", "user3"]
    assert [e.row.username for e in board.rest] == ["user2", "user1", "me"]
    assert board.current_user_rank == 6


def test_value_for_streak_and_metric_categories():
    row = build_row(
        solo(),
        StatsDocument(
            streaks=Streaks(master=4, strength=3, cardio=2, recovery=1),
            steps=TimeBuckets(week=7000, month=30000, year=365000, all=900000),
        ),
    )
    assert value_for(row, LeaderboardCategory.MASTER, TimeRange.ALL) == 4
    assert value_for(row, LeaderboardCategory.STRENGTH, TimeRange.WEEK) == 3
    assert value_for(row, LeaderboardCategory.CARDIO, TimeRange.WEEK) == 2
    assert value_for(row, LeaderboardCategory.RECOVERY, TimeRange.WEEK) == 1
    assert value_for(row, LeaderboardCategory.STEPS, TimeRange.YEAR) == 365000


def test_metric_trend_week_against_month(ranker):
    row = build_row(solo(), calories(week=1500, month=4000))
    result = ranker.trend(row, LeaderboardCategory.CALORIES, TimeRange.WEEK)

    # expected = round(4000 / 4) = 1000
    assert result.trend == Trend.UP
    assert result.delta == 500
    assert result.percent_change == 50


def test_metric_trend_month_against_year(ranker):
    row = build_row(solo(), calories(month=900, year=12000))
    result = ranker.trend(row, LeaderboardCategory.CALORIES, TimeRange.MONTH)

    assert result.trend == Trend.DOWN
    assert result.delta == -100
    assert result.percent_change == -10


def test_metric_trend_year_against_all(ranker):
    row = build_row(solo(), calories(year=5000, all=5000))
    result = ranker.trend(row, LeaderboardCategory.CALORIES, TimeRange.YEAR)

    assert result.trend == Trend.SAME
    assert result.delta == 0
    assert result.percent_change == 0


def test_metric_trend_all_time_is_flat(ranker):
    row = build_row(solo(), calories(all=99999))
    result = ranker.trend(row, LeaderboardCategory.CALORIES, TimeRange.ALL)

    assert result.trend == Trend.SAME
    assert result.delta is None


def test_metric_trend_zero_expected_has_zero_percent(ranker):
    row = build_row(solo(), calories(week=200))
    result = ranker.trend(row, LeaderboardCategory.CALORIES, TimeRange.WEEK)

    assert result.trend == Trend.UP
    assert result.delta == 200
    assert result.percent_change == 0


def test_expected_value_rounds_half_up(ranker):
    # 4002 / 4 = 1000.5 rounds to 1001
    row = build_row(solo(), calories(week=1001, month=4002))
    result = ranker.trend(row, LeaderboardCategory.CALORIES, TimeRange.WEEK)

    assert result.delta == 0
    assert result.trend == Trend.SAME


@pytest.mark.asyncio
async def test_service_caches_rows_and_reranks(profiles, ranker, fake_redis):
    graph = RelationshipGraph(FakeFriendGraphStore(), profiles)
    me = profiles.add("cara", StatsDocument(streaks=Streaks(master=1), steps=TimeBuckets(week=9000)))
    friend = profiles.add("anna", StatsDocument(streaks=Streaks(master=5), steps=TimeBuckets(week=100)))
    sent = await graph.send_request(me.uid, friend.uid)
    await graph.accept_request(sent.request_id)

    snapshots = SnapshotCache(fake_redis, "leaderboard", LeaderboardSnapshot, 300)
    service = LeaderboardService(graph, ranker, snapshots)

    streaks = await service.load(me)
    assert [e.row.username for e in streaks.entries] == ["anna", "cara"]
    assert streaks.generation == 1

    # A stats change is not visible until refresh: rows come from the snapshot
    profiles.stats[friend.uid] = StatsDocument(steps=TimeBuckets(week=20000))
    steps = await service.load(me, LeaderboardCategory.STEPS, TimeRange.WEEK)
    assert [e.row.username for e in steps.entries] == ["cara", "anna"]
    assert steps.generation is None

    refreshed = await service.load(me, LeaderboardCategory.STEPS, TimeRange.WEEK, refresh=True)
    assert [e.row.username for e in refreshed.entries] == ["anna", "cara"]
    assert refreshed.generation == 2
