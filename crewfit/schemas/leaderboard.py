import uuid
from enum import Enum

from pydantic import BaseModel, Field


class LeaderboardCategory(str, Enum):
    MASTER = "master"
    STRENGTH = "strength"
    CARDIO = "cardio"
    RECOVERY = "recovery"
    CALORIES = "calories"
    STEPS = "steps"


STREAK_CATEGORIES = frozenset({
    LeaderboardCategory.MASTER,
    LeaderboardCategory.STRENGTH,
    LeaderboardCategory.CARDIO,
    LeaderboardCategory.RECOVERY,
})


class TimeRange(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    SAME = "same"


class TimeBuckets(BaseModel):
    week: float = 0
    month: float = 0
    year: float = 0
    all: float = 0

    def get(self, time_range: TimeRange) -> float:
        return getattr(self, time_range.value)


class Streaks(BaseModel):
    master: int = 0
    strength: int = 0
    cardio: int = 0
    recovery: int = 0


class StatsDocument(BaseModel):
    """What ProfileStore.get_stats returns for one user."""

    streaks: Streaks = Field(default_factory=Streaks)
    weeks_won: int = 0
    total_workouts: int = 0
    calories: TimeBuckets = Field(default_factory=TimeBuckets)
    steps: TimeBuckets = Field(default_factory=TimeBuckets)
    volume: dict[str, TimeBuckets] = Field(default_factory=dict)


class LeaderboardRow(BaseModel):
    uid: uuid.UUID
    username: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    streaks: Streaks = Field(default_factory=Streaks)
    weeks_won: int = 0
    total_workouts: int = 0
    calories: TimeBuckets = Field(default_factory=TimeBuckets)
    steps: TimeBuckets = Field(default_factory=TimeBuckets)
    volume: dict[str, TimeBuckets] = Field(default_factory=dict)
    is_current_user: bool = False


class TrendResult(BaseModel):
    trend: Trend
    delta: float | None = None
    percent_change: int | None = None


class RankedEntry(BaseModel):
    rank: int
    value: float
    progress: float
    trend: TrendResult
    row: LeaderboardRow


class Leaderboard(BaseModel):
    category: LeaderboardCategory
    time_range: TimeRange
    max_value: float
    entries: list[RankedEntry] = Field(default_factory=list)
    podium: list[RankedEntry] = Field(default_factory=list)
    rest: list[RankedEntry] = Field(default_factory=list)
    current_user_rank: int | None = None
    generation: int | None = None


class LeaderboardSnapshot(BaseModel):
    """Composed rows for one viewer; ranking is recomputed per category/time range."""

    rows: list[LeaderboardRow] = Field(default_factory=list)
