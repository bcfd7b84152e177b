from collections.abc import Iterable
from datetime import date, timedelta

from crewfit.schemas.activity import ActivityRecord
from crewfit.schemas.leaderboard import TimeBuckets, TimeRange

LIFTING_TYPES = {"Strength Training"}
CARDIO_TYPES = {"Running", "Cycle", "Sports"}
RECOVERY_TYPES = {"Cold Plunge", "Sauna", "Yoga", "Pilates"}

# Rolling windows in days; None means all time
BUCKET_DAYS: dict[TimeRange, int | None] = {
    TimeRange.WEEK: 7,
    TimeRange.MONTH: 30,
    TimeRange.YEAR: 365,
    TimeRange.ALL: None,
}

VOLUME_METRICS = (
    "workouts",
    "lifts",
    "cardio",
    "recovery",
    "runs",
    "running_miles",
    "minutes",
)


def categorize(activity: ActivityRecord) -> str:
    """Return lifting, cardio, recovery or other. An explicit count_toward wins."""
    if activity.count_toward:
        return activity.count_toward
    if activity.type in LIFTING_TYPES:
        return "lifting"
    if activity.type in CARDIO_TYPES:
        return "cardio"
    if activity.type in RECOVERY_TYPES:
        return "recovery"
    return "other"


def _in_bucket(activity_date: date, today: date, days: int | None) -> bool:
    if days is None:
        return True
    return activity_date > today - timedelta(days=days)


def compute_volume(
    activities: Iterable[ActivityRecord], today: date | None = None
) -> dict[str, TimeBuckets]:
    """Aggregate activity counts and durations into week/month/year/all buckets."""
    today = today or date.today()
    totals = {metric: {tr: 0.0 for tr in TimeRange} for metric in VOLUME_METRICS}

    for activity in activities:
        category = categorize(activity)
        increments = {
            "workouts": 1,
            "lifts": 1 if category == "lifting" else 0,
            "cardio": 1 if category == "cardio" else 0,
            "recovery": 1 if category == "recovery" else 0,
            "runs": 1 if activity.type == "Running" else 0,
            "running_miles": (activity.distance_miles or 0) if activity.type == "Running" else 0,
            "minutes": activity.duration_minutes or 0,
        }
        for time_range, days in BUCKET_DAYS.items():
            if not _in_bucket(activity.date, today, days):
                continue
            for metric, amount in increments.items():
                totals[metric][time_range] += amount

    return {
        metric: TimeBuckets(**{tr.value: round(value, 2) for tr, value in buckets.items()})
        for metric, buckets in totals.items()
    }
