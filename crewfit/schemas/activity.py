import uuid
from datetime import date as date_type

from pydantic import BaseModel


class ActivityRecord(BaseModel):
    id: str | None = None
    owner_uid: uuid.UUID
    type: str
    date: date_type
    time: str | None = None  # "HH:MM"
    duration_minutes: int | None = None
    calories: int | None = None
    distance_miles: float | None = None
    photo_url: str | None = None
    is_photo_private: bool = False
    custom_emoji: str | None = None
    sport_emoji: str | None = None
    count_toward: str | None = None

    model_config = {"from_attributes": True}


def activity_key(owner_uid: uuid.UUID | str, activity_id: str) -> str:
    """String form of an ActivityKey, shared by the feed maps and clients."""
    return f"{owner_uid}-{activity_id}"
