import uuid

from pydantic import BaseModel, Field

from crewfit.schemas.activity import ActivityRecord
from crewfit.schemas.annotations import CommentRecord, ReactionRecord
from crewfit.schemas.users import UserProfile


class FeedActivity(ActivityRecord):
    friend: UserProfile
    key: str | None = None  # "{owner_uid}-{activity_id}", None when the activity has no id


class FeedResult(BaseModel):
    activities: list[FeedActivity] = Field(default_factory=list)
    reactions: dict[str, list[ReactionRecord]] = Field(default_factory=dict)
    comments: dict[str, list[CommentRecord]] = Field(default_factory=dict)
    failed_friends: list[uuid.UUID] = Field(default_factory=list)
    generation: int | None = None
