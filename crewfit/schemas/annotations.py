import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ReactionType(str, Enum):
    FLEX = "💪"
    FIRE = "🔥"
    CLAP = "👏"
    HEART = "❤️"


class ReactionRecord(BaseModel):
    id: uuid.UUID
    owner_uid: uuid.UUID
    activity_id: str
    reactor_uid: uuid.UUID
    reactor_name: str | None = None
    reactor_photo: str | None = None
    reaction_type: ReactionType
    created_at: datetime | None = None


class ReactionResult(BaseModel):
    removed: bool = False
    reaction: ReactionRecord | None = None


class CommentRecord(BaseModel):
    id: uuid.UUID
    owner_uid: uuid.UUID
    activity_id: str
    commenter_uid: uuid.UUID
    commenter_name: str | None = None
    commenter_photo: str | None = None
    text: str
    created_at: datetime


class ReplyRecord(BaseModel):
    id: uuid.UUID
    comment_id: uuid.UUID
    replier_uid: uuid.UUID
    replier_name: str | None = None
    replier_photo: str | None = None
    text: str
    created_at: datetime


class ReactionRequest(BaseModel):
    reaction_type: ReactionType


class CommentRequest(BaseModel):
    # Blank text is rejected by the service so the error shape is uniform
    text: str = Field(max_length=2000)
