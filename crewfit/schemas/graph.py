import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from crewfit.schemas.users import UserProfile


class EdgeStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class FriendEdgeRecord(BaseModel):
    id: uuid.UUID
    requester_uid: uuid.UUID
    recipient_uid: uuid.UUID
    status: EdgeStatus
    created_at: datetime | None = None
    accepted_at: datetime | None = None

    def other(self, uid: uuid.UUID) -> uuid.UUID:
        return self.recipient_uid if self.requester_uid == uid else self.requester_uid


class FriendResponse(UserProfile):
    since: datetime | None = None


class FriendRequestResponse(BaseModel):
    id: uuid.UUID
    requester_uid: uuid.UUID
    recipient_uid: uuid.UUID
    created_at: datetime | None = None
    # The other party: the sender for incoming requests, the recipient for outgoing
    user: UserProfile


class SendRequestBody(BaseModel):
    to_uid: uuid.UUID


class RequestResult(BaseModel):
    """Outcome of send_request; conflicts are data, not exceptions."""

    success: bool
    request_id: uuid.UUID | None = None
    error_code: str | None = None
