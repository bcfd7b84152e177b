"""
Collaborator interfaces consumed by the social core.

The services never touch the database or any module-level client directly;
they are handed implementations of these protocols. ``crewfit.stores.sql``
provides the SQLAlchemy-backed versions used by the API.
"""

import uuid
from typing import Literal, Protocol, runtime_checkable

from crewfit.schemas.activity import ActivityRecord
from crewfit.schemas.annotations import CommentRecord, ReactionRecord, ReactionType, ReplyRecord
from crewfit.schemas.graph import EdgeStatus, FriendEdgeRecord
from crewfit.schemas.leaderboard import StatsDocument
from crewfit.schemas.users import UserProfile

EdgeRole = Literal["requester", "recipient", "either"]


@runtime_checkable
class ActivitySource(Protocol):
    async def list_activities(self, uid: uuid.UUID) -> list[ActivityRecord]:
        """All activities owned by ``uid``, in the source's own order."""
        ...

    async def get_activity(self, owner_uid: uuid.UUID, activity_id: str) -> ActivityRecord | None:
        """One activity by key; None when ``owner_uid`` owns no such activity."""
        ...


@runtime_checkable
class ProfileStore(Protocol):
    async def get_profile(self, uid: uuid.UUID) -> UserProfile | None:
        ...

    async def get_profiles(self, uids: list[uuid.UUID]) -> dict[uuid.UUID, UserProfile]:
        """Batch lookup; unknown uids are simply absent from the result."""
        ...

    async def get_stats(self, uid: uuid.UUID) -> StatsDocument | None:
        ...


@runtime_checkable
class FriendGraphStore(Protocol):
    async def get_edge(self, edge_id: uuid.UUID) -> FriendEdgeRecord | None:
        ...

    async def find_edge(self, a: uuid.UUID, b: uuid.UUID) -> FriendEdgeRecord | None:
        """The edge for the unordered pair {a, b}, whichever direction it was created in."""
        ...

    async def create_pending(
        self, requester: uuid.UUID, recipient: uuid.UUID
    ) -> FriendEdgeRecord | None:
        """Insert a pending edge. Returns None if the pair already has an edge."""
        ...

    async def promote(self, edge_id: uuid.UUID) -> FriendEdgeRecord | None:
        """Atomically turn a pending edge into an accepted one.

        Returns None when the edge is gone or no longer pending.
        """
        ...

    async def delete_edge(
        self, edge_id: uuid.UUID, status: EdgeStatus | None = None
    ) -> FriendEdgeRecord | None:
        """Delete by id (optionally only in ``status``); returns the deleted edge."""
        ...

    async def delete_pair(
        self, a: uuid.UUID, b: uuid.UUID, status: EdgeStatus
    ) -> FriendEdgeRecord | None:
        ...

    async def list_edges(
        self, uid: uuid.UUID, status: EdgeStatus, role: EdgeRole = "either"
    ) -> list[FriendEdgeRecord]:
        ...


@runtime_checkable
class AnnotationStore(Protocol):
    # Reactions
    async def get_reaction(
        self, owner_uid: uuid.UUID, activity_id: str, reactor_uid: uuid.UUID
    ) -> ReactionRecord | None:
        ...

    async def put_reaction(
        self,
        owner_uid: uuid.UUID,
        activity_id: str,
        reactor_uid: uuid.UUID,
        reaction_type: ReactionType,
    ) -> ReactionRecord:
        """Insert, or overwrite the type of, the reactor's single reaction."""
        ...

    async def delete_reaction(
        self, owner_uid: uuid.UUID, activity_id: str, reactor_uid: uuid.UUID
    ) -> bool:
        ...

    async def list_reactions(self, owner_uid: uuid.UUID, activity_id: str) -> list[ReactionRecord]:
        ...

    # Comments
    async def insert_comment(
        self, owner_uid: uuid.UUID, activity_id: str, commenter_uid: uuid.UUID, text: str
    ) -> CommentRecord:
        ...

    async def get_comment(
        self, owner_uid: uuid.UUID, activity_id: str, comment_id: uuid.UUID
    ) -> CommentRecord | None:
        ...

    async def delete_comment(self, comment_id: uuid.UUID) -> bool:
        """Delete a comment together with its replies."""
        ...

    async def list_comments(self, owner_uid: uuid.UUID, activity_id: str) -> list[CommentRecord]:
        """Oldest first."""
        ...

    # Replies
    async def insert_reply(
        self, comment_id: uuid.UUID, replier_uid: uuid.UUID, text: str
    ) -> ReplyRecord:
        ...

    async def get_reply(self, comment_id: uuid.UUID, reply_id: uuid.UUID) -> ReplyRecord | None:
        ...

    async def delete_reply(self, reply_id: uuid.UUID) -> bool:
        ...

    async def list_replies(self, comment_id: uuid.UUID) -> list[ReplyRecord]:
        """Oldest first."""
        ...
