"""In-memory collaborator stores for component tests."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

from crewfit.schemas.activity import ActivityRecord
from crewfit.schemas.annotations import CommentRecord, ReactionRecord, ReactionType, ReplyRecord
from crewfit.schemas.graph import EdgeStatus, FriendEdgeRecord
from crewfit.schemas.leaderboard import StatsDocument
from crewfit.schemas.users import UserProfile


class FakeActivitySource:
    def __init__(self, activities: dict[uuid.UUID, list[ActivityRecord]] | None = None):
        self.activities = activities or {}
        self.failing: set[uuid.UUID] = set()
        self.slow: dict[uuid.UUID, float] = {}
        self.calls: list[uuid.UUID] = []

    async def list_activities(self, uid: uuid.UUID) -> list[ActivityRecord]:
        self.calls.append(uid)
        if uid in self.slow:
            await asyncio.sleep(self.slow[uid])
        if uid in self.failing:
            raise ConnectionError(f"activity store unreachable for {uid}")
        return list(self.activities.get(uid, []))

    async def get_activity(self, owner_uid: uuid.UUID, activity_id: str) -> ActivityRecord | None:
        for activity in self.activities.get(owner_uid, []):
            if activity.id == activity_id:
                return activity
        return None


class FakeProfileStore:
    def __init__(self):
        self.profiles: dict[uuid.UUID, UserProfile] = {}
        self.stats: dict[uuid.UUID, StatsDocument] = {}
        self.failing_stats: set[uuid.UUID] = set()

    def add(self, username: str, stats: StatsDocument | None = None) -> UserProfile:
        profile = UserProfile(uid=uuid.uuid4(), username=username, display_name=username.title())
        self.profiles[profile.uid] = profile
        if stats is not None:
            self.stats[profile.uid] = stats
        return profile

    async def get_profile(self, uid: uuid.UUID) -> UserProfile | None:
        return self.profiles.get(uid)

    async def get_profiles(self, uids: list[uuid.UUID]) -> dict[uuid.UUID, UserProfile]:
        return {uid: self.profiles[uid] for uid in uids if uid in self.profiles}

    async def get_stats(self, uid: uuid.UUID) -> StatsDocument | None:
        if uid in self.failing_stats:
            raise TimeoutError("stats backend timed out")
        return self.stats.get(uid)


def _involves(edge: FriendEdgeRecord, uid: uuid.UUID) -> bool:
    return uid in (edge.requester_uid, edge.recipient_uid)


class FakeFriendGraphStore:
    def __init__(self):
        self.edges: dict[uuid.UUID, FriendEdgeRecord] = {}

    async def get_edge(self, edge_id: uuid.UUID) -> FriendEdgeRecord | None:
        return self.edges.get(edge_id)

    async def find_edge(self, a: uuid.UUID, b: uuid.UUID) -> FriendEdgeRecord | None:
        for edge in self.edges.values():
            if _involves(edge, a) and _involves(edge, b):
                return edge
        return None

    async def create_pending(
        self, requester: uuid.UUID, recipient: uuid.UUID
    ) -> FriendEdgeRecord | None:
        if await self.find_edge(requester, recipient) is not None:
            return None
        edge = FriendEdgeRecord(
            id=uuid.uuid4(),
            requester_uid=requester,
            recipient_uid=recipient,
            status=EdgeStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        self.edges[edge.id] = edge
        return edge

    async def promote(self, edge_id: uuid.UUID) -> FriendEdgeRecord | None:
        edge = self.edges.get(edge_id)
        if edge is None or edge.status != EdgeStatus.PENDING:
            return None
        promoted = edge.model_copy(
            update={"status": EdgeStatus.ACCEPTED, "accepted_at": datetime.now(timezone.utc)}
        )
        self.edges[edge_id] = promoted
        return promoted

    async def delete_edge(
        self, edge_id: uuid.UUID, status: EdgeStatus | None = None
    ) -> FriendEdgeRecord | None:
        edge = self.edges.get(edge_id)
        if edge is None or (status is not None and edge.status != status):
            return None
        return self.edges.pop(edge_id)

    async def delete_pair(
        self, a: uuid.UUID, b: uuid.UUID, status: EdgeStatus
    ) -> FriendEdgeRecord | None:
        edge = await self.find_edge(a, b)
        if edge is None or edge.status != status:
            return None
        return self.edges.pop(edge.id)

    async def list_edges(self, uid, status, role="either") -> list[FriendEdgeRecord]:
        def matches(edge: FriendEdgeRecord) -> bool:
            if role == "requester":
                return edge.requester_uid == uid
            if role == "recipient":
                return edge.recipient_uid == uid
            return _involves(edge, uid)

        return [e for e in self.edges.values() if e.status == status and matches(e)]


class FakeAnnotationStore:
    def __init__(self):
        self.reactions: dict[tuple, ReactionRecord] = {}
        self.comments: dict[uuid.UUID, CommentRecord] = {}
        self.replies: dict[uuid.UUID, ReplyRecord] = {}
        self.failing: set[str] = set()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _check(self, activity_id: str) -> None:
        if activity_id in self.failing:
            raise ConnectionError(f"annotations unreachable for {activity_id}")

    async def get_reaction(self, owner_uid, activity_id, reactor_uid) -> ReactionRecord | None:
        return self.reactions.get((owner_uid, activity_id, reactor_uid))

    async def put_reaction(self, owner_uid, activity_id, reactor_uid, reaction_type) -> ReactionRecord:
        reaction = ReactionRecord(
            id=uuid.uuid4(),
            owner_uid=owner_uid,
            activity_id=activity_id,
            reactor_uid=reactor_uid,
            reaction_type=ReactionType(reaction_type),
            created_at=self._now(),
        )
        self.reactions[(owner_uid, activity_id, reactor_uid)] = reaction
        return reaction

    async def delete_reaction(self, owner_uid, activity_id, reactor_uid) -> bool:
        return self.reactions.pop((owner_uid, activity_id, reactor_uid), None) is not None

    async def list_reactions(self, owner_uid, activity_id) -> list[ReactionRecord]:
        self._check(activity_id)
        return [
            r for r in self.reactions.values()
            if r.owner_uid == owner_uid and r.activity_id == activity_id
        ]

    async def insert_comment(self, owner_uid, activity_id, commenter_uid, text) -> CommentRecord:
        comment = CommentRecord(
            id=uuid.uuid4(),
            owner_uid=owner_uid,
            activity_id=activity_id,
            commenter_uid=commenter_uid,
            text=text,
            created_at=self._now(),
        )
        self.comments[comment.id] = comment
        return comment

    async def get_comment(self, owner_uid, activity_id, comment_id) -> CommentRecord | None:
        comment = self.comments.get(comment_id)
        if comment is None or comment.owner_uid != owner_uid or comment.activity_id != activity_id:
            return None
        return comment

    async def delete_comment(self, comment_id) -> bool:
        for reply_id in [r.id for r in self.replies.values() if r.comment_id == comment_id]:
            del self.replies[reply_id]
        return self.comments.pop(comment_id, None) is not None

    async def list_comments(self, owner_uid, activity_id) -> list[CommentRecord]:
        self._check(activity_id)
        found = [
            c for c in self.comments.values()
            if c.owner_uid == owner_uid and c.activity_id == activity_id
        ]
        return sorted(found, key=lambda c: c.created_at)

    async def insert_reply(self, comment_id, replier_uid, text) -> ReplyRecord:
        reply = ReplyRecord(
            id=uuid.uuid4(),
            comment_id=comment_id,
            replier_uid=replier_uid,
            text=text,
            created_at=self._now(),
        )
        self.replies[reply.id] = reply
        return reply

    async def get_reply(self, comment_id, reply_id) -> ReplyRecord | None:
        reply = self.replies.get(reply_id)
        return reply if reply is not None and reply.comment_id == comment_id else None

    async def delete_reply(self, reply_id) -> bool:
        return self.replies.pop(reply_id, None) is not None

    async def list_replies(self, comment_id) -> list[ReplyRecord]:
        found = [r for r in self.replies.values() if r.comment_id == comment_id]
        return sorted(found, key=lambda r: r.created_at)
