"""SQLAlchemy implementations of the collaborator protocols.

Each call opens its own session from the injected factory, so the services
can fan calls out with ``asyncio.gather`` without sharing an AsyncSession.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crewfit.models.activity import Activity
from crewfit.models.comment import Comment, CommentReply
from crewfit.models.friend_edge import FriendEdge
from crewfit.models.reaction import Reaction
from crewfit.models.user import User
from crewfit.models.user_stats import UserStats
from crewfit.schemas.activity import ActivityRecord
from crewfit.schemas.annotations import CommentRecord, ReactionRecord, ReactionType, ReplyRecord
from crewfit.schemas.graph import EdgeStatus, FriendEdgeRecord
from crewfit.schemas.leaderboard import StatsDocument, Streaks, TimeBuckets
from crewfit.schemas.users import UserProfile
from crewfit.services.volume_metrics import compute_volume
from crewfit.stores.base import EdgeRole

SessionFactory = async_sessionmaker[AsyncSession]


def _canonical(a: uuid.UUID, b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    return (min(a, b), max(a, b))


def _profile(user: User) -> UserProfile:
    return UserProfile(
        uid=user.id,
        username=user.username,
        display_name=user.display_name,
        photo_url=user.photo_url,
    )


def _activity_record(activity: Activity) -> ActivityRecord:
    return ActivityRecord(
        id=str(activity.id),
        owner_uid=activity.user_id,
        type=activity.activity_type,
        date=activity.date,
        time=activity.time,
        duration_minutes=activity.duration_minutes,
        calories=activity.calories,
        distance_miles=activity.distance_miles,
        photo_url=activity.photo_url,
        is_photo_private=activity.is_photo_private,
        custom_emoji=activity.custom_emoji,
        sport_emoji=activity.sport_emoji,
        count_toward=activity.count_toward,
    )


def _edge_record(edge: FriendEdge) -> FriendEdgeRecord:
    return FriendEdgeRecord(
        id=edge.id,
        requester_uid=edge.requester_id,
        recipient_uid=edge.recipient_id,
        status=EdgeStatus(edge.status),
        created_at=edge.created_at,
        accepted_at=edge.accepted_at,
    )


def _reaction_record(reaction: Reaction, reactor: User | None) -> ReactionRecord:
    return ReactionRecord(
        id=reaction.id,
        owner_uid=reaction.owner_id,
        activity_id=reaction.activity_id,
        reactor_uid=reaction.reactor_id,
        reactor_name=(reactor.display_name or reactor.username) if reactor else None,
        reactor_photo=reactor.photo_url if reactor else None,
        reaction_type=ReactionType(reaction.reaction_type),
        created_at=reaction.created_at,
    )


def _comment_record(comment: Comment, commenter: User | None) -> CommentRecord:
    return CommentRecord(
        id=comment.id,
        owner_uid=comment.owner_id,
        activity_id=comment.activity_id,
        commenter_uid=comment.commenter_id,
        commenter_name=(commenter.display_name or commenter.username) if commenter else None,
        commenter_photo=commenter.photo_url if commenter else None,
        text=comment.text,
        created_at=comment.created_at,
    )


def _reply_record(reply: CommentReply, replier: User | None) -> ReplyRecord:
    return ReplyRecord(
        id=reply.id,
        comment_id=reply.comment_id,
        replier_uid=reply.replier_id,
        replier_name=(replier.display_name or replier.username) if replier else None,
        replier_photo=replier.photo_url if replier else None,
        text=reply.text,
        created_at=reply.created_at,
    )


class SqlActivitySource:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def list_activities(self, uid: uuid.UUID) -> list[ActivityRecord]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Activity)
                .where(Activity.user_id == uid)
                .order_by(Activity.date.desc(), Activity.created_at.desc())
            )
            return [_activity_record(a) for a in result.scalars().all()]

    async def get_activity(self, owner_uid: uuid.UUID, activity_id: str) -> ActivityRecord | None:
        try:
            activity_uuid = uuid.UUID(activity_id)
        except ValueError:
            return None
        async with self._session_factory() as db:
            result = await db.execute(
                select(Activity).where(
                    Activity.id == activity_uuid,
                    Activity.user_id == owner_uid,
                )
            )
            activity = result.scalar_one_or_none()
            return _activity_record(activity) if activity else None


class SqlProfileStore:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def get_profile(self, uid: uuid.UUID) -> UserProfile | None:
        async with self._session_factory() as db:
            user = await db.get(User, uid)
            return _profile(user) if user else None

    async def get_profiles(self, uids: list[uuid.UUID]) -> dict[uuid.UUID, UserProfile]:
        if not uids:
            return {}
        async with self._session_factory() as db:
            result = await db.execute(select(User).where(User.id.in_(uids)))
            return {user.id: _profile(user) for user in result.scalars().all()}

    async def get_stats(self, uid: uuid.UUID) -> StatsDocument | None:
        async with self._session_factory() as db:
            user = await db.get(User, uid)
            if user is None:
                return None

            stats_result = await db.execute(
                select(UserStats).where(UserStats.user_id == uid)
            )
            stats = stats_result.scalar_one_or_none()

            activity_result = await db.execute(
                select(Activity).where(Activity.user_id == uid)
            )
            activities = [_activity_record(a) for a in activity_result.scalars().all()]

        document = StatsDocument(volume=compute_volume(activities))
        if stats is None:
            return document

        document.streaks = Streaks(
            master=stats.master_streak,
            strength=stats.strength_streak,
            cardio=stats.cardio_streak,
            recovery=stats.recovery_streak,
        )
        document.weeks_won = stats.weeks_won
        document.total_workouts = stats.total_workouts
        document.calories = TimeBuckets(**(stats.calories or {}))
        document.steps = TimeBuckets(**(stats.steps or {}))
        return document


class SqlFriendGraphStore:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def get_edge(self, edge_id: uuid.UUID) -> FriendEdgeRecord | None:
        async with self._session_factory() as db:
            edge = await db.get(FriendEdge, edge_id)
            return _edge_record(edge) if edge else None

    async def find_edge(self, a: uuid.UUID, b: uuid.UUID) -> FriendEdgeRecord | None:
        uid1, uid2 = _canonical(a, b)
        async with self._session_factory() as db:
            result = await db.execute(
                select(FriendEdge).where(
                    FriendEdge.user_id_1 == uid1,
                    FriendEdge.user_id_2 == uid2,
                )
            )
            edge = result.scalar_one_or_none()
            return _edge_record(edge) if edge else None

    async def create_pending(
        self, requester: uuid.UUID, recipient: uuid.UUID
    ) -> FriendEdgeRecord | None:
        uid1, uid2 = _canonical(requester, recipient)
        edge = FriendEdge(
            user_id_1=uid1,
            user_id_2=uid2,
            requester_id=requester,
            recipient_id=recipient,
            status=EdgeStatus.PENDING.value,
        )
        async with self._session_factory() as db:
            db.add(edge)
            try:
                await db.commit()
            except IntegrityError:
                # Lost a race with another request for the same pair
                await db.rollback()
                return None
            await db.refresh(edge)
            return _edge_record(edge)

    async def promote(self, edge_id: uuid.UUID) -> FriendEdgeRecord | None:
        async with self._session_factory() as db:
            # Single conditional UPDATE: a concurrent decline or accept makes this a no-op
            result = await db.execute(
                update(FriendEdge)
                .where(
                    FriendEdge.id == edge_id,
                    FriendEdge.status == EdgeStatus.PENDING.value,
                )
                .values(
                    status=EdgeStatus.ACCEPTED.value,
                    accepted_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            if result.rowcount == 0:
                return None
            edge = await db.get(FriendEdge, edge_id)
            return _edge_record(edge) if edge else None

    async def delete_edge(
        self, edge_id: uuid.UUID, status: EdgeStatus | None = None
    ) -> FriendEdgeRecord | None:
        query = select(FriendEdge).where(FriendEdge.id == edge_id)
        if status is not None:
            query = query.where(FriendEdge.status == status.value)
        return await self._delete_one(query)

    async def delete_pair(
        self, a: uuid.UUID, b: uuid.UUID, status: EdgeStatus
    ) -> FriendEdgeRecord | None:
        uid1, uid2 = _canonical(a, b)
        return await self._delete_one(
            select(FriendEdge).where(
                FriendEdge.user_id_1 == uid1,
                FriendEdge.user_id_2 == uid2,
                FriendEdge.status == status.value,
            )
        )

    async def _delete_one(self, query) -> FriendEdgeRecord | None:
        async with self._session_factory() as db:
            edge = (await db.execute(query)).scalar_one_or_none()
            if edge is None:
                return None
            record = _edge_record(edge)
            await db.delete(edge)
            await db.commit()
            return record

    async def list_edges(
        self, uid: uuid.UUID, status: EdgeStatus, role: EdgeRole = "either"
    ) -> list[FriendEdgeRecord]:
        if role == "requester":
            involves = FriendEdge.requester_id == uid
        elif role == "recipient":
            involves = FriendEdge.recipient_id == uid
        else:
            involves = or_(FriendEdge.user_id_1 == uid, FriendEdge.user_id_2 == uid)

        async with self._session_factory() as db:
            result = await db.execute(
                select(FriendEdge)
                .where(involves, FriendEdge.status == status.value)
                .order_by(FriendEdge.created_at.desc())
            )
            return [_edge_record(e) for e in result.scalars().all()]


class SqlAnnotationStore:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def get_reaction(
        self, owner_uid: uuid.UUID, activity_id: str, reactor_uid: uuid.UUID
    ) -> ReactionRecord | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Reaction, User)
                .outerjoin(User, User.id == Reaction.reactor_id)
                .where(
                    Reaction.owner_id == owner_uid,
                    Reaction.activity_id == activity_id,
                    Reaction.reactor_id == reactor_uid,
                )
            )
            row = result.first()
            return _reaction_record(row[0], row[1]) if row else None

    async def put_reaction(
        self,
        owner_uid: uuid.UUID,
        activity_id: str,
        reactor_uid: uuid.UUID,
        reaction_type: ReactionType,
    ) -> ReactionRecord:
        query = select(Reaction).where(
            Reaction.owner_id == owner_uid,
            Reaction.activity_id == activity_id,
            Reaction.reactor_id == reactor_uid,
        )
        async with self._session_factory() as db:
            reaction = (await db.execute(query)).scalar_one_or_none()
            if reaction is None:
                reaction = Reaction(
                    owner_id=owner_uid,
                    activity_id=activity_id,
                    reactor_id=reactor_uid,
                    reaction_type=reaction_type.value,
                )
                db.add(reaction)
                try:
                    await db.commit()
                except IntegrityError:
                    # A concurrent first reaction from the same user won the insert
                    await db.rollback()
                    reaction = (await db.execute(query)).scalar_one()
                    reaction.reaction_type = reaction_type.value
                    await db.commit()
            else:
                reaction.reaction_type = reaction_type.value
                await db.commit()
            await db.refresh(reaction)
            reactor = await db.get(User, reactor_uid)
            return _reaction_record(reaction, reactor)

    async def delete_reaction(
        self, owner_uid: uuid.UUID, activity_id: str, reactor_uid: uuid.UUID
    ) -> bool:
        async with self._session_factory() as db:
            result = await db.execute(
                delete(Reaction).where(
                    Reaction.owner_id == owner_uid,
                    Reaction.activity_id == activity_id,
                    Reaction.reactor_id == reactor_uid,
                )
            )
            await db.commit()
            return result.rowcount > 0

    async def list_reactions(self, owner_uid: uuid.UUID, activity_id: str) -> list[ReactionRecord]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Reaction, User)
                .outerjoin(User, User.id == Reaction.reactor_id)
                .where(
                    Reaction.owner_id == owner_uid,
                    Reaction.activity_id == activity_id,
                )
                .order_by(Reaction.created_at)
            )
            return [_reaction_record(r, u) for r, u in result.all()]

    async def insert_comment(
        self, owner_uid: uuid.UUID, activity_id: str, commenter_uid: uuid.UUID, text: str
    ) -> CommentRecord:
        comment = Comment(
            owner_id=owner_uid,
            activity_id=activity_id,
            commenter_id=commenter_uid,
            text=text,
        )
        async with self._session_factory() as db:
            db.add(comment)
            await db.commit()
            await db.refresh(comment)
            commenter = await db.get(User, commenter_uid)
            return _comment_record(comment, commenter)

    async def get_comment(
        self, owner_uid: uuid.UUID, activity_id: str, comment_id: uuid.UUID
    ) -> CommentRecord | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Comment, User)
                .outerjoin(User, User.id == Comment.commenter_id)
                .where(
                    Comment.id == comment_id,
                    Comment.owner_id == owner_uid,
                    Comment.activity_id == activity_id,
                )
            )
            row = result.first()
            return _comment_record(row[0], row[1]) if row else None

    async def delete_comment(self, comment_id: uuid.UUID) -> bool:
        async with self._session_factory() as db:
            await db.execute(delete(CommentReply).where(CommentReply.comment_id == comment_id))
            result = await db.execute(delete(Comment).where(Comment.id == comment_id))
            await db.commit()
            return result.rowcount > 0

    async def list_comments(self, owner_uid: uuid.UUID, activity_id: str) -> list[CommentRecord]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Comment, User)
                .outerjoin(User, User.id == Comment.commenter_id)
                .where(
                    Comment.owner_id == owner_uid,
                    Comment.activity_id == activity_id,
                )
                .order_by(Comment.created_at.asc())
            )
            return [_comment_record(c, u) for c, u in result.all()]

    async def insert_reply(
        self, comment_id: uuid.UUID, replier_uid: uuid.UUID, text: str
    ) -> ReplyRecord:
        reply = CommentReply(comment_id=comment_id, replier_id=replier_uid, text=text)
        async with self._session_factory() as db:
            db.add(reply)
            await db.commit()
            await db.refresh(reply)
            replier = await db.get(User, replier_uid)
            return _reply_record(reply, replier)

    async def get_reply(self, comment_id: uuid.UUID, reply_id: uuid.UUID) -> ReplyRecord | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(CommentReply, User)
                .outerjoin(User, User.id == CommentReply.replier_id)
                .where(
                    CommentReply.id == reply_id,
                    CommentReply.comment_id == comment_id,
                )
            )
            row = result.first()
            return _reply_record(row[0], row[1]) if row else None

    async def delete_reply(self, reply_id: uuid.UUID) -> bool:
        async with self._session_factory() as db:
            result = await db.execute(delete(CommentReply).where(CommentReply.id == reply_id))
            await db.commit()
            return result.rowcount > 0

    async def list_replies(self, comment_id: uuid.UUID) -> list[ReplyRecord]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(CommentReply, User)
                .outerjoin(User, User.id == CommentReply.replier_id)
                .where(CommentReply.comment_id == comment_id)
                .order_by(CommentReply.created_at.asc())
            )
            return [_reply_record(r, u) for r, u in result.all()]
