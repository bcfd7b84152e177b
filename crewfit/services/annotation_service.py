import uuid

from crewfit.config import settings
from crewfit.errors import NotFoundError, PermissionDeniedError, ValidationError
from crewfit.schemas.annotations import (
    CommentRecord,
    ReactionRecord,
    ReactionResult,
    ReactionType,
    ReplyRecord,
)
from crewfit.services.relationship_graph import RelationshipGraph
from crewfit.stores.base import ActivitySource, AnnotationStore

ActivityKey = tuple[uuid.UUID, str]


class ReactionCommentStore:
    """Reactions, comments and replies attached to an (owner_uid, activity_id) key.

    A user holds at most one reaction per activity: reacting again with the
    same emoji removes it, a different emoji replaces it.

    Given an activity source and a friend graph, every call made on behalf of a
    user first checks that the key names a real activity and that the user is
    its owner or a friend of the owner. Without them keys are trusted, which is
    how the feed reads annotations for activities it has just fetched.
    """

    def __init__(
        self,
        store: AnnotationStore,
        activities: ActivitySource | None = None,
        graph: RelationshipGraph | None = None,
        max_text_length: int | None = None,
    ):
        self._store = store
        self._activities = activities
        self._graph = graph
        self._max_text_length = max_text_length or settings.COMMENT_MAX_LENGTH

    async def set_reaction(
        self, key: ActivityKey, user_uid: uuid.UUID, reaction_type: ReactionType
    ) -> ReactionResult:
        owner_uid, activity_id = key
        try:
            reaction_type = ReactionType(reaction_type)
        except ValueError:
            raise ValidationError(f"Unsupported reaction: {reaction_type!r}") from None
        await self.check_access(key, user_uid)

        existing = await self._store.get_reaction(owner_uid, activity_id, user_uid)
        if existing is not None and existing.reaction_type == reaction_type:
            await self._store.delete_reaction(owner_uid, activity_id, user_uid)
            return ReactionResult(removed=True)

        reaction = await self._store.put_reaction(owner_uid, activity_id, user_uid, reaction_type)
        return ReactionResult(removed=False, reaction=reaction)

    async def get_reactions(
        self, key: ActivityKey, viewer_uid: uuid.UUID | None = None
    ) -> list[ReactionRecord]:
        if viewer_uid is not None:
            await self.check_access(key, viewer_uid)
        owner_uid, activity_id = key
        return await self._store.list_reactions(owner_uid, activity_id)

    async def get_comments(
        self, key: ActivityKey, viewer_uid: uuid.UUID | None = None
    ) -> list[CommentRecord]:
        if viewer_uid is not None:
            await self.check_access(key, viewer_uid)
        owner_uid, activity_id = key
        return await self._store.list_comments(owner_uid, activity_id)

    async def add_comment(self, key: ActivityKey, user_uid: uuid.UUID, text: str) -> CommentRecord:
        owner_uid, activity_id = key
        await self.check_access(key, user_uid)
        text = self._clean_text(text, "Comment")
        return await self._store.insert_comment(owner_uid, activity_id, user_uid, text)

    async def delete_comment(
        self, key: ActivityKey, comment_id: uuid.UUID, requester_uid: uuid.UUID | None
    ) -> None:
        if requester_uid is None:
            raise RuntimeError("delete_comment requires an authenticated requester")

        owner_uid, activity_id = key
        comment = await self._store.get_comment(owner_uid, activity_id, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.commenter_uid != requester_uid:
            raise PermissionDeniedError("Only the author can delete this comment")

        await self._store.delete_comment(comment_id)

    async def add_reply(
        self, key: ActivityKey, comment_id: uuid.UUID, user_uid: uuid.UUID, text: str
    ) -> ReplyRecord:
        await self.check_access(key, user_uid)
        await self._require_comment(key, comment_id)
        text = self._clean_text(text, "Reply")
        return await self._store.insert_reply(comment_id, user_uid, text)

    async def get_replies(
        self, key: ActivityKey, comment_id: uuid.UUID, viewer_uid: uuid.UUID | None = None
    ) -> list[ReplyRecord]:
        if viewer_uid is not None:
            await self.check_access(key, viewer_uid)
        await self._require_comment(key, comment_id)
        return await self._store.list_replies(comment_id)

    async def delete_reply(
        self,
        key: ActivityKey,
        comment_id: uuid.UUID,
        reply_id: uuid.UUID,
        requester_uid: uuid.UUID | None,
    ) -> None:
        if requester_uid is None:
            raise RuntimeError("delete_reply requires an authenticated requester")

        await self._require_comment(key, comment_id)
        reply = await self._store.get_reply(comment_id, reply_id)
        if reply is None:
            raise NotFoundError("Reply not found")
        if reply.replier_uid != requester_uid:
            raise PermissionDeniedError("Only the author can delete this reply")

        await self._store.delete_reply(reply_id)

    async def check_access(self, key: ActivityKey, viewer_uid: uuid.UUID) -> None:
        """Raise NotFoundError for an unknown activity, PermissionDeniedError for a stranger."""
        owner_uid, activity_id = key
        if self._activities is not None:
            activity = await self._activities.get_activity(owner_uid, activity_id)
            if activity is None:
                raise NotFoundError("Activity not found")

        if viewer_uid == owner_uid or self._graph is None:
            return
        if not await self._graph.is_friend(viewer_uid, owner_uid):
            raise PermissionDeniedError("Only the owner and their friends can see this activity")

    async def _require_comment(self, key: ActivityKey, comment_id: uuid.UUID) -> CommentRecord:
        owner_uid, activity_id = key
        comment = await self._store.get_comment(owner_uid, activity_id, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def _clean_text(self, text: str | None, label: str) -> str:
        text = (text or "").strip()
        if not text:
            raise ValidationError(f"{label} text cannot be empty")
        if len(text) > self._max_text_length:
            raise ValidationError(
                f"{label} text cannot exceed {self._max_text_length} characters"
            )
        return text
