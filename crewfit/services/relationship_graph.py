import logging
import uuid

from crewfit.errors import ConflictCode, ConflictError, NotFoundError, ValidationError
from crewfit.schemas.graph import (
    EdgeStatus,
    FriendEdgeRecord,
    FriendRequestResponse,
    FriendResponse,
    RequestResult,
)
from crewfit.schemas.users import UserProfile
from crewfit.services.cache_service import FriendListCache
from crewfit.stores.base import FriendGraphStore, ProfileStore

logger = logging.getLogger(__name__)


class RelationshipGraph:
    """Friend-request lifecycle and friendship queries.

    Per unordered pair the edge moves ``none -> pending(requester) -> accepted``;
    decline/cancel take ``pending -> none`` and remove_friend takes
    ``accepted -> none``. The store keeps at most one edge per pair, so an
    accepted pair can only become pending again after it is removed.
    """

    def __init__(
        self,
        store: FriendGraphStore,
        profiles: ProfileStore,
        cache: FriendListCache | None = None,
    ):
        self._store = store
        self._profiles = profiles
        self._cache = cache

    async def send_request(self, from_uid: uuid.UUID, to_uid: uuid.UUID) -> RequestResult:
        """Create a pending request, or report why not.

        If ``to_uid`` already asked ``from_uid``, no second edge is created and
        the result is ``already_received`` so the caller can offer "Accept".
        """
        try:
            edge = await self._create_request(from_uid, to_uid)
        except ConflictError as exc:
            logger.info("Friend request %s -> %s rejected: %s", from_uid, to_uid, exc.code)
            return RequestResult(success=False, error_code=exc.code)

        await self._invalidate(from_uid, to_uid)
        return RequestResult(success=True, request_id=edge.id)

    async def _create_request(self, from_uid: uuid.UUID, to_uid: uuid.UUID) -> FriendEdgeRecord:
        if from_uid == to_uid:
            raise ValidationError("Cannot send a friend request to yourself")

        if await self._profiles.get_profile(to_uid) is None:
            raise NotFoundError("User not found")

        existing = await self._store.find_edge(from_uid, to_uid)
        if existing is None:
            edge = await self._store.create_pending(from_uid, to_uid)
            if edge is not None:
                return edge
            # Another request for this pair landed first; classify against it
            existing = await self._store.find_edge(from_uid, to_uid)
            if existing is None:
                raise ConflictError(ConflictCode.ALREADY_SENT)

        raise ConflictError(self._classify(existing, from_uid))

    @staticmethod
    def _classify(edge: FriendEdgeRecord, from_uid: uuid.UUID) -> ConflictCode:
        if edge.status == EdgeStatus.ACCEPTED:
            return ConflictCode.ALREADY_FRIENDS
        if edge.requester_uid == from_uid:
            return ConflictCode.ALREADY_SENT
        return ConflictCode.ALREADY_RECEIVED

    async def accept_request(
        self, request_id: uuid.UUID, acting_uid: uuid.UUID | None = None
    ) -> FriendEdgeRecord:
        """Turn a pending request into a friendship.

        Raises NotFoundError when the request was already accepted, declined or
        cancelled elsewhere, or when ``acting_uid`` is not its recipient.
        """
        if acting_uid is not None:
            await self._require_pending(request_id, acting_uid, "recipient")

        edge = await self._store.promote(request_id)
        if edge is None:
            raise NotFoundError("Friend request not found")

        await self._invalidate(edge.requester_uid, edge.recipient_uid)
        return edge

    async def decline_request(
        self, request_id: uuid.UUID, acting_uid: uuid.UUID | None = None
    ) -> bool:
        """Remove a pending request; returns False if it was already gone."""
        if acting_uid is not None:
            await self._require_pending(request_id, acting_uid, "recipient")
        return await self._drop_pending(request_id)

    async def cancel_request(
        self, request_id: uuid.UUID, acting_uid: uuid.UUID | None = None
    ) -> bool:
        if acting_uid is not None:
            await self._require_pending(request_id, acting_uid, "requester")
        return await self._drop_pending(request_id)

    async def _drop_pending(self, request_id: uuid.UUID) -> bool:
        edge = await self._store.delete_edge(request_id, status=EdgeStatus.PENDING)
        if edge is None:
            return False
        await self._invalidate(edge.requester_uid, edge.recipient_uid)
        return True

    async def _require_pending(
        self, request_id: uuid.UUID, acting_uid: uuid.UUID, role: str
    ) -> FriendEdgeRecord:
        edge = await self._store.get_edge(request_id)
        party = None
        if edge is not None:
            party = edge.recipient_uid if role == "recipient" else edge.requester_uid
        if edge is None or edge.status != EdgeStatus.PENDING or party != acting_uid:
            raise NotFoundError("Friend request not found")
        return edge

    async def remove_friend(self, a: uuid.UUID, b: uuid.UUID) -> bool:
        edge = await self._store.delete_pair(a, b, EdgeStatus.ACCEPTED)
        if edge is None:
            return False
        await self._invalidate(a, b)
        return True

    async def list_friends(self, uid: uuid.UUID) -> list[FriendResponse]:
        if self._cache is not None:
            cached = await self._cache.get(uid)
            if cached is not None:
                return cached

        edges = await self._store.list_edges(uid, EdgeStatus.ACCEPTED)
        others = [edge.other(uid) for edge in edges]
        profiles = await self._profiles.get_profiles(others)

        friends = [
            FriendResponse(
                **self._profile_for(other, profiles).model_dump(),
                since=edge.accepted_at or edge.created_at,
            )
            for edge, other in zip(edges, others)
        ]
        friends.sort(key=lambda f: ((f.username or "").lower(), str(f.uid)))

        if self._cache is not None:
            await self._cache.set(uid, friends)
        return friends

    async def list_incoming(self, uid: uuid.UUID) -> list[FriendRequestResponse]:
        edges = await self._store.list_edges(uid, EdgeStatus.PENDING, role="recipient")
        return await self._request_views(edges, lambda e: e.requester_uid)

    async def list_outgoing(self, uid: uuid.UUID) -> list[FriendRequestResponse]:
        edges = await self._store.list_edges(uid, EdgeStatus.PENDING, role="requester")
        return await self._request_views(edges, lambda e: e.recipient_uid)

    async def is_friend(self, a: uuid.UUID, b: uuid.UUID) -> bool:
        edge = await self._store.find_edge(a, b)
        return edge is not None and edge.status == EdgeStatus.ACCEPTED

    async def has_pending_from(self, a: uuid.UUID, b: uuid.UUID) -> bool:
        """True if ``a`` has a pending request waiting on ``b``."""
        edge = await self._store.find_edge(a, b)
        return (
            edge is not None
            and edge.status == EdgeStatus.PENDING
            and edge.requester_uid == a
        )

    async def _request_views(self, edges, counterpart) -> list[FriendRequestResponse]:
        uids = [counterpart(edge) for edge in edges]
        profiles = await self._profiles.get_profiles(uids)
        return [
            FriendRequestResponse(
                id=edge.id,
                requester_uid=edge.requester_uid,
                recipient_uid=edge.recipient_uid,
                created_at=edge.created_at,
                user=self._profile_for(uid, profiles),
            )
            for edge, uid in zip(edges, uids)
        ]

    @staticmethod
    def _profile_for(uid: uuid.UUID, profiles: dict[uuid.UUID, UserProfile]) -> UserProfile:
        return profiles.get(uid) or UserProfile(uid=uid)

    async def _invalidate(self, *uids: uuid.UUID) -> None:
        if self._cache is not None:
            await self._cache.invalidate(*uids)
