"""Redis-backed caches for friend lists and feed/leaderboard snapshots.

Snapshots are guarded by a generation token: a load takes a token before it
starts fetching and may only publish its result while that token is still the
newest one. A slow load that finishes after a newer one started is discarded.
"""

import json
import logging
import uuid
from typing import Generic, TypeVar

from pydantic import BaseModel, TypeAdapter

from crewfit.schemas.graph import FriendResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_friend_list_adapter = TypeAdapter(list[FriendResponse])


class SnapshotCache(Generic[ModelT]):
    def __init__(self, redis_client, namespace: str, model: type[ModelT], ttl_seconds: int):
        self._redis = redis_client
        self._namespace = namespace
        self._model = model
        self._ttl = ttl_seconds

    def _generation_key(self, owner_uid: uuid.UUID) -> str:
        return f"{self._namespace}:generation:{owner_uid}"

    def _snapshot_key(self, owner_uid: uuid.UUID) -> str:
        return f"{self._namespace}:snapshot:{owner_uid}"

    async def begin(self, owner_uid: uuid.UUID) -> int:
        """Start a load and return its generation token."""
        return int(await self._redis.incr(self._generation_key(owner_uid)))

    async def is_current(self, owner_uid: uuid.UUID, generation: int) -> bool:
        current = await self._redis.get(self._generation_key(owner_uid))
        return current is None or int(current) == generation

    async def commit(self, owner_uid: uuid.UUID, generation: int, snapshot: ModelT) -> bool:
        """Publish ``snapshot`` unless a newer load has started since ``generation``."""
        if not await self.is_current(owner_uid, generation):
            logger.info(
                "Discarding stale %s snapshot for %s (generation %d)",
                self._namespace,
                owner_uid,
                generation,
            )
            return False

        body = json.dumps({
            "generation": generation,
            "snapshot": snapshot.model_dump(mode="json"),
        })
        await self._redis.set(self._snapshot_key(owner_uid), body, ex=self._ttl)
        return True

    async def load(self, owner_uid: uuid.UUID) -> ModelT | None:
        raw = await self._redis.get(self._snapshot_key(owner_uid))
        if raw is None:
            return None
        try:
            return self._model.model_validate(json.loads(raw)["snapshot"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping unreadable %s snapshot for %s", self._namespace, owner_uid)
            await self.invalidate(owner_uid)
            return None

    async def invalidate(self, owner_uid: uuid.UUID) -> None:
        await self._redis.delete(self._snapshot_key(owner_uid))


class FriendListCache:
    """Short-lived friend list cache; invalidating a user also drops their dependent snapshots."""

    def __init__(self, redis_client, ttl_seconds: int, dependents: tuple[SnapshotCache, ...] = ()):
        self._redis = redis_client
        self._ttl = ttl_seconds
        self._dependents = dependents

    @staticmethod
    def _key(uid: uuid.UUID) -> str:
        return f"friends:{uid}"

    async def get(self, uid: uuid.UUID) -> list[FriendResponse] | None:
        raw = await self._redis.get(self._key(uid))
        if raw is None:
            return None
        try:
            return _friend_list_adapter.validate_json(raw)
        except ValueError:
            await self._redis.delete(self._key(uid))
            return None

    async def set(self, uid: uuid.UUID, friends: list[FriendResponse]) -> None:
        await self._redis.set(
            self._key(uid),
            _friend_list_adapter.dump_json(friends).decode("utf-8"),
            ex=self._ttl,
        )

    async def invalidate(self, *uids: uuid.UUID) -> None:
        for uid in uids:
            await self._redis.delete(self._key(uid))
            for dependent in self._dependents:
                await dependent.invalidate(uid)
