import uuid

from fastapi import APIRouter, Depends, Request

from crewfit.dependencies import (
    feed_snapshots,
    get_annotation_store,
    get_current_user,
    get_feed_service,
)
from crewfit.models.user import User
from crewfit.schemas.annotations import (
    CommentRecord,
    CommentRequest,
    ReactionRecord,
    ReactionRequest,
    ReactionResult,
    ReplyRecord,
)
from crewfit.schemas.feed import FeedResult
from crewfit.services.annotation_service import ReactionCommentStore
from crewfit.services.feed_aggregator import FeedService

router = APIRouter(tags=["feed"])

ACTIVITY_PATH = "/activities/{owner_uid}/{activity_id}"


@router.get("/feed", response_model=FeedResult)
async def get_feed(
    refresh: bool = False,
    user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    return await feed.load(user.id, refresh=refresh)


async def _drop_own_feed(req: Request, user: User) -> None:
    # The caller sees their own annotation change on the next feed load
    await feed_snapshots(req).invalidate(user.id)


@router.put(f"{ACTIVITY_PATH}/reaction", response_model=ReactionResult)
async def set_reaction(
    owner_uid: uuid.UUID,
    activity_id: str,
    data: ReactionRequest,
    req: Request,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    result = await annotations.set_reaction((owner_uid, activity_id), user.id, data.reaction_type)
    await _drop_own_feed(req, user)
    return result


@router.get(f"{ACTIVITY_PATH}/reactions", response_model=list[ReactionRecord])
async def get_reactions(
    owner_uid: uuid.UUID,
    activity_id: str,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    return await annotations.get_reactions((owner_uid, activity_id), viewer_uid=user.id)


@router.get(f"{ACTIVITY_PATH}/comments", response_model=list[CommentRecord])
async def get_comments(
    owner_uid: uuid.UUID,
    activity_id: str,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    return await annotations.get_comments((owner_uid, activity_id), viewer_uid=user.id)


@router.post(f"{ACTIVITY_PATH}/comments", response_model=CommentRecord, status_code=201)
async def add_comment(
    owner_uid: uuid.UUID,
    activity_id: str,
    data: CommentRequest,
    req: Request,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    comment = await annotations.add_comment((owner_uid, activity_id), user.id, data.text)
    await _drop_own_feed(req, user)
    return comment


@router.delete(f"{ACTIVITY_PATH}/comments/{{comment_id}}", status_code=204)
async def delete_comment(
    owner_uid: uuid.UUID,
    activity_id: str,
    comment_id: uuid.UUID,
    req: Request,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    await annotations.delete_comment((owner_uid, activity_id), comment_id, user.id)
    await _drop_own_feed(req, user)


@router.get(f"{ACTIVITY_PATH}/comments/{{comment_id}}/replies", response_model=list[ReplyRecord])
async def get_replies(
    owner_uid: uuid.UUID,
    activity_id: str,
    comment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    return await annotations.get_replies((owner_uid, activity_id), comment_id, viewer_uid=user.id)


@router.post(
    f"{ACTIVITY_PATH}/comments/{{comment_id}}/replies",
    response_model=ReplyRecord,
    status_code=201,
)
async def add_reply(
    owner_uid: uuid.UUID,
    activity_id: str,
    comment_id: uuid.UUID,
    data: CommentRequest,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    return await annotations.add_reply((owner_uid, activity_id), comment_id, user.id, data.text)


@router.delete(f"{ACTIVITY_PATH}/comments/{{comment_id}}/replies/{{reply_id}}", status_code=204)
async def delete_reply(
    owner_uid: uuid.UUID,
    activity_id: str,
    comment_id: uuid.UUID,
    reply_id: uuid.UUID,
    user: User = Depends(get_current_user),
    annotations: ReactionCommentStore = Depends(get_annotation_store),
):
    await annotations.delete_reply((owner_uid, activity_id), comment_id, reply_id, user.id)
