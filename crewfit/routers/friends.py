import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from crewfit.dependencies import get_current_user, get_relationship_graph
from crewfit.models.user import User
from crewfit.schemas.graph import (
    FriendEdgeRecord,
    FriendRequestResponse,
    FriendResponse,
    RequestResult,
    SendRequestBody,
)
from crewfit.services.relationship_graph import RelationshipGraph

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=list[FriendResponse])
async def list_friends(
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    return await graph.list_friends(user.id)


@router.get("/requests/incoming", response_model=list[FriendRequestResponse])
async def list_incoming_requests(
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    return await graph.list_incoming(user.id)


@router.get("/requests/outgoing", response_model=list[FriendRequestResponse])
async def list_outgoing_requests(
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    return await graph.list_outgoing(user.id)


@router.post("/requests", response_model=RequestResult)
async def send_request(
    data: SendRequestBody,
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    return await graph.send_request(user.id, data.to_uid)


@router.post("/requests/{request_id}/accept", response_model=FriendEdgeRecord)
async def accept_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    return await graph.accept_request(request_id, acting_uid=user.id)


@router.post("/requests/{request_id}/decline", status_code=204)
async def decline_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    if not await graph.decline_request(request_id, acting_uid=user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend request not found")


@router.delete("/requests/{request_id}", status_code=204)
async def cancel_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    if not await graph.cancel_request(request_id, acting_uid=user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend request not found")


@router.delete("/{friend_uid}", status_code=204)
async def remove_friend(
    friend_uid: uuid.UUID,
    user: User = Depends(get_current_user),
    graph: RelationshipGraph = Depends(get_relationship_graph),
):
    if not await graph.remove_friend(user.id, friend_uid):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend not found")
