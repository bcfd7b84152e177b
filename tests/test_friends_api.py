import pytest


@pytest.mark.asyncio
async def test_list_friends_empty(client):
    response = await client.get("/friends")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_send_and_accept_request(client, act_as, test_user, second_user):
    response = await client.post("/friends/requests", json={"to_uid": str(second_user.id)})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    request_id = data["request_id"]

    outgoing = (await client.get("/friends/requests/outgoing")).json()
    assert [r["user"]["username"] for r in outgoing] == ["bob"]

    act_as(second_user)
    incoming = (await client.get("/friends/requests/incoming")).json()
    assert [r["id"] for r in incoming] == [request_id]
    assert incoming[0]["user"]["username"] == "alice"

    response = await client.post(f"/friends/requests/{request_id}/accept")
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    friends = (await client.get("/friends")).json()
    assert [f["username"] for f in friends] == ["alice"]

    act_as(test_user)
    friends = (await client.get("/friends")).json()
    assert [f["username"] for f in friends] == ["bob"]


@pytest.mark.asyncio
async def test_duplicate_request_reports_already_sent(client, second_user):
    await client.post("/friends/requests", json={"to_uid": str(second_user.id)})
    response = await client.post("/friends/requests", json={"to_uid": str(second_user.id)})

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "request_id": None,
        "error_code": "already_sent",
    }


@pytest.mark.asyncio
async def test_mutual_request_reports_already_received(client, act_as, test_user, second_user):
    await client.post("/friends/requests", json={"to_uid": str(second_user.id)})

    act_as(second_user)
    response = await client.post("/friends/requests", json={"to_uid": str(test_user.id)})
    assert response.json()["error_code"] == "already_received"
    assert len((await client.get("/friends/requests/outgoing")).json()) == 0


@pytest.mark.asyncio
async def test_request_to_self_is_400(client, test_user):
    response = await client.post("/friends/requests", json={"to_uid": str(test_user.id)})
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_request_to_unknown_user_is_404(client):
    response = await client.post(
        "/friends/requests", json={"to_uid": "00000000-0000-0000-0000-000000000001"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_requester_cannot_accept_own_request(client, second_user):
    request_id = (
        await client.post("/friends/requests", json={"to_uid": str(second_user.id)})
    ).json()["request_id"]

    response = await client.post(f"/friends/requests/{request_id}/accept")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_decline_request(client, act_as, test_user, second_user):
    request_id = (
        await client.post("/friends/requests", json={"to_uid": str(second_user.id)})
    ).json()["request_id"]

    act_as(second_user)
    response = await client.post(f"/friends/requests/{request_id}/decline")
    assert response.status_code == 204

    response = await client.post(f"/friends/requests/{request_id}/accept")
    assert response.status_code == 404

    act_as(test_user)
    assert (await client.get("/friends/requests/outgoing")).json() == []


@pytest.mark.asyncio
async def test_cancel_request(client, second_user):
    request_id = (
        await client.post("/friends/requests", json={"to_uid": str(second_user.id)})
    ).json()["request_id"]

    response = await client.delete(f"/friends/requests/{request_id}")
    assert response.status_code == 204
    assert (await client.get("/friends/requests/outgoing")).json() == []

    response = await client.delete(f"/friends/requests/{request_id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_remove_friend(client, act_as, test_user, second_user):
    request_id = (
        await client.post("/friends/requests", json={"to_uid": str(second_user.id)})
    ).json()["request_id"]
    act_as(second_user)
    await client.post(f"/friends/requests/{request_id}/accept")

    response = await client.delete(f"/friends/{test_user.id}")
    assert response.status_code == 204
    assert (await client.get("/friends")).json() == []

    act_as(test_user)
    assert (await client.get("/friends")).json() == []
    response = await client.delete(f"/friends/{second_user.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search_users_by_prefix(client, second_user, third_user):
    response = await client.get("/users/search", params={"q": "B"})
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == ["bob"]

    # The caller never appears in their own results
    response = await client.get("/users/search", params={"q": "al"})
    assert response.json() == []

    response = await client.get("/users/search", params={"q": ""})
    assert response.json() == []


@pytest.mark.asyncio
async def test_username_availability(client, second_user):
    response = await client.get("/users/username-available", params={"username": "Bob"})
    assert response.status_code == 200
    assert response.json() == {"username": "bob", "available": False}

    response = await client.get("/users/username-available", params={"username": "new_name"})
    assert response.json()["available"] is True

    response = await client.get("/users/username-available", params={"username": "no spaces!"})
    assert response.status_code == 400
