"""End-to-end flows over the HTTP surface using real tokens."""

import pytest

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def _signup(client, username):
    response = await client.post(
        "/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": "correct horse battery"},
    )
    assert response.status_code == 201
    headers = {"Authorization": f"Bearer {response.json()['token']}"}
    me = await client.get("/users/me", headers=headers)
    return me.json()["id"], headers


@pytest.mark.asyncio
async def test_befriend_message_and_delete(api_client, media_store):
    u1, h1 = await _signup(api_client, "uno")
    u2, h2 = await _signup(api_client, "dos")

    edge = (await api_client.post(f"/friends/request/{u2}", headers=h1)).json()
    assert edge["status"] == "pending"
    assert (await api_client.post(f"/friends/accept/{edge['id']}", headers=h2)).status_code == 200
    assert [user["id"] for user in (await api_client.get("/friends", headers=h2)).json()] == [u1]

    sent = await api_client.post(f"/messages/direct/{u2}", json={"content": "hi"}, headers=h1)
    assert sent.status_code == 201
    with_media = await api_client.post(
        f"/messages/direct/{u2}/media",
        content=PNG,
        headers={**h1, "Content-Type": "image/png"},
    )
    history = (await api_client.get(f"/messages/direct/{u1}", headers=h2)).json()["items"]
    assert [item["id"] for item in history] == [with_media.json()["id"], sent.json()["id"]]

    for message in (sent.json(), with_media.json()):
        assert (await api_client.delete(f"/messages/{message['id']}", headers=h1)).status_code == 200
    assert (await api_client.get(f"/messages/direct/{u1}", headers=h2)).json()["items"] == []
    assert media_store.released == [with_media.json()["media"]["url"]]


@pytest.mark.asyncio
async def test_group_creator_immune_and_last_member(api_client):
    u1, h1 = await _signup(api_client, "uno")
    u2, h2 = await _signup(api_client, "dos")
    group = (await api_client.post("/groups", json={"name": "pair", "members": [u2]}, headers=h1)).json()

    assert (await api_client.delete(f"/groups/{group['id']}/members/{u1}", headers=h2)).status_code == 403
    kicked = await api_client.delete(f"/groups/{group['id']}/members/{u2}", headers=h1)
    assert kicked.json()["members"] == [u1]
    last = await api_client.delete(f"/groups/{group['id']}/members/{u1}", headers=h1)
    assert last.status_code == 422
    assert last.json()["detail"] == "last_member"


@pytest.mark.asyncio
async def test_story_visible_nearby_until_expiry(api_client, clock):
    u1, h1 = await _signup(api_client, "uno")
    _, h2 = await _signup(api_client, "dos")
    story = (
        await api_client.post(
            "/stories/media",
            params={"longitude": 2.35, "latitude": 48.85},
            content=PNG,
            headers={**h1, "Content-Type": "image/png"},
        )
    ).json()
    assert story["user_id"] == u1

    # roughly 100 m north of the story
    nearby_query = {"longitude": 2.35, "latitude": 48.8509, "radius": 5000}
    found = (await api_client.get("/stories/nearby", params=nearby_query, headers=h2)).json()
    assert [s["id"] for s in found] == [story["id"]]
    assert 90 < found[0]["distance_m"] < 110

    clock.advance(hours=24, seconds=1)
    assert (await api_client.get("/stories/nearby", params=nearby_query, headers=h2)).json() == []
    assert (await api_client.get(f"/stories/{story['id']}", headers=h1)).status_code == 200
