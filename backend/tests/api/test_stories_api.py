import pytest

JPEG = b"\xff\xd8\xff" + b"\x00" * 64


def _as(user):
    return {"X-User-Id": user.id}


async def _post_story(client, user, longitude=-73.5772, latitude=45.5048):
    return await client.post(
        "/stories/media",
        params={"longitude": longitude, "latitude": latitude},
        content=JPEG,
        headers={**_as(user), "Content-Type": "image/jpeg"},
    )


@pytest.mark.asyncio
async def test_story_feed_and_expiry(api_client, make_user, befriend, clock):
    alice = await make_user("alice")
    bob = await make_user("bob")
    eve = await make_user("eve")
    await befriend(alice, bob)

    created = await _post_story(api_client, bob)
    assert created.status_code == 201
    story = created.json()
    assert story["location"] == {"type": "Point", "coordinates": [-73.5772, 45.5048]}
    assert story["media"]["type"] == "Image"

    feed = await api_client.get("/stories", headers=_as(alice))
    assert [s["id"] for s in feed.json()] == [story["id"]]
    assert (await api_client.get("/stories", headers=_as(eve))).json() == []
    assert (await api_client.get(f"/stories/{story['id']}", headers=_as(eve))).status_code == 200

    clock.advance(hours=25)
    assert (await api_client.get("/stories", headers=_as(alice))).json() == []
    assert (await api_client.get(f"/stories/{story['id']}", headers=_as(eve))).status_code == 404
    assert (await api_client.get(f"/stories/{story['id']}", headers=_as(alice))).status_code == 200


@pytest.mark.asyncio
async def test_nearby_stories(api_client, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    near = (await _post_story(api_client, bob, longitude=0.0, latitude=0.001)).json()
    await _post_story(api_client, bob, longitude=10.0, latitude=10.0)

    response = await api_client.get("/stories/nearby", params={"longitude": 0.0, "latitude": 0.0}, headers=_as(alice))
    assert response.status_code == 200
    results = response.json()
    assert [s["id"] for s in results] == [near["id"]]
    assert results[0]["distance_m"] == pytest.approx(111.19, abs=0.5)

    bad = await api_client.get("/stories/nearby", params={"longitude": 200.0, "latitude": 0.0}, headers=_as(alice))
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_story_delete_by_owner_only(api_client, make_user, media_store):
    alice = await make_user("alice")
    bob = await make_user("bob")
    story = (await _post_story(api_client, alice)).json()

    assert (await api_client.delete(f"/stories/{story['id']}", headers=_as(bob))).status_code == 404
    assert (await api_client.delete(f"/stories/{story['id']}", headers=_as(alice))).status_code == 200
    assert media_store.released == [story["media"]["url"]]


@pytest.mark.asyncio
async def test_story_requires_media(api_client, make_user):
    alice = await make_user("alice")
    response = await api_client.post(
        "/stories/media",
        params={"longitude": 0.0, "latitude": 0.0},
        content=b"",
        headers={**_as(alice), "Content-Type": "image/png"},
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "media_empty"


@pytest.mark.asyncio
async def test_story_from_stored_media_reference(api_client, make_user, befriend, media_store):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await befriend(alice, bob)
    url = "memory://01J0STORY.jpg"
    media_store.objects[url] = JPEG

    created = await api_client.post(
        "/stories",
        json={"media": {"type": "Image", "url": url}, "location": {"type": "Point", "coordinates": [2.35, 48.85]}},
        headers=_as(bob),
    )
    assert created.status_code == 201
    story = created.json()
    assert story["media"] == {"type": "Image", "url": url, "duration": None}
    assert story["location"] == {"type": "Point", "coordinates": [2.35, 48.85]}
    assert [s["id"] for s in (await api_client.get("/stories", headers=_as(alice))).json()] == [story["id"]]

    assert (await api_client.delete(f"/stories/{story['id']}", headers=_as(bob))).status_code == 200
    assert media_store.released == [url]


@pytest.mark.asyncio
async def test_story_reference_validates_location(api_client, make_user):
    alice = await make_user("alice")
    response = await api_client.post(
        "/stories",
        json={"media": {"type": "Image", "url": "memory://x.jpg"}, "location": {"type": "Point", "coordinates": [200.0, 0.0]}},
        headers=_as(alice),
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "longitude_out_of_range"
