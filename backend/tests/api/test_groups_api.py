import pytest


def _as(user):
    return {"X-User-Id": user.id}


@pytest.mark.asyncio
async def test_group_lifecycle(api_client, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")

    created = await api_client.post("/groups", json={"name": "  hikers ", "members": [bob.id]}, headers=_as(alice))
    assert created.status_code == 201
    group = created.json()
    assert group["name"] == "hikers"
    assert group["members"] == [alice.id, bob.id]

    listed = await api_client.get("/groups", headers=_as(bob))
    assert [g["id"] for g in listed.json()] == [group["id"]]
    assert (await api_client.get(f"/groups/{group['id']}", headers=_as(carol))).status_code == 404

    renamed = await api_client.patch(f"/groups/{group['id']}", json={"name": "climbers"}, headers=_as(alice))
    assert renamed.json()["name"] == "climbers"
    assert (await api_client.patch(f"/groups/{group['id']}", json={"name": "nope"}, headers=_as(bob))).status_code == 403

    added = await api_client.post(f"/groups/{group['id']}/members", json={"members": [carol.id]}, headers=_as(alice))
    assert added.json()["members"] == [alice.id, bob.id, carol.id]

    left = await api_client.delete(f"/groups/{group['id']}/members/{bob.id}", headers=_as(bob))
    assert left.status_code == 200
    assert left.json()["members"] == [alice.id, carol.id]

    creator = await api_client.delete(f"/groups/{group['id']}/members/{alice.id}", headers=_as(alice))
    assert creator.status_code == 422
    assert creator.json()["detail"] == "creator_immune"

    assert (await api_client.delete(f"/groups/{group['id']}", headers=_as(carol))).status_code == 403
    assert (await api_client.delete(f"/groups/{group['id']}", headers=_as(alice))).status_code == 200
    assert (await api_client.get("/groups", headers=_as(alice))).json() == []


@pytest.mark.asyncio
async def test_group_name_length_validated(api_client, make_user):
    alice = await make_user("alice")
    response = await api_client.post("/groups", json={"name": "ab"}, headers=_as(alice))
    assert response.status_code == 422
