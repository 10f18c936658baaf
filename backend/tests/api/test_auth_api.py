from uuid import uuid4

import pytest


async def _register(client, username, email=None, password="correct horse battery"):
    return await client.post(
        "/auth/register",
        json={"username": username, "email": email or f"{username}@example.com", "password": password},
    )


@pytest.mark.asyncio
async def test_register_login_and_fetch_profile(api_client):
    response = await _register(api_client, "alice")
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"

    me = await api_client.get("/users/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    profile = me.json()
    assert profile["username"] == "alice"
    assert "password_hash" not in profile
    assert "password" not in profile

    login = await api_client.post("/auth/login", json={"credential": "alice@example.com", "password": "correct horse battery"})
    assert login.status_code == 200
    assert login.json()["token"]


@pytest.mark.asyncio
async def test_register_conflict_and_validation(api_client):
    assert (await _register(api_client, "alice")).status_code == 201
    duplicate = await _register(api_client, "alice", email="second@example.com")
    assert duplicate.status_code == 409
    assert "request_id" in duplicate.json()

    short = await _register(api_client, "bob", password="short")
    assert short.status_code == 422
    assert short.json()["detail"] == "validation_error"


@pytest.mark.asyncio
async def test_bad_credentials_rejected(api_client):
    await _register(api_client, "alice")
    response = await api_client.post("/auth/login", json={"credential": "alice", "password": "wrong password!!"})
    assert response.status_code == 401
    assert response.json()["detail"] == "invalid_credentials"


@pytest.mark.asyncio
async def test_protected_routes_require_token(api_client):
    assert (await api_client.get("/users/me")).status_code == 401
    bad = await api_client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "invalid_token"


@pytest.mark.asyncio
async def test_dev_headers_ignored_outside_dev(api_client, make_user):
    from snapshoot.settings import settings

    alice = await make_user("alice")
    settings.environment = "production"
    response = await api_client.get("/users/me", headers={"X-User-Id": alice.id})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_user_listing_is_admin_only(api_client, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    denied = await api_client.get("/users", headers={"X-User-Id": alice.id})
    assert denied.status_code == 403
    allowed = await api_client.get("/users", headers={"X-User-Id": alice.id, "X-User-Role": "admin"})
    assert allowed.status_code == 200
    assert {user["id"] for user in allowed.json()} == {alice.id, bob.id}


@pytest.mark.asyncio
async def test_admin_can_edit_and_delete_other_accounts(api_client, make_user):
    admin_headers = {"X-User-Id": str(uuid4()), "X-User-Role": "admin"}
    bob = await make_user("bob")

    patched = await api_client.patch(f"/users/{bob.id}", json={"bio": "climber", "role": "admin"}, headers=admin_headers)
    assert patched.status_code == 200
    assert patched.json()["bio"] == "climber"
    assert patched.json()["role"] == "admin"

    assert (await api_client.delete(f"/users/{bob.id}", headers=admin_headers)).status_code == 200
    assert (await api_client.get(f"/users/{bob.id}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_user_updates_own_profile(api_client, make_user):
    alice = await make_user("alice")
    headers = {"X-User-Id": alice.id}
    response = await api_client.patch("/users/me", json={"bio": "  hello  ", "username": "Alicia"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["bio"] == "hello"
    assert response.json()["username"] == "alicia"

    forbidden = await api_client.patch(f"/users/{alice.id}", json={"bio": "x"}, headers=headers)
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_admin_creates_account_with_role(api_client, make_user):
    alice = await make_user("alice")
    payload = {"username": "Moderator", "email": "mod@example.com", "password": "correct horse battery", "role": "admin"}

    denied = await api_client.post("/users", json=payload, headers={"X-User-Id": alice.id})
    assert denied.status_code == 403

    admin_headers = {"X-User-Id": alice.id, "X-User-Role": "admin"}
    created = await api_client.post("/users", json=payload, headers=admin_headers)
    assert created.status_code == 201
    body = created.json()
    assert (body["username"], body["email"], body["role"]) == ("moderator", "mod@example.com", "admin")
    assert "password_hash" not in body

    duplicate = await api_client.post("/users", json={**payload, "email": "other@example.com"}, headers=admin_headers)
    assert duplicate.status_code == 409

    login = await api_client.post("/auth/login", json={"credential": "mod@example.com", "password": "correct horse battery"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_dev_header_must_be_a_uuid(api_client):
    response = await api_client.get("/users/me", headers={"X-User-Id": "not-a-uuid"})
    assert response.status_code == 401
    assert response.json()["detail"] == "invalid_token"
