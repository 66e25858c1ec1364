"""Tests for the admin-only /users endpoints."""

import pytest
from httpx import AsyncClient

from app.core.security import verify_password
from app.stores.user_store import UserStore


@pytest.mark.asyncio
async def test_create_user(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        "/api/v1/users",
        json={
            "firstName": "Grace",
            "lastName": "Hopper",
            "email": "Grace@Example.com",
            "phone": "+15550100",
            "password": "cobol-forever",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["email"] == "grace@example.com"
    assert data["firstName"] == "Grace"
    assert data["role"] == "user"
    assert data["status"] == "active"
    assert "password" not in data


@pytest.mark.asyncio
async def test_created_user_can_log_in(async_client: AsyncClient, admin_headers, login):
    await async_client.post(
        "/api/v1/users",
        json={"email": "new@example.com", "password": "first-pass"},
        headers=admin_headers,
    )
    resp = await login("new@example.com", password="first-pass")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_create_duplicate_email_rejected(async_client: AsyncClient, admin_headers):
    body = {"email": "twice@example.com", "password": "pw"}
    first = await async_client.post("/api/v1/users", json=body, headers=admin_headers)
    assert first.status_code == 201
    resp = await async_client.post("/api/v1/users", json=body, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "Email already registered"}


@pytest.mark.asyncio
async def test_create_user_validation(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        "/api/v1/users",
        json={"email": "x@example.com", "password": "pw", "role": "root"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert "Role must be one of" in resp.json()["message"]

    resp = await async_client.post("/api/v1/users", json={"email": "x@example.com"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required parameter: password"


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(make_user, login, async_client: AsyncClient):
    await make_user()
    token = (await login("ada@example.com")).json()["data"]["token"]
    resp = await async_client.get("/api/v1/users", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "message": "Admin privileges required"}


@pytest.mark.asyncio
async def test_anonymous_is_unauthorised(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/users")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_and_get_users(make_user, async_client: AsyncClient, admin_headers):
    user = await make_user()
    listed = await async_client.get("/api/v1/users", headers=admin_headers)
    assert listed.status_code == 200
    emails = {u["email"] for u in listed.json()["data"]}
    assert emails == {"root@example.com", "ada@example.com"}

    resp = await async_client.get(f"/api/v1/users/{user.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["lastName"] == "Lovelace"

    resp = await async_client.get("/api/v1/users/does-not-exist", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "User not found"}


@pytest.mark.asyncio
async def test_patch_user_password_rehash_rules(
    make_user, async_client: AsyncClient, admin_headers, db_session
):
    user = await make_user()
    original = user.password

    resp = await async_client.patch(
        f"/api/v1/users/{user.id}",
        json={"password": "correct horse battery staple", "firstName": "Augusta"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["firstName"] == "Augusta"

    await db_session.refresh(user)
    assert user.password == original

    resp = await async_client.patch(
        f"/api/v1/users/{user.id}", json={"password": "another-one"}, headers=admin_headers
    )
    assert resp.status_code == 200
    await db_session.refresh(user)
    assert user.password != original
    assert verify_password("another-one", user.password)


@pytest.mark.asyncio
async def test_patch_unknown_user(async_client: AsyncClient, admin_headers):
    resp = await async_client.patch("/api/v1/users/missing", json={"phone": "1"}, headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_banned_user_loses_access(make_user, login, async_client: AsyncClient, admin_headers):
    user = await make_user()
    token = (await login("ada@example.com")).json()["data"]["token"]

    resp = await async_client.patch(
        f"/api/v1/users/{user.id}", json={"status": "banned"}, headers=admin_headers
    )
    assert resp.status_code == 200

    resp = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert (await login("ada@example.com")).status_code == 400


@pytest.mark.asyncio
async def test_delete_user(make_user, login, async_client: AsyncClient, admin_headers, user_store: UserStore):
    user = await make_user()
    await login("ada@example.com")

    resp = await async_client.delete(f"/api/v1/users/{user.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"deleted": True}
    assert await user_store.tokens.find_by_user_id(user.id) == []

    resp = await async_client.delete(f"/api/v1/users/{user.id}", headers=admin_headers)
    assert resp.status_code == 404
