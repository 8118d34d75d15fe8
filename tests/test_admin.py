"""
tests/test_admin.py
Tests for admin-only user moderation: listing, role changes, blocking, deletion.
"""

import pytest
from httpx import AsyncClient

from shared.models.models import Collections
from tests.conftest import BOOKING_PAYLOAD, auth_headers


# ── Access Control ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_user_cannot_access_admin_endpoints(client: AsyncClient, user: dict):
    response = await client.get("/admin/users", headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_decorator_cannot_access_admin_endpoints(client: AsyncClient, decorator_user: dict):
    response = await client.get("/admin/users", headers=auth_headers(decorator_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unauthenticated_cannot_access_admin(client: AsyncClient):
    response = await client.get("/admin/users")
    assert response.status_code == 401


# ── Listing ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_users_filtered_by_role(
    client: AsyncClient, admin_user: dict, user: dict, decorator_user: dict
):
    response = await client.get("/admin/users", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert {u["email"] for u in response.json()} == {
        admin_user["email"], user["email"], decorator_user["email"],
    }

    response = await client.get(
        "/admin/users", headers=auth_headers(admin_user), params={"role": "decorator"}
    )
    assert [u["email"] for u in response.json()] == [decorator_user["email"]]


# ── Role Changes ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_change_role(client: AsyncClient, store, admin_user: dict, user: dict):
    response = await client.patch(
        f"/admin/users/{user['email']}/role", headers=auth_headers(admin_user), json={"role": "decorator"}
    )
    assert response.status_code == 200

    account = await store.collection(Collections.USERS).find_one({"email": user["email"]})
    assert account["role"] == "decorator"

    # The new role takes effect on the next request
    response = await client.get("/services/decorator", headers=auth_headers(user))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_change_role_rejects_unknown_role(client: AsyncClient, admin_user: dict, user: dict):
    response = await client.patch(
        f"/admin/users/{user['email']}/role", headers=auth_headers(admin_user), json={"role": "superuser"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_change_role_missing_user_is_404(client: AsyncClient, admin_user: dict):
    response = await client.patch(
        "/admin/users/ghost@decor.io/role", headers=auth_headers(admin_user), json={"role": "user"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_demote_self(client: AsyncClient, store, admin_user: dict):
    response = await client.patch(
        f"/admin/users/{admin_user['email']}/role", headers=auth_headers(admin_user), json={"role": "user"}
    )
    assert response.status_code == 400

    account = await store.collection(Collections.USERS).find_one({"email": admin_user["email"]})
    assert account["role"] == "admin"


# ── Blocking ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_blocked_user_is_denied_then_unblocked(client: AsyncClient, admin_user: dict, user: dict):
    url = f"/admin/users/{user['email']}/block"

    response = await client.patch(url, headers=auth_headers(admin_user), json={"blocked": True})
    assert response.status_code == 200

    response = await client.post("/bookings", headers=auth_headers(user), json=BOOKING_PAYLOAD)
    assert response.status_code == 403
    assert response.json()["code"] == "ACCESS_DENIED"

    await client.patch(url, headers=auth_headers(admin_user), json={"blocked": False})
    response = await client.post("/bookings", headers=auth_headers(user), json=BOOKING_PAYLOAD)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_admin_cannot_block_self(client: AsyncClient, admin_user: dict):
    response = await client.patch(
        f"/admin/users/{admin_user['email']}/block", headers=auth_headers(admin_user), json={"blocked": True}
    )
    assert response.status_code == 400


# ── Deletion ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_user(client: AsyncClient, store, admin_user: dict, user: dict):
    response = await client.delete(f"/admin/users/{user['email']}", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert await store.collection(Collections.USERS).find_one({"email": user["email"]}) is None

    response = await client.delete(f"/admin/users/{user['email']}", headers=auth_headers(admin_user))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(client: AsyncClient, admin_user: dict):
    response = await client.delete(f"/admin/users/{admin_user['email']}", headers=auth_headers(admin_user))
    assert response.status_code == 400
