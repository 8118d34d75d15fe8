"""
tests/test_users.py
Tests for registration, profile and role lookup.
"""

import pytest
from httpx import AsyncClient

from shared.models.models import Collections
from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_register_creates_user_with_default_role(client: AsyncClient, store):
    headers = auth_headers("fresh@decor.io")
    response = await client.post(
        "/users", headers=headers, json={"name": "Fresh User", "photoURL": "https://img/x.png"}
    )
    assert response.status_code == 200
    assert response.json()["inserted"] is True

    doc = await store.collection(Collections.USERS).find_one({"email": "fresh@decor.io"})
    assert doc["role"] == "user"
    assert doc["blocked"] is False
    assert doc["photoURL"] == "https://img/x.png"


@pytest.mark.asyncio
async def test_register_is_idempotent(client: AsyncClient, store, user: dict):
    response = await client.post("/users", headers=auth_headers(user), json={"name": "Again"})
    assert response.status_code == 200
    assert response.json()["inserted"] is False
    assert await store.collection(Collections.USERS).count({"email": user["email"]}) == 1


@pytest.mark.asyncio
async def test_get_me_returns_record(client: AsyncClient, decorator_user: dict):
    response = await client.get("/users/me", headers=auth_headers(decorator_user))
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == decorator_user["email"]
    assert data["role"] == "decorator"
    assert data["id"] == decorator_user["_id"]


@pytest.mark.asyncio
async def test_get_me_unregistered_is_404(client: AsyncClient):
    response = await client.get("/users/me", headers=auth_headers("ghost@decor.io"))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_role_endpoint(client: AsyncClient, admin_user: dict):
    response = await client.get("/users/role", headers=auth_headers(admin_user))
    assert response.json() == {"role": "admin"}

    response = await client.get("/users/role", headers=auth_headers("ghost@decor.io"))
    assert response.json() == {"role": "user"}
