"""
tests/conftest.py
Shared fixtures: the real app over ASGI with the in-memory document store,
fakeredis for the JWT deny-list, and seeded users for each role.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("STORE_BACKEND", "memory")

from typing import AsyncGenerator, Union

import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis
from httpx import ASGITransport, AsyncClient

from config.database import ensure_indexes, get_store
from config.redis_client import get_redis
from main import app
from services.payment.gateway import get_payment_gateway
from shared.models.models import Collections, UserRole, user_document
from shared.utils.memory_store import InMemoryDocumentStore
from shared.utils.security import create_access_token


def auth_headers(user: Union[dict, str]) -> dict:
    """Bearer header for a seeded user document or a bare email."""
    email = user if isinstance(user, str) else user["email"]
    token, _ = create_access_token(email)
    return {"Authorization": f"Bearer {token}"}


# ── Infrastructure ─────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    await ensure_indexes(store)
    return store


@pytest_asyncio.fixture
async def redis():
    client = fake_aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def client(store, redis) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_payment_gateway] = lambda: None

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Users ──────────────────────────────────────────────────────────────────────

async def _seed_user(store, email: str, name: str, role: UserRole) -> dict:
    doc = user_document(email, name, role=role)
    await store.collection(Collections.USERS).insert_one(doc)
    return doc


@pytest_asyncio.fixture
async def user(store) -> dict:
    return await _seed_user(store, "customer@decor.io", "Test Customer", UserRole.USER)


@pytest_asyncio.fixture
async def decorator_user(store) -> dict:
    return await _seed_user(store, "decorator@decor.io", "Test Decorator", UserRole.DECORATOR)


@pytest_asyncio.fixture
async def admin_user(store) -> dict:
    return await _seed_user(store, "admin@decor.io", "Test Admin", UserRole.ADMIN)


# ── Lifecycle Data ─────────────────────────────────────────────────────────────

BOOKING_PAYLOAD = {
    "serviceType": "Wedding Stage",
    "eventType": "Wedding",
    "date": "2026-12-12",
    "time": "18:00",
    "location": "Dhaka, Gulshan 2",
}


@pytest_asyncio.fixture
async def booking(client: AsyncClient, user: dict) -> dict:
    """Unpaid booking owned by ``user``."""
    response = await client.post("/bookings", headers=auth_headers(user), json=BOOKING_PAYLOAD)
    assert response.status_code == 201
    return {**BOOKING_PAYLOAD, "_id": response.json()["id"], "userEmail": user["email"]}


@pytest_asyncio.fixture
async def paid_booking(client: AsyncClient, user: dict, booking: dict) -> dict:
    response = await client.post(
        "/payments",
        headers=auth_headers(user),
        json={"bookingId": booking["_id"], "amount": 1000.00, "transactionId": "pi_test_1000"},
    )
    assert response.status_code == 201
    return booking


@pytest_asyncio.fixture
async def service(
    client: AsyncClient, admin_user: dict, decorator_user: dict, paid_booking: dict
) -> dict:
    """Service in status Assigned for ``paid_booking``, assigned to ``decorator_user``."""
    response = await client.post(
        "/services",
        headers=auth_headers(admin_user),
        json={
            "bookingId": paid_booking["_id"],
            "decoratorEmail": decorator_user["email"],
            "decoratorPhone": "+8801700000000",
        },
    )
    assert response.status_code == 201
    return response.json()
