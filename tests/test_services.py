"""
tests/test_services.py
Tests for service assignment, the status machine, cash-out and the
tracking timeline.
"""

import pytest
from httpx import AsyncClient

from shared.models.models import Collections, service_document
from tests.conftest import auth_headers


# ── Assignment ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_assign_service(client: AsyncClient, store, service: dict, paid_booking: dict, decorator_user: dict):
    assert service["status"] == "Assigned"
    assert service["price"] == 0
    assert service["bookingId"] == paid_booking["_id"]
    assert service["serviceType"] == "Wedding Stage"
    assert service["decoratorName"] == "Test Decorator"

    booking = await store.collection(Collections.BOOKINGS).find_one({"_id": paid_booking["_id"]})
    assert booking["decoratorEmail"] == decorator_user["email"]


@pytest.mark.asyncio
async def test_assign_twice_is_rejected(
    client: AsyncClient, store, admin_user: dict, decorator_user: dict, paid_booking: dict, service: dict
):
    response = await client.post(
        "/services",
        headers=auth_headers(admin_user),
        json={"bookingId": paid_booking["_id"], "decoratorEmail": decorator_user["email"]},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "DUPLICATE_ASSIGNMENT"
    assert await store.collection(Collections.SERVICES).count({"bookingId": paid_booking["_id"]}) == 1


@pytest.mark.asyncio
async def test_assign_unpaid_booking_is_rejected(
    client: AsyncClient, admin_user: dict, decorator_user: dict, booking: dict
):
    response = await client.post(
        "/services",
        headers=auth_headers(admin_user),
        json={"bookingId": booking["_id"], "decoratorEmail": decorator_user["email"]},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_assign_to_non_decorator_is_rejected(
    client: AsyncClient, admin_user: dict, user: dict, paid_booking: dict
):
    response = await client.post(
        "/services",
        headers=auth_headers(admin_user),
        json={"bookingId": paid_booking["_id"], "decoratorEmail": user["email"]},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_assign_requires_admin(client: AsyncClient, user: dict, decorator_user: dict, paid_booking: dict):
    response = await client.post(
        "/services",
        headers=auth_headers(user),
        json={"bookingId": paid_booking["_id"], "decoratorEmail": decorator_user["email"]},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_assign_missing_booking_is_404(client: AsyncClient, admin_user: dict, decorator_user: dict):
    response = await client.post(
        "/services",
        headers=auth_headers(admin_user),
        json={"bookingId": "missing", "decoratorEmail": decorator_user["email"]},
    )
    assert response.status_code == 404


# ── Status Machine ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_status_advances_strictly_then_terminal(client: AsyncClient, decorator_user: dict, service: dict):
    headers = auth_headers(decorator_user)
    url = f"/services/{service['id']}"

    response = await client.patch(url, headers=headers, json={"status": "Confirmed"})
    assert response.status_code == 200
    assert response.json()["status"] == "Confirmed"

    response = await client.patch(url, headers=headers, json={"status": "Completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "Completed"

    for requested in ("Assigned", "Confirmed", "Completed"):
        response = await client.patch(url, headers=headers, json={"status": requested})
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_status_cannot_skip(client: AsyncClient, store, decorator_user: dict, service: dict):
    response = await client.patch(
        f"/services/{service['id']}", headers=auth_headers(decorator_user), json={"status": "Completed"}
    )
    assert response.status_code == 400
    assert response.json()["context"]["allowed"] == "Confirmed"

    doc = await store.collection(Collections.SERVICES).find_one({"_id": service["id"]})
    assert doc["status"] == "Assigned"


@pytest.mark.asyncio
async def test_status_unknown_value_is_invalid_transition(client: AsyncClient, decorator_user: dict, service: dict):
    response = await client.patch(
        f"/services/{service['id']}", headers=auth_headers(decorator_user), json={"status": "Dancing"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_status_update_by_other_decorator_is_denied(client: AsyncClient, store, service: dict):
    response = await client.patch(
        f"/services/{service['id']}", headers=auth_headers("rival@decor.io"), json={"status": "Confirmed"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_status_update_missing_service_is_404(client: AsyncClient, decorator_user: dict):
    response = await client.patch(
        "/services/missing", headers=auth_headers(decorator_user), json={"status": "Confirmed"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_update_only_changes_status(client: AsyncClient, store, decorator_user: dict, service: dict):
    before = await store.collection(Collections.SERVICES).find_one({"_id": service["id"]})
    await client.patch(
        f"/services/{service['id']}", headers=auth_headers(decorator_user), json={"status": "Confirmed"}
    )
    after = await store.collection(Collections.SERVICES).find_one({"_id": service["id"]})
    assert {k: v for k, v in after.items() if k != "status"} == {
        k: v for k, v in before.items() if k != "status"
    }


# ── Cash-Out ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_cash_out_pays_forty_percent(client: AsyncClient, store, decorator_user: dict, service: dict):
    response = await client.post(
        f"/services/cashout/{service['id']}",
        headers=auth_headers(decorator_user),
        json={"trackingNumber": "TRK-0001"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["price"] == 400.00
    assert data["status"] == "Completed"

    events = await store.collection(Collections.TRACKINGS).find(
        {"bookingId": service["bookingId"], "status": "Cashed Out"}
    )
    assert len(events) == 1
    assert events[0]["cost"] == 400.00
    assert events[0]["trackingNumber"] == "TRK-0001"


@pytest.mark.asyncio
async def test_cash_out_twice_is_rejected(client: AsyncClient, store, decorator_user: dict, service: dict):
    url = f"/services/cashout/{service['id']}"
    assert (await client.post(url, headers=auth_headers(decorator_user))).status_code == 200

    response = await client.post(url, headers=auth_headers(decorator_user))
    assert response.status_code == 400
    assert response.json()["code"] == "ALREADY_CASHED_OUT"

    doc = await store.collection(Collections.SERVICES).find_one({"_id": service["id"]})
    assert doc["price"] == 400.00


@pytest.mark.asyncio
async def test_cash_out_from_confirmed_jumps_to_completed(client: AsyncClient, decorator_user: dict, service: dict):
    headers = auth_headers(decorator_user)
    await client.patch(f"/services/{service['id']}", headers=headers, json={"status": "Confirmed"})

    response = await client.post(f"/services/cashout/{service['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Completed"


@pytest.mark.asyncio
async def test_cash_out_without_payment(client: AsyncClient, store, decorator_user: dict):
    doc = service_document("orphan-booking", "Birthday", decorator_user["email"], None, None)
    await store.collection(Collections.SERVICES).insert_one(doc)

    response = await client.post(f"/services/cashout/{doc['_id']}", headers=auth_headers(decorator_user))
    assert response.status_code == 400
    assert response.json()["code"] == "PAYMENT_MISSING"


@pytest.mark.asyncio
async def test_cash_out_missing_service_is_404(client: AsyncClient, decorator_user: dict):
    response = await client.post("/services/cashout/missing", headers=auth_headers(decorator_user))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cash_out_by_other_decorator_is_denied(client: AsyncClient, service: dict):
    response = await client.post(f"/services/cashout/{service['id']}", headers=auth_headers("rival@decor.io"))
    assert response.status_code == 403


# ── Listing / Timeline ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_decorator_lists_own_services(client: AsyncClient, decorator_user: dict, user: dict, service: dict):
    response = await client.get("/services/decorator", headers=auth_headers(decorator_user))
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [service["id"]]

    response = await client.get("/services/decorator", headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_full_timeline(
    client: AsyncClient, user: dict, decorator_user: dict, service: dict, paid_booking: dict
):
    headers = auth_headers(decorator_user)
    await client.patch(f"/services/{service['id']}", headers=headers, json={"status": "Confirmed"})
    await client.patch(f"/services/{service['id']}", headers=headers, json={"status": "Completed"})
    await client.post(f"/services/cashout/{service['id']}", headers=headers)

    response = await client.get(f"/trackings/{paid_booking['_id']}", headers=auth_headers(user))
    assert response.status_code == 200
    events = response.json()
    assert [e["status"] for e in events] == [
        "Completed", "Assigned", "Confirmed", "Completed", "Cashed Out",
    ]
    assert events[0]["email"] == user["email"]
    assert events[-1]["cost"] == 400.00

    # The assigned decorator sees the same trail; strangers do not
    response = await client.get(f"/trackings/{paid_booking['_id']}", headers=headers)
    assert response.status_code == 200
    response = await client.get(f"/trackings/{paid_booking['_id']}", headers=auth_headers("rival@decor.io"))
    assert response.status_code == 403
