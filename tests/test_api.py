"""HTTP-level checks: envelopes, status codes and role gates."""
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from core.auth import current_active_user
from db.database import get_async_session
from helpers import find_on_hand
from main import app


class _Caller:
    user = None


@pytest.fixture
def caller():
    return _Caller()


@pytest.fixture
def act_as(caller, users):
    def _act_as(key):
        caller.user = users[key]

    return _act_as


@pytest.fixture
async def client(session_maker, caller):
    async def _session_override():
        async with session_maker() as s:
            yield s

    async def _user_override():
        return caller.user

    app.dependency_overrides[get_async_session] = _session_override
    app.dependency_overrides[current_active_user] = _user_override

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def test_transfer_flow(client, act_as, session, bases, rifle, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 100)

    act_as("logistics_alpha")
    res = await client.post(
        "/transfers/",
        json={"inventory_item_id": str(item.id), "to_location_id": str(bravo.id), "quantity": 30},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "success"
    assert body["data"]["status"] == "pending"
    assert body["data"]["inventory_item"]["asset_type"]["name"] == "Rifle"
    transfer_id = body["data"]["id"]

    act_as("admin")
    res = await client.patch(f"/transfers/{transfer_id}/approve")
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "completed"
    assert res.json()["data"]["approved_by"]["username"] == "admin"

    act_as("logistics_bravo")
    res = await client.get("/inventory/items")
    assert res.status_code == 200
    listing = res.json()
    assert listing["results"] == 1
    assert listing["data"][0]["on_hand"] == 30
    assert await find_on_hand(session, rifle.id, alpha.id) == 70


async def test_role_gate_is_forbidden_envelope(client, act_as, rifle):
    act_as("commander_alpha")
    res = await client.post(
        "/purchases/",
        json={
            "asset_type_id": str(rifle.id),
            "quantity": 1,
            "unit_cost": 10,
            "purchase_date": "2024-03-01T00:00:00",
            "supplier": "Armory Supply Co",
        },
    )
    assert res.status_code == 403
    assert res.json() == {"status": "error", "message": "You do not have permission to perform this action"}


async def test_bad_body_is_400(client, act_as, bases, make_item):
    alpha, bravo = bases
    item = await make_item(alpha, 5)

    act_as("logistics_alpha")
    res = await client.post(
        "/transfers/",
        json={"inventory_item_id": str(item.id), "to_location_id": str(bravo.id), "quantity": 0},
    )
    assert res.status_code == 400
    assert res.json()["status"] == "error"
    assert "quantity" in res.json()["message"]


async def test_unknown_record_is_404(client, act_as):
    act_as("admin")
    res = await client.patch(f"/transfers/{uuid.uuid4()}/approve")
    assert res.status_code == 404
    assert res.json() == {"status": "error", "message": "Transfer not found"}


async def test_second_return_is_400(client, act_as, bases, make_item):
    alpha, _ = bases
    item = await make_item(alpha, 10)

    act_as("commander_alpha")
    res = await client.post(
        "/assignments/",
        json={"inventory_item_id": str(item.id), "quantity": 10, "assigned_to": "Cpl. Hale"},
    )
    assert res.status_code == 201
    assignment_id = res.json()["data"]["id"]

    assert (await client.patch(f"/assignments/{assignment_id}/return")).status_code == 200
    res = await client.patch(f"/assignments/{assignment_id}/return")
    assert res.status_code == 400
    assert res.json()["message"] == "Assignment is not active. Current status: returned"


async def test_expenditure_list_is_paginated(client, act_as, bases, make_item):
    alpha, _ = bases
    item = await make_item(alpha, 10)

    act_as("leader_alpha")
    for _ in range(3):
        res = await client.post(
            "/expenditures/",
            json={"inventory_item_id": str(item.id), "quantity": 1, "reason": "Exercise"},
        )
        assert res.status_code == 201
        assert res.json()["data"]["approved"] is None

    res = await client.get("/expenditures/", params={"page": 2, "limit": 2})
    body = res.json()
    assert body["status"] == "success"
    assert body["total"] == 3
    assert body["pages"] == 2
    assert body["page"] == 2
    assert body["results"] == 1


async def test_reference_data(client, act_as):
    act_as("admin")
    res = await client.post("/locations/", json={"name": "Base Charlie", "code": "chl", "location": "East"})
    assert res.status_code == 201
    assert res.json()["data"]["code"] == "CHL"

    res = await client.post("/locations/", json={"name": "Base Charlie", "code": "CH2", "location": "East"})
    assert res.status_code == 400

    res = await client.post("/asset-types/", json={"name": "Humvee", "category": "vehicle", "unit": "pcs"})
    assert res.status_code == 201

    act_as("logistics_alpha")
    assert (await client.post("/asset-types/", json={"name": "Jeep", "category": "vehicle", "unit": "pcs"})).status_code == 403
    res = await client.get("/locations/")
    assert res.json()["results"] == 3
    res = await client.get("/asset-types/", params={"category": "vehicle"})
    assert [a["name"] for a in res.json()["data"]] == ["Humvee"]


async def test_user_management(client, act_as, bases):
    alpha, _ = bases
    new_user = {
        "email": "new.commander@example.com",
        "password": "s3cret-pass",
        "username": "new_cmd",
        "role": "commander",
        "location_id": str(alpha.id),
    }

    act_as("logistics_alpha")
    assert (await client.post("/users/", json=new_user)).status_code == 403

    act_as("admin")
    res = await client.post("/users/", json=new_user)
    assert res.status_code == 201
    assert res.json()["data"]["role"] == "commander"
    assert res.json()["data"]["location_id"] == str(alpha.id)

    res = await client.post("/users/", json={**new_user, "email": "other@example.com", "location_id": None})
    assert res.status_code == 400

    res = await client.get("/users/me")
    assert res.json()["data"]["username"] == "admin"


async def test_admin_manages_existing_users(client, act_as, users, bases):
    _, bravo = bases
    target = str(users["leader_alpha"].id)
    admin_id = str(users["admin"].id)

    act_as("commander_alpha")
    assert (await client.get("/users/")).status_code == 403

    act_as("admin")
    res = await client.get("/users/")
    assert res.json()["results"] == 6
    assert "hashed_password" not in res.json()["data"][0]

    res = await client.patch(f"/users/{target}", json={"role": "logistics", "location_id": str(bravo.id)})
    assert res.status_code == 200
    assert res.json()["data"]["role"] == "logistics"
    assert res.json()["data"]["location_id"] == str(bravo.id)
    assert res.json()["data"]["is_superuser"] is False

    res = await client.patch(f"/users/{target}", json={"location_id": None})
    assert res.status_code == 400
    res = await client.patch(f"/users/{target}", json={"password": "another-pass"})
    assert res.status_code == 400

    res = await client.patch(f"/users/{target}/toggle-status")
    assert res.json()["data"]["is_active"] is False
    assert res.json()["message"] == "User deactivated successfully"
    res = await client.patch(f"/users/{target}/toggle-status")
    assert res.json()["data"]["is_active"] is True

    res = await client.patch(f"/users/{admin_id}/toggle-status")
    assert res.status_code == 400
    assert (await client.delete(f"/users/{admin_id}")).status_code == 400

    assert (await client.delete(f"/users/{target}")).status_code == 200
    res = await client.get(f"/users/{target}")
    assert res.status_code == 404
    assert res.json()["message"] == "User not found"


async def test_item_lifecycle_routes(client, act_as, bases, make_item):
    alpha, _ = bases
    item = await make_item(alpha, 3)

    act_as("logistics_alpha")
    res = await client.patch(f"/inventory/items/{item.id}", json={"lifecycle_status": "maintenance", "on_hand": 99})
    assert res.status_code == 200
    assert res.json()["data"]["lifecycle_status"] == "maintenance"
    assert res.json()["data"]["on_hand"] == 3
    assert (await client.delete(f"/inventory/items/{item.id}")).status_code == 403

    act_as("admin")
    assert (await client.delete(f"/inventory/items/{item.id}")).status_code == 200
    assert (await client.get(f"/inventory/items/{item.id}")).status_code == 404
