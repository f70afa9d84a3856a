"""Integration tests for the discount administration routes."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from urbansprout.domain.entities import ApplicableTo, DiscountKind
from urbansprout.utils import now_utc


@pytest.fixture()
def client():
    from main import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_headers(make_admin, token_for):
    admin = make_admin()
    return {"Authorization": f"Bearer {token_for(admin)}"}


def _payload(**overrides):
    now = now_utc()
    payload = {
        "name": "Spring tools",
        "type": "percentage",
        "value": 20,
        "applicableTo": "category",
        "category": "Tools",
        "startDate": now.isoformat(),
        "endDate": (now + timedelta(hours=1)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_admin_routes_require_admin(client, make_user, token_for) -> None:
    customer = make_user()

    response = client.get(
        "/admin/discounts", headers={"Authorization": f"Bearer {token_for(customer)}"}
    )

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Admin access required"}


def test_create_active_discount_applies_immediately(
    client, admin_headers, make_product, load_product
) -> None:
    trowel = make_product("Trowel", category="Tools", price=50)
    seeds = make_product("Seeds", category="Seeds", price=50)

    response = client.post("/admin/discounts", json=_payload(), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "active"
    assert data["type"] == "percentage"
    assert data["autoApplied"] is True
    assert load_product(trowel.id).effective_price == 40.0
    assert load_product(seeds.id).applied_discounts == []


def test_scheduled_discount_waits_for_its_window(
    client, admin_headers, make_product, load_product
) -> None:
    product = make_product(category="Tools", price=50)
    start = now_utc() + timedelta(days=1)

    response = client.post(
        "/admin/discounts",
        json=_payload(
            startDate=start.isoformat(), endDate=(start + timedelta(days=1)).isoformat()
        ),
        headers=admin_headers,
    )

    assert response.json()["data"]["status"] == "scheduled"
    assert load_product(product.id).applied_discounts == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"value": 150},
        {"type": "fixed", "value": -1},
        {"category": None},
        {"applicableTo": "products", "products": []},
        {"startDate": (now_utc() - timedelta(days=1)).isoformat()},
        {"type": "bogus"},
    ],
)
def test_create_rejects_invalid_discounts(client, admin_headers, overrides) -> None:
    response = client.post("/admin/discounts", json=_payload(**overrides), headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_end_must_follow_start(client, admin_headers) -> None:
    now = now_utc()
    response = client.post(
        "/admin/discounts",
        json=_payload(
            startDate=(now + timedelta(hours=2)).isoformat(),
            endDate=(now + timedelta(hours=1)).isoformat(),
        ),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "End date must be after start date"


def test_update_rematerializes_and_deactivation_revokes(
    client, admin_headers, make_product, load_product
) -> None:
    product = make_product(category="Tools", price=50)
    created = client.post("/admin/discounts", json=_payload(), headers=admin_headers).json()
    discount_id = created["data"]["id"]

    updated = client.put(
        f"/admin/discounts/{discount_id}", json={"value": 50}, headers=admin_headers
    )
    assert updated.status_code == 200
    stored = load_product(product.id)
    assert [entry.value for entry in stored.applied_discounts] == [50.0]
    assert stored.effective_price == 25.0

    deactivated = client.put(
        f"/admin/discounts/{discount_id}", json={"active": False}, headers=admin_headers
    )
    assert deactivated.json()["data"]["status"] == "inactive"
    assert load_product(product.id).applied_discounts == []
    assert load_product(product.id).effective_price == 50.0


def test_description_edit_leaves_product_prices_alone(
    client, admin_headers, make_product, load_product, load_discount
) -> None:
    product = make_product(category="Tools", price=50)
    created = client.post("/admin/discounts", json=_payload(), headers=admin_headers).json()
    discount_id = created["data"]["id"]
    before = load_product(product.id)
    assert before.effective_price == 40.0

    updated = client.put(
        f"/admin/discounts/{discount_id}",
        json={"description": "Garden tools for the new season"},
        headers=admin_headers,
    )

    assert updated.status_code == 200
    assert updated.json()["data"]["description"] == "Garden tools for the new season"
    after = load_product(product.id)
    assert after.version == before.version
    assert after.effective_price == 40.0
    assert after.applied_discounts == before.applied_discounts
    assert load_discount(discount_id).auto_applied is True


def test_delete_revokes_effects(client, admin_headers, make_product, load_product) -> None:
    product = make_product(category="Tools", price=50)
    created = client.post("/admin/discounts", json=_payload(), headers=admin_headers).json()
    discount_id = created["data"]["id"]

    response = client.delete(f"/admin/discounts/{discount_id}", headers=admin_headers)

    assert response.status_code == 200
    assert load_product(product.id).effective_price == 50.0
    missing = client.get(f"/admin/discounts/{discount_id}", headers=admin_headers)
    assert missing.status_code == 404


def test_list_filters_by_status(client, admin_headers, make_discount) -> None:
    now = now_utc()
    running = make_discount(name="Running")
    make_discount(name="Later", start_at=now + timedelta(days=1), end_at=now + timedelta(days=2))
    make_discount(name="Done", start_at=now - timedelta(days=2), end_at=now - timedelta(days=1))
    make_discount(name="Off", active=False)

    response = client.get("/admin/discounts", params={"status": "active"}, headers=admin_headers)

    data = response.json()["data"]
    assert [item["id"] for item in data["discounts"]] == [running.id]
    assert data["total"] == 1

    everything = client.get("/admin/discounts", headers=admin_headers).json()["data"]
    assert everything["total"] == 4
    statuses = {item["name"]: item["status"] for item in everything["discounts"]}
    assert statuses == {
        "Running": "active",
        "Later": "scheduled",
        "Done": "expired",
        "Off": "inactive",
    }


def test_manual_product_discount_routes(
    client, admin_headers, make_product, make_discount
) -> None:
    product = make_product(category="Tools", price=80)
    discount = make_discount(kind=DiscountKind.FIXED, value=30)

    available = client.get(
        f"/admin/products/{product.id}/available-discounts", headers=admin_headers
    )
    assert [item["id"] for item in available.json()["data"]["discounts"]] == [discount.id]

    applied = client.put(
        f"/admin/products/{product.id}/discount",
        json={"discountId": discount.id},
        headers=admin_headers,
    )
    assert applied.status_code == 200
    assert applied.json()["data"]["effectivePrice"] == 50.0

    duplicate = client.put(
        f"/admin/products/{product.id}/discount",
        json={"discountId": discount.id},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400

    removed = client.delete(
        f"/admin/products/{product.id}/discount/{discount.id}", headers=admin_headers
    )
    assert removed.json()["data"]["effectivePrice"] == 80.0


def test_apply_to_category_route(client, admin_headers, make_product, make_discount) -> None:
    for index in range(2):
        make_product(f"Tool {index}", category="Tools")
    discount = make_discount(applicable_to=ApplicableTo.CATEGORY, category="Tools")

    response = client.post(
        f"/admin/discounts/{discount.id}/apply-to-category",
        json={"category": "Tools"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"] == {"applied": 2, "skipped": 0, "total": 2}


def test_upcoming_discounts_preview(client, admin_headers, make_product, make_discount) -> None:
    make_product("Trowel", category="Tools")
    now = now_utc()
    upcoming = make_discount(start_at=now + timedelta(hours=3), end_at=now + timedelta(days=1))
    make_discount(name="Over", start_at=now - timedelta(days=3), end_at=now - timedelta(days=2))

    response = client.get("/admin/products/upcoming-discounts", headers=admin_headers)

    data = response.json()["data"]
    assert [item["discount"]["id"] for item in data] == [upcoming.id]
    assert data[0]["productCount"] == 1
    assert data[0]["products"][0]["name"] == "Trowel"


def test_manual_scan_and_status(client, admin_headers, make_product, make_discount) -> None:
    make_product(price=10)
    discount = make_discount()

    processed = client.post("/admin/discounts/process", headers=admin_headers)
    assert processed.status_code == 200
    assert processed.json()["data"]["appliedDiscounts"] == [discount.id]

    status = client.get("/admin/realtime/status", headers=admin_headers).json()["data"]
    assert status["connectedUsers"] == 0
    assert status["scheduler"]["running"] is False
    assert status["scheduler"]["lastResult"]["applied_discounts"] == [discount.id]


def test_admin_activity_feed_and_broadcast(
    client, make_admin, token_for
) -> None:
    watcher = make_admin("Watcher")
    author = make_admin("Author")

    with client.websocket_connect(
        f"/notifications/ws?token={token_for(watcher)}"
    ) as websocket:
        assert websocket.receive_json()["type"] == "unread_count_update"

        created = client.post(
            "/admin/discounts",
            json=_payload(),
            headers={"Authorization": f"Bearer {token_for(author)}"},
        )
        assert created.status_code == 201

        event = websocket.receive_json()
        assert event["type"] == "admin_activity"
        assert event["data"]["action"] == "discount_created"
        assert event["data"]["icon"] == "tag"
        assert event["data"]["title"] == "Discount Created"

    feed = client.get(
        "/admin/activity", headers={"Authorization": f"Bearer {token_for(watcher)}"}
    ).json()["data"]
    assert feed[0]["adminName"] == author.name
    assert feed[0]["description"] == "Created discount: Spring tools"
