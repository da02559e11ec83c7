from datetime import timedelta
from decimal import Decimal

import pytest

from loyalty_card.time_utils import utcnow
from tests.conftest import ADMIN_PASSWORD, OTHER_OWNER_PASSWORD, OWNER_PASSWORD


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _login(client, path, payload):
    resp = client.post(path, json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest.fixture
def owner_token(client, store_owner):
    return _login(client, "/auth/store-owner/login", {"email": "owner@scentshop.test", "password": OWNER_PASSWORD})


@pytest.fixture
def other_owner_token(client, other_store_owner):
    return _login(
        client,
        "/auth/store-owner/login",
        {"email": "owner@perfumehub.test", "password": OTHER_OWNER_PASSWORD},
    )


@pytest.fixture
def admin_token(client, admin):
    return _login(client, "/auth/admin/login", {"username": "root", "password": ADMIN_PASSWORD})


def test_root(client):
    assert client.get("/").json() == {"message": "Loyalty Card is running"}


def test_store_flow_end_to_end(client, owner_token):
    headers = _auth(owner_token)

    scan = client.get("/store/customers/scan/LC0000001", headers=headers).json()
    assert scan == {"barcode": "LC0000001", "found": False, "customer": None}

    resp = client.post("/store/customers", json={"barcode": "LC0000001"}, headers=headers)
    assert resp.status_code == 201, resp.text
    customer = resp.json()
    assert customer["points_balance"] == 10
    assert Decimal(customer["total_spent"]) == 0
    assert customer["name"] == "Customer 0000"
    customer_id = customer["id"]

    scan = client.get("/store/customers/scan/LC0000001", headers=headers).json()
    assert scan["found"] is True
    assert scan["customer"]["id"] == customer_id

    resp = client.post(f"/store/customers/{customer_id}/purchases", json={"amount": "19.99"}, headers=headers)
    assert resp.status_code == 201, resp.text
    assert resp.json()["points_earned"] == 10

    resp = client.post(f"/store/customers/{customer_id}/discounts", json={"amount": "10"}, headers=headers)
    assert resp.status_code == 201, resp.text
    discount_id = resp.json()["id"]

    resp = client.post(
        f"/store/customers/{customer_id}/purchases",
        json={"amount": "25", "discount_id": discount_id},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    purchase = resp.json()
    assert Decimal(purchase["amount"]) == Decimal("15")
    assert purchase["points_earned"] == 8
    assert Decimal(purchase["discount_applied"]) == Decimal("10")

    customer = client.get(f"/store/customers/{customer_id}", headers=headers).json()
    assert customer["points_balance"] == 28
    assert Decimal(customer["total_spent"]) == Decimal("34.99")

    history = client.get(f"/store/customers/{customer_id}/purchases", headers=headers).json()
    assert [p["points_earned"] for p in history] == [8, 10]

    assert client.get(f"/store/customers/{customer_id}/discounts", headers=headers).json() == []

    dashboard = client.get("/store/dashboard", headers=headers).json()
    assert dashboard["totalCustomers"] == 1
    assert dashboard["totalPoints"] == 28


def test_reused_discount_reports_its_kind(client, owner_token):
    headers = _auth(owner_token)
    customer_id = client.post("/store/customers", json={}, headers=headers).json()["id"]
    discount_id = client.post(
        f"/store/customers/{customer_id}/discounts", json={"amount": "5"}, headers=headers
    ).json()["id"]

    path = f"/store/customers/{customer_id}/purchases"
    assert client.post(path, json={"amount": "20", "discount_id": discount_id}, headers=headers).status_code == 201

    resp = client.post(path, json={"amount": "20", "discount_id": discount_id}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["error"] == "DISCOUNT_ALREADY_USED"

    customer = client.get(f"/store/customers/{customer_id}", headers=headers).json()
    assert customer["points_balance"] == 10 + 8


def test_duplicate_barcode(client, owner_token):
    headers = _auth(owner_token)
    assert client.post("/store/customers", json={"barcode": "LC0000009"}, headers=headers).status_code == 201

    resp = client.post("/store/customers", json={"barcode": "LC0000009"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["error"] == "DUPLICATE_BARCODE"


def test_negative_purchase_is_unprocessable(client, owner_token):
    headers = _auth(owner_token)
    customer_id = client.post("/store/customers", json={}, headers=headers).json()["id"]

    resp = client.post(f"/store/customers/{customer_id}/purchases", json={"amount": "-5"}, headers=headers)
    assert resp.status_code == 422


def test_store_owners_cannot_reach_each_others_customers(client, owner_token, other_owner_token):
    customer = client.post("/store/customers", json={"barcode": "LC0000050"}, headers=_auth(owner_token)).json()
    other = _auth(other_owner_token)

    scan = client.get("/store/customers/scan/LC0000050", headers=other).json()
    assert scan["found"] is False

    resp = client.get(f"/store/customers/{customer['id']}", headers=other)
    assert resp.status_code == 404
    assert resp.json()["error"] == "CUSTOMER_NOT_FOUND"

    resp = client.post(f"/store/customers/{customer['id']}/purchases", json={"amount": "10"}, headers=other)
    assert resp.status_code == 404

    assert client.get("/store/customers", headers=other).json() == []


def test_manual_points_adjustment(client, owner_token):
    headers = _auth(owner_token)
    customer_id = client.post("/store/customers", json={}, headers=headers).json()["id"]

    resp = client.post(f"/store/customers/{customer_id}/points", json={"points": 50, "reason": "promo"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["points_balance"] == 60

    resp = client.post(f"/store/customers/{customer_id}/points", json={"points": -100}, headers=headers)
    assert resp.status_code == 422
    assert resp.json()["error"] == "VALIDATION_ERROR"

    adjustments = client.get(f"/store/customers/{customer_id}/points", headers=headers).json()
    assert [a["points"] for a in adjustments] == [50]


def test_update_customer_profile(client, owner_token):
    headers = _auth(owner_token)
    customer_id = client.post("/store/customers", json={}, headers=headers).json()["id"]

    resp = client.patch(
        f"/store/customers/{customer_id}",
        json={"name": "Sophia Rodriguez", "email": "sophia@example.com"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Sophia Rodriguez"
    assert resp.json()["email"] == "sophia@example.com"


def test_customer_self_service(client, owner_token):
    headers = _auth(owner_token)
    customer_id = client.post("/store/customers", json={"barcode": "LC0000077"}, headers=headers).json()["id"]
    client.post(f"/store/customers/{customer_id}/purchases", json={"amount": "40"}, headers=headers)
    client.post(f"/store/customers/{customer_id}/discounts", json={"amount": "10"}, headers=headers)
    client.post("/auth/logout", headers=headers)

    token = _login(client, "/auth/customer/login", {"barcode": "LC0000077"})
    me = _auth(token)

    profile = client.get("/me/profile", headers=me).json()
    assert profile["points_balance"] == 30
    assert [Decimal(p["amount"]) for p in client.get("/me/purchases", headers=me).json()] == [Decimal("40")]
    assert len(client.get("/me/discounts", headers=me).json()) == 1

    who = client.get("/auth/me", headers=me).json()
    assert who["role"] == "customer"
    assert who["display_name"] == "Customer 0000"

    resp = client.post(f"/store/customers/{customer_id}/purchases", json={"amount": "1"}, headers=me)
    assert resp.status_code == 403
    assert resp.json()["error"] == "FORBIDDEN"


def test_unknown_barcode_login(client):
    resp = client.post("/auth/customer/login", json={"barcode": "LC1234567"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "INVALID_CREDENTIALS"


def test_anonymous_requests_are_refused(client):
    resp = client.get("/store/customers")
    assert resp.status_code == 401
    assert resp.json()["error"] == "NOT_AUTHENTICATED"

    assert client.get("/auth/me").json() == {
        "authenticated": False,
        "role": None,
        "principal_id": None,
        "display_name": None,
    }


def test_role_switch_needs_logout(client, admin_token, store_owner):
    headers = _auth(admin_token)
    creds = {"email": "owner@scentshop.test", "password": OWNER_PASSWORD}

    resp = client.post("/auth/store-owner/login", json=creds, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["error"] == "ROLE_CONFLICT"

    assert client.post("/auth/logout", headers=headers).json() == {"loggedOut": True}
    assert client.get("/auth/me", headers=headers).json()["authenticated"] is False

    resp = client.post("/auth/store-owner/login", json=creds, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "store_owner"


def test_admin_manages_store_owners(client, admin_token):
    headers = _auth(admin_token)

    resp = client.post(
        "/admin/store-owners",
        json={
            "email": "owner@luxury.test",
            "password": "luxury-pass",
            "store_name": "Luxury Perfumes",
            "name": "John Smith",
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    owner = resp.json()
    assert "password" not in owner
    assert owner["is_active"] is True

    owner_token = _login(client, "/auth/store-owner/login", {"email": "owner@luxury.test", "password": "luxury-pass"})
    client.post("/store/customers", json={}, headers=_auth(owner_token))

    listing = client.get("/admin/store-owners", headers=headers).json()
    assert [(o["store_name"], o["customer_count"]) for o in listing] == [("Luxury Perfumes", 1)]

    resp = client.patch(f"/admin/store-owners/{owner['id']}/active", json={"is_active": False}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False
    assert resp.json()["customer_count"] == 1

    # deactivation ends the owner's session and blocks new logins
    assert client.get("/store/customers", headers=_auth(owner_token)).status_code == 401
    resp = client.post("/auth/store-owner/login", json={"email": "owner@luxury.test", "password": "luxury-pass"})
    assert resp.status_code == 401

    dashboard = client.get("/admin/dashboard", headers=headers).json()
    assert dashboard["totalCustomers"] == 1
    assert dashboard["activeStores"] == 0

    assert client.delete(f"/admin/store-owners/{owner['id']}", headers=headers).json() == {"deleted": True}
    assert client.get("/admin/store-owners", headers=headers).json() == []


def test_store_owner_cannot_use_admin_routes(client, owner_token):
    resp = client.get("/admin/store-owners", headers=_auth(owner_token))
    assert resp.status_code == 403


def test_date_only_discount_expiry_runs_to_end_of_day(client, owner_token):
    headers = _auth(owner_token)
    customer_id = client.post("/store/customers", json={}, headers=headers).json()["id"]
    today = utcnow().date()

    resp = client.post(
        f"/store/customers/{customer_id}/discounts",
        json={"amount": "5", "expiry_date": today.isoformat()},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["expiry_date"].startswith(f"{today.isoformat()}T23:59:59")

    tomorrow = today + timedelta(days=1)
    resp = client.post(
        f"/store/customers/{customer_id}/discounts",
        json={"amount": "5", "expiry_date": tomorrow.isoformat()},
        headers=headers,
    )
    assert resp.json()["expiry_date"].startswith(f"{tomorrow.isoformat()}T23:59:59")

    assert len(client.get(f"/store/customers/{customer_id}/discounts", headers=headers).json()) == 2


def test_store_dashboard_counts_only_its_own_store(client, owner_token, other_owner_token):
    dashboard = client.get("/store/dashboard", headers=_auth(owner_token)).json()
    assert dashboard["activeStores"] == 1
