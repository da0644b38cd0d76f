from datetime import timedelta

import pytest

from app.core.clock import utc_today
from app.models import PurchaseOrderStatus
from app.services.suppliers import on_time_rate, supplier_analytics
from tests.factories import auth_headers, make_product, make_purchase_order, make_supplier


def test_supplier_crud(client, admin_a):
    headers = auth_headers(admin_a)

    created = client.post("/api/v1/suppliers", json={"name": "Blank Goods Co", "email": "orders@blankgoods.example"}, headers=headers)
    assert created.status_code == 201
    supplier_id = created.json()["data"]["id"]

    duplicate = client.post("/api/v1/suppliers", json={"name": "blank goods co"}, headers=headers)
    assert duplicate.status_code == 409

    updated = client.put(f"/api/v1/suppliers/{supplier_id}", json={"phone": "555-0100"}, headers=headers)
    assert updated.json()["data"]["phone"] == "555-0100"
    assert updated.json()["data"]["email"] == "orders@blankgoods.example"

    assert client.put(f"/api/v1/suppliers/{supplier_id}", json={}, headers=headers).status_code == 400
    assert client.put(f"/api/v1/suppliers/{supplier_id}", json={"name": None}, headers=headers).status_code == 400

    assert client.delete(f"/api/v1/suppliers/{supplier_id}", headers=headers).status_code == 200
    active = client.get("/api/v1/suppliers?active_only=true", headers=headers).json()["data"]
    assert active == []


def test_invalid_email_is_422(client, admin_a):
    response = client.post("/api/v1/suppliers", json={"name": "Bad", "email": "not-an-email"}, headers=auth_headers(admin_a))

    assert response.status_code == 422
    assert response.json()["error"] == "Validation error"


def test_rename_to_existing_name_conflicts(client, db, admin_a, store_a):
    make_supplier(db, store_a, name="Acme Supply")
    other = make_supplier(db, store_a, name="PrintHouse")

    response = client.put(f"/api/v1/suppliers/{other.id}", json={"name": "ACME supply"}, headers=auth_headers(admin_a))

    assert response.status_code == 409


def test_same_name_allowed_in_another_store(client, db, admin_a, store_b):
    make_supplier(db, store_b, name="Acme Supply")

    response = client.post("/api/v1/suppliers", json={"name": "Acme Supply"}, headers=auth_headers(admin_a))

    assert response.status_code == 201


def test_analytics(client, db, admin_a, store_a):
    supplier = make_supplier(db, store_a)
    product = make_product(db, store_a, cost_price=5.0)
    today = utc_today()
    make_purchase_order(
        db, store_a, supplier, [(product, 10, 10)], status=PurchaseOrderStatus.DELIVERED, number="PO-001",
        expected_delivery=today, actual_delivery=today,
    )
    make_purchase_order(
        db, store_a, supplier, [(product, 10, 10)], status=PurchaseOrderStatus.DELIVERED, number="PO-002",
        expected_delivery=today - timedelta(days=5), actual_delivery=today,
    )
    make_purchase_order(db, store_a, supplier, [(product, 4)], number="PO-003")
    make_purchase_order(db, store_a, supplier, [(product, 4)], status=PurchaseOrderStatus.CANCELLED, number="PO-004")
    headers = auth_headers(admin_a)

    stats = client.get(f"/api/v1/suppliers/{supplier.id}/analytics", headers=headers).json()["data"]

    assert stats["supplier_name"] == "Acme Supply"
    assert stats["total_spend"] == pytest.approx(120.0)
    assert stats["total_orders"] == 3
    assert stats["delivered_orders"] == 2
    assert stats["open_orders"] == 1
    assert stats["on_time_delivery_rate"] == 50.0

    detail = client.get(f"/api/v1/suppliers/{supplier.id}", headers=headers).json()["data"]
    assert detail["analytics"] == {key: stats[key] for key in detail["analytics"]}


def test_on_time_rate_ignores_orders_without_dates(db, store_a):
    supplier = make_supplier(db, store_a)
    product = make_product(db, store_a)
    po = make_purchase_order(db, store_a, supplier, [(product, 1, 1)], status=PurchaseOrderStatus.DELIVERED)

    assert on_time_rate([po]) == 0.0
    assert supplier_analytics([])["total_spend"] == 0


def test_other_store_supplier_is_404(client, db, admin_a, store_b):
    foreign = make_supplier(db, store_b)

    assert client.get(f"/api/v1/suppliers/{foreign.id}", headers=auth_headers(admin_a)).status_code == 404
