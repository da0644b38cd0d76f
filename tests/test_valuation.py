from datetime import date, timedelta

import pytest

from app.core.clock import utc_today
from app.models import InventorySnapshot
from app.services import valuation
from app.services.valuation import ValuedProduct
from tests.factories import auth_headers, make_category, make_product, make_supplier

START, END = date(2024, 1, 1), date(2024, 1, 31)


def valued(product_id, category, supplier, quantity, unit_cost, retail_price):
    supplier_id, supplier_name = supplier or (None, None)
    return ValuedProduct(
        product_id=product_id,
        sku=f"SKU-{product_id}",
        name=f"Product {product_id}",
        category=category,
        supplier_id=supplier_id,
        supplier_name=supplier_name,
        quantity=quantity,
        unit_cost=unit_cost,
        retail_price=retail_price,
    )


@pytest.fixture
def catalog():
    acme, printhouse = (1, "Acme"), (2, "PrintHouse")
    return [
        valued(1, "Apparel", acme, 10, 8, 20),
        valued(2, "Apparel", None, 5, 12, 30),
        valued(3, "Mugs", acme, 0, 5, 10),
        valued(4, "Mugs", printhouse, 4, 25, 40),
    ]


def test_summary_values_stock_on_hand(catalog):
    report = valuation.build_report(catalog, [], None, START, END)

    assert report["summary"] == {
        "total_cost_value": 240.0,
        "total_retail_value": 510.0,
        "total_quantity": 19,
        "total_products": 3,
        "average_margin_percentage": 112.5,
        "total_potential_profit": 270.0,
    }
    assert report["period"] == {"start_date": "2024-01-01", "end_date": "2024-01-31"}
    assert report["period_comparison"] is None


def test_breakdowns_sorted_by_cost_value(catalog):
    report = valuation.build_report(catalog, [], None, START, END)

    assert report["by_category"] == [
        {"category": "Apparel", "cost_value": 140.0, "retail_value": 350.0, "quantity": 15, "product_count": 2, "margin_percentage": 150.0},
        {"category": "Mugs", "cost_value": 100.0, "retail_value": 160.0, "quantity": 4, "product_count": 1, "margin_percentage": 60.0},
    ]
    assert [(row["supplier_id"], row["supplier_name"], row["cost_value"]) for row in report["by_supplier"]] == [
        (2, "PrintHouse", 100.0),
        (1, "Acme", 80.0),
    ]
    assert [row["product_id"] for row in report["top_products"]] == [4, 1, 2]
    assert report["top_products"][0]["margin_percentage"] == 60.0


def test_history_falls_back_to_current_totals(catalog):
    report = valuation.build_report(catalog, [], None, START, END)

    assert report["historical_trend"] == [{
        "date": "2024-01-31",
        "total_cost_value": 240.0,
        "total_retail_value": 510.0,
        "total_quantity": 19,
        "product_count": 3,
    }]


def test_empty_catalog():
    report = valuation.build_report([], [], None, START, END)

    assert report["summary"]["total_cost_value"] == 0
    assert report["summary"]["average_margin_percentage"] == 0
    assert report["by_category"] == []
    assert report["by_supplier"] == []
    assert report["top_products"] == []


def test_period_comparison():
    current = valuation.summarize(3, 19, 240, 510)
    previous = valuation.summarize(2, 10, 200, 400)

    comparison = valuation.compare_periods(current, previous)

    assert comparison["cost_value_change"] == 40
    assert comparison["cost_value_change_percentage"] == 20.0
    assert comparison["retail_value_change"] == 110
    assert comparison["retail_value_change_percentage"] == 27.5
    assert comparison["quantity_change"] == 9
    assert comparison["quantity_change_percentage"] == 90.0


def test_comparison_against_an_empty_period_reports_no_percentages():
    comparison = valuation.compare_periods(valuation.summarize(1, 5, 50, 100), valuation.summarize(0, 0, 0, 0))

    assert comparison["cost_value_change"] == 50
    assert comparison["cost_value_change_percentage"] == 0


def test_previous_period_ends_one_period_back():
    assert valuation.previous_period_end(START, END) == date(2023, 12, 31)
    assert valuation.previous_period_end(END, END) == date(2024, 1, 30)


def test_valuation_endpoint_compares_with_previous_snapshot(client, db, admin_a, store_a, store_b):
    category = make_category(db, store_a)
    supplier = make_supplier(db, store_a)
    make_product(db, store_a, "TEE", stock_quantity=10, category_id=category.id, supplier_id=supplier.id)
    make_product(db, store_a, "OLD", stock_quantity=50, is_active=False)
    make_product(db, store_b, "THEIRS", stock_quantity=100)
    today = utc_today()
    db.add_all([
        InventorySnapshot(
            store_id=store_a.id, snapshot_date=today - timedelta(days=31),
            total_products=1, total_quantity=5, total_cost_value=40, total_retail_value=100,
        ),
        InventorySnapshot(
            store_id=store_a.id, snapshot_date=today - timedelta(days=5),
            total_products=1, total_quantity=8, total_cost_value=64, total_retail_value=160,
        ),
        InventorySnapshot(
            store_id=store_b.id, snapshot_date=today - timedelta(days=4),
            total_products=1, total_quantity=100, total_cost_value=800, total_retail_value=2000,
        ),
    ])
    db.commit()
    headers = auth_headers(admin_a)

    data = client.get("/api/v1/inventory/reports/valuation?comparePrevious=true", headers=headers).json()["data"]
    plain = client.get("/api/v1/inventory/reports/valuation", headers=headers).json()["data"]

    assert data["summary"]["total_cost_value"] == 80.0
    assert data["summary"]["total_quantity"] == 10
    assert data["by_supplier"][0]["supplier_name"] == "Acme Supply"
    assert [point["date"] for point in data["historical_trend"]] == [(today - timedelta(days=5)).isoformat()]
    comparison = data["period_comparison"]
    assert comparison["previous_period"]["total_cost_value"] == 40.0
    assert comparison["cost_value_change"] == 40.0
    assert comparison["cost_value_change_percentage"] == 100.0
    assert comparison["quantity_change"] == 5
    assert plain["period_comparison"] is None


def test_valuation_needs_report_permission(client, staff_a):
    assert client.get("/api/v1/inventory/reports/valuation", headers=auth_headers(staff_a)).status_code == 403
