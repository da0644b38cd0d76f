from datetime import datetime, timedelta

import pytest

from app.services import dead_stock
from app.services.inventory_reports import dead_stock_report
from app.services.turnover import NO_SALE_SENTINEL_DAYS
from tests.factories import make_category, make_log, make_product, make_sale

NOW = datetime(2024, 6, 1, 12)


def stocked(product_id, stock=10, days_since_sale=None, category_id=1, base_price=20.0, **kwargs):
    values = {
        "product_id": product_id,
        "sku": f"SKU-{product_id}",
        "name": f"Product {product_id}",
        "category": "Apparel",
        "category_id": category_id,
        "current_stock": stock,
        "unit_cost": 10.0,
        "base_price": base_price,
        "created_at": NOW - timedelta(days=400),
        "last_sale_date": NOW - timedelta(days=days_since_sale) if days_since_sale is not None else None,
    }
    values.update(kwargs)
    return dead_stock.StockedProduct(**values)


def test_markdown_tiers():
    assert dead_stock.suggested_markdown(30, 80) == 0
    assert dead_stock.suggested_markdown(90, 40) == 16
    assert dead_stock.suggested_markdown(180, 40) == 32
    assert dead_stock.suggested_markdown(365, 40) == 54


def test_risk_score_is_capped():
    assert dead_stock.risk_score(NO_SALE_SENTINEL_DAYS, 0, 0, 0) == 100
    assert dead_stock.risk_score(365, 0, 0, 0) == pytest.approx(40)


def test_find_dead_stock_uses_smallest_threshold():
    catalog = [
        stocked(1, days_since_sale=100),
        stocked(2, days_since_sale=30),
        stocked(3, days_since_sale=None),
        stocked(4, stock=0, days_since_sale=400),
    ]

    dead = dead_stock.find_dead_stock(catalog, 90, NOW)

    assert [p.product_id for p in dead] == [1, 3]


def test_item_metrics():
    product = stocked(1, stock=10, days_since_sale=200, last_restock_date=NOW - timedelta(days=146))

    item = dead_stock.analyze_item(product, NOW)

    assert item.total_value == 100
    assert item.days_since_last_sale == 200
    assert item.days_in_stock == 146
    assert item.carrying_cost == pytest.approx(100 * 0.25 / 365 * 146)
    expected_risk = 200 / 3.65 * 0.4 + 0.1 * 0.3 + 0.1 * 0.2 + 146 / 3.65 * 0.1
    assert item.risk_score == round(expected_risk)
    assert item.suggested_markdown_percent == round(30 + expected_risk / 20)
    assert item.last_restock_date == "2024-01-07"


def test_bundles_come_from_live_products_in_same_category():
    dead = stocked(1, days_since_sale=200)
    catalog = [
        dead,
        stocked(2, days_since_sale=1, base_price=50),
        stocked(3, days_since_sale=1, base_price=30),
        stocked(4, days_since_sale=1, base_price=40),
        stocked(5, days_since_sale=1, base_price=90),
        stocked(6, days_since_sale=1, base_price=99, stock=0),
        stocked(7, days_since_sale=1, base_price=99, category_id=2),
    ]

    bundles = dead_stock.bundle_candidates([dead], catalog)

    assert bundles[1] == ["Product 5 (SKU-5)", "Product 2 (SKU-2)", "Product 4 (SKU-4)"]


def test_report_recommendations_and_thresholds():
    catalog = [stocked(1, stock=500, days_since_sale=None), stocked(2, days_since_sale=120)]

    report = dead_stock.build_report(catalog, [365, 90, 180], NOW)

    assert report["thresholds"] == {"min_days": 90, "max_days": 365, "active_thresholds": [90, 180, 365]}
    assert [i["product_id"] for i in report["items"]] == [1, 2]
    titles = [r["title"] for r in report["recommendations"]]
    assert "Immediate Action Required" in titles
    assert "Obsolete Inventory" in titles
    assert report["stats"]["total_dead_stock_items"] == 2
    assert report["stats"]["highest_risk_items"] == 1


def test_empty_report():
    report = dead_stock.build_report([], dead_stock.DEFAULT_THRESHOLDS, NOW)

    assert report["items"] == []
    assert report["stats"]["average_days_dead"] == 0
    assert report["recommendations"] == []


def test_store_dead_stock_report(db, store_a, store_b, repo_a):
    category = make_category(db, store_a)
    stale = make_product(db, store_a, "OLD-1", stock_quantity=30, category_id=category.id)
    fresh = make_product(db, store_a, "NEW-1", stock_quantity=5, category_id=category.id, base_price=35.0)
    make_product(db, store_a, "GONE-1", stock_quantity=40, is_active=False)
    make_product(db, store_b, "OTHER-1", stock_quantity=99)

    make_sale(db, store_a, stale, 2, days_ago=200)
    make_sale(db, store_a, fresh, 1, days_ago=3)
    make_log(db, store_a, stale, 30, days_ago=150, change_type="restock", after=30)

    report = dead_stock_report(repo_a)

    assert [item["sku"] for item in report["items"]] == ["OLD-1"]
    item = report["items"][0]
    assert item["days_since_last_sale"] == 200
    assert item["days_in_stock"] == 150
    assert item["potential_bundles"] == ["Product NEW-1 (NEW-1)"]
