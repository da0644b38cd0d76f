import pytest

from app.services.reorder import (
    STOCKOUT_SENTINEL_DAYS, StockPosition, assign_suppliers, build_recommendations,
    days_until_stockout, evaluate, rank, reorder_point, reorder_quantity,
)
from app.services.velocity import SalesHistory, analyze_velocity


def position(stock, threshold=10, name="Widget", product_id=1, supplier=None, unit_cost=4.0):
    return StockPosition(
        product_id=product_id,
        name=name,
        sku=f"SKU-{product_id}",
        stock_quantity=stock,
        low_stock_threshold=threshold,
        unit_cost=unit_cost,
        supplier_name=supplier,
    )


def velocity(**history):
    return analyze_velocity(SalesHistory(**history))


def test_out_of_stock_without_sales_is_urgent_with_sentinel():
    rec = evaluate(position(0, threshold=10), velocity())

    assert rec.priority == "urgent"
    assert rec.reason == "Out of stock"
    assert rec.confidence == "high"
    assert rec.days_until_stockout == STOCKOUT_SENTINEL_DAYS
    assert rec.recommended_quantity == 20


def test_reorder_point_never_below_threshold():
    assert reorder_point(velocity(), 10) == 10
    assert reorder_point(velocity(sales_30d=30), 10) == 35


@pytest.mark.parametrize("sales_30d", [0, 5, 30, 90, 300])
def test_reorder_point_at_least_threshold_and_forecast(sales_30d):
    metrics = velocity(sales_30d=sales_30d)
    point = reorder_point(metrics, 12)

    assert point >= 12
    assert point >= metrics.forecast_30d + 5


def test_reorder_quantity_has_floor():
    assert reorder_quantity(velocity(sales_90d=5)) == 20
    assert reorder_quantity(velocity(sales_90d=120)) == 120


def test_days_until_stockout():
    assert days_until_stockout(10, 0) == STOCKOUT_SENTINEL_DAYS
    assert days_until_stockout(10, 3) == 3


def test_below_threshold_confidence_depends_on_total_sales():
    low = evaluate(position(5), velocity(total_sales=5))
    high = evaluate(position(5), velocity(total_sales=6))

    assert low.priority == high.priority == "high"
    assert low.reason == "Below low stock threshold"
    assert low.confidence == "medium"
    assert high.confidence == "high"


def test_below_reorder_point():
    rec = evaluate(position(20), velocity(sales_30d=30, avg_monthly_sales=30, total_sales=40))

    assert rec.priority == "high"
    assert rec.reason == "Below reorder point"
    assert rec.confidence == "high"


def test_out_of_stock_takes_precedence_over_threshold():
    rec = evaluate(position(0, threshold=0), velocity(sales_30d=60, avg_monthly_sales=60))

    assert rec.priority == "urgent"


def test_stockout_within_horizon():
    # point = max(30 + 5, 0) = 35, so stock 40 passes the first three rules
    metrics = velocity(sales_30d=30, avg_monthly_sales=30, total_sales=3)
    metrics.daily_velocity = 2.0
    rec = evaluate(position(40, threshold=0), metrics)

    assert rec.reason == "Will run out of stock within 30 days"
    assert rec.priority == "medium"
    assert rec.confidence == "medium"
    assert rec.days_until_stockout == 20


def test_well_stocked_product_needs_nothing():
    assert evaluate(position(500), velocity(sales_30d=30, avg_monthly_sales=30)) is None


def test_increasing_trend_promotes_medium_to_high():
    metrics = velocity(sales_30d=30, avg_monthly_sales=10, total_sales=30)
    metrics.daily_velocity = 2.0
    rec = evaluate(position(40, threshold=0), metrics)

    assert rec.reason == "Will run out of stock within 30 days, increasing sales trend"
    assert rec.priority == "high"


def test_rank_orders_by_priority_then_stockout_then_name():
    recs = [
        evaluate(position(5, name="B", product_id=1), velocity(sales_30d=30)),
        evaluate(position(0, name="Z", product_id=2), velocity()),
        evaluate(position(5, name="A", product_id=3), velocity(sales_30d=30)),
        evaluate(position(8, name="C", product_id=4), velocity(sales_30d=3)),
    ]

    ranked = rank(recs)

    assert [r.product_name for r in ranked] == ["Z", "A", "B", "C"]


def test_supplier_round_robin_and_unassigned():
    recs = rank([
        evaluate(position(0, name="A", product_id=1), velocity()),
        evaluate(position(0, name="B", product_id=2, supplier="Own Supplier"), velocity()),
        evaluate(position(0, name="C", product_id=3), velocity()),
        evaluate(position(0, name="D", product_id=4), velocity()),
    ])
    assign_suppliers(recs, ["Acme", "Zenith"])
    assert [r.supplier for r in recs] == ["Acme", "Own Supplier", "Zenith", "Acme"]

    orphans = [evaluate(position(0), velocity())]
    assign_suppliers(orphans, [])
    assert orphans[0].supplier == "Unassigned"


def test_build_recommendations_truncates_but_counts_all():
    candidates = [(position(0, name=f"P{i}", product_id=i, unit_cost=2.0), velocity()) for i in range(5)]
    candidates.append((position(500, product_id=99), velocity()))

    report = build_recommendations(candidates, ["Acme"], limit=2)

    assert len(report["recommendations"]) == 2
    summary = report["summary"]
    assert summary["total_recommendations"] == 5
    assert summary["urgent_items"] == 5
    assert summary["high_priority_items"] == 0
    assert summary["estimated_cost"] == pytest.approx(2 * 20 * 2.0)


def test_to_dict_carries_velocity_block():
    data = evaluate(position(0), velocity(sales_30d=0)).to_dict()

    assert data["sales_velocity"]["velocity_trend"] == "stable"
    assert data["days_until_stockout"] == STOCKOUT_SENTINEL_DAYS
