from datetime import date

import pytest

from app.core.exceptions import ValidationError
from app.services import forecasting
from app.services.inventory_reports import demand_forecast
from app.services.velocity import SalesHistory
from tests.factories import auth_headers, make_product, make_sale

DECEMBER = date(2026, 12, 1)


def steady(per_day=1.0):
    return SalesHistory(
        sales_30d=30 * per_day, sales_60d=60 * per_day, sales_90d=90 * per_day,
        sales_180d=180 * per_day, sales_365d=365 * per_day,
    )


def test_steady_demand_across_methods():
    results = {r.algorithm: r for r in forecasting.all_forecasts(steady(), 30, DECEMBER)}

    assert results["Moving Average"].forecast_value == 30
    assert results["Moving Average"].confidence == "high"
    assert results["Moving Average"].trend == "stable"

    assert results["Trend Analysis"].forecast_value == 32
    assert results["Trend Analysis"].confidence == "high"
    assert results["Trend Analysis"].trend == "increasing"

    assert results["Seasonal Forecast"].forecast_value == 39
    assert results["Seasonal Forecast"].confidence == "medium"

    assert results["Linear Regression"].forecast_value == 30
    assert results["Linear Regression"].confidence == "high"


def test_most_confident_method_wins_and_earlier_wins_ties():
    best = forecasting.best_forecast(forecasting.all_forecasts(steady(), 30, DECEMBER))

    assert best.algorithm == "Moving Average"


def test_no_history_forecasts_zero():
    results = forecasting.all_forecasts(None, 90, DECEMBER)

    assert [r.forecast_value for r in results] == [0, 0, 0, 0]
    assert [r.confidence for r in results] == ["high", "low", "low", "low"]


def test_volatile_recent_sales_lower_moving_average_confidence():
    history = SalesHistory(sales_30d=300, sales_60d=300, sales_90d=300)

    result = forecasting.moving_average(history, 7)

    assert result.forecast_value == 50
    assert result.confidence == "low"
    assert result.trend == "increasing"


def test_sparse_windows():
    history = SalesHistory(sales_30d=30, sales_60d=60)

    regression = forecasting.linear_regression(history, 30)
    trend = forecasting.trend_analysis(history, 30)

    assert (regression.forecast_value, regression.confidence, regression.trend) == (30, "low", "stable")
    assert (trend.forecast_value, trend.confidence, trend.trend) == (32, "low", "increasing")


def test_seasonal_factor_follows_the_month():
    history = SalesHistory(sales_30d=30, sales_365d=300)

    assert forecasting.seasonal(history, 30, date(2026, 2, 10)).forecast_value == 27
    assert forecasting.seasonal(history, 30, date(2026, 11, 10)).forecast_value == 36


def test_rounds_half_up():
    assert forecasting._round(2.5) == 3
    assert forecasting._round(0.5) == 1
    assert forecasting._round(2.49) == 2


def test_unsupported_period_is_rejected(db, store_a, repo_a):
    product = make_product(db, store_a)

    with pytest.raises(ValidationError):
        demand_forecast(repo_a, product, 45)


def test_forecast_endpoint(client, db, admin_a, store_a, store_b):
    product = make_product(db, store_a, stock_quantity=5)
    make_sale(db, store_a, product, 30, days_ago=10)
    foreign = make_product(db, store_b, "OTHER")
    headers = auth_headers(admin_a)

    response = client.get(f"/api/v1/inventory/products/{product.id}/forecast?periodDays=30", headers=headers)
    bad_period = client.get(f"/api/v1/inventory/products/{product.id}/forecast?periodDays=45", headers=headers)
    other_store = client.get(f"/api/v1/inventory/products/{foreign.id}/forecast", headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["period_days"] == 30
    assert data["forecast"]["algorithm"] == "Moving Average"
    assert data["forecast"]["confidence"] == "high"
    assert data["forecast"]["trend"] == "increasing"
    assert len(data["methods"]) == 4
    assert bad_period.status_code == 400
    assert other_store.status_code == 404


def test_batch_forecast_endpoint(client, db, admin_a, store_a):
    selling = make_product(db, store_a, "SELL")
    idle = make_product(db, store_a, "IDLE")
    make_product(db, store_a, "GONE", is_active=False)
    make_sale(db, store_a, selling, 30, days_ago=3)

    data = client.get("/api/v1/inventory/forecasts?periodDays=7", headers=auth_headers(admin_a)).json()["data"]

    assert set(data) == {str(selling.id), str(idle.id)}
    assert data[str(idle.id)]["forecast_value"] == 0
    assert data[str(selling.id)]["forecast_value"] > 0
