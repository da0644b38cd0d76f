"""
Multi-method demand forecasting.

Four estimators run over a product's trailing sales windows (moving average,
trend analysis, seasonal and linear regression); each reports a confidence
level and the most confident one is chosen, earlier methods winning ties.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

import numpy as np

from app.services.velocity import SalesHistory

FORECAST_PERIODS = (7, 14, 30, 60, 90, 180, 365)
WINDOW_DAYS = (30, 60, 90, 180, 365)

CONFIDENCE_SCORES = {"low": 1, "medium": 2, "high": 3}
TREND_SLOPE = 0.1

# January first
SEASONAL_FACTORS = (1.1, 0.9, 1.0, 1.0, 1.1, 1.0, 0.9, 0.9, 1.0, 1.0, 1.2, 1.3)


@dataclass
class ForecastResult:
    forecast_value: int
    confidence: str
    trend: str
    algorithm: str

    def to_dict(self) -> dict:
        return dict(self.__dict__)


def _round(value: float) -> int:
    # half-up, so 2.5 units forecast as 3
    return int(np.floor(value + 0.5))


def _trend_from_slope(slope: float) -> str:
    if slope > TREND_SLOPE:
        return "increasing"
    if slope < -TREND_SLOPE:
        return "decreasing"
    return "stable"


def _windows(history: SalesHistory) -> np.ndarray:
    return np.array([getattr(history, f"sales_{days}d") or 0.0 for days in WINDOW_DAYS], dtype=float)


def moving_average(history: SalesHistory, period_days: int) -> ForecastResult:
    daily_30 = history.sales_30d / 30
    daily_60 = history.sales_60d / 60
    daily_90 = history.sales_90d / 90

    weighted = daily_30 * 0.5 + daily_60 * 0.3 + daily_90 * 0.2
    spread = abs(daily_30 - daily_60) + abs(daily_60 - daily_90)
    confidence = "high" if spread < 1 else "medium" if spread < 3 else "low"

    if daily_30 > daily_90:
        trend = "increasing"
    elif daily_30 < daily_90:
        trend = "decreasing"
    else:
        trend = "stable"
    return ForecastResult(_round(weighted * period_days), confidence, trend, "Moving Average")


def trend_analysis(history: SalesHistory, period_days: int) -> ForecastResult:
    sales = _windows(history)
    mask = sales > 0
    periods, sales = np.array(WINDOW_DAYS, dtype=float)[mask], sales[mask]
    if len(periods) < 2:
        return ForecastResult(0, "low", "stable", "Trend Analysis")

    slope = np.polyfit(periods, sales, 1)[0]
    base_rate = sales[0] / periods[0]
    projected_rate = base_rate + slope * period_days / 365
    confidence = "high" if len(periods) >= 4 else "medium" if len(periods) >= 3 else "low"
    return ForecastResult(
        max(0, _round(projected_rate * period_days)), confidence, _trend_from_slope(slope), "Trend Analysis"
    )


def seasonal(history: SalesHistory, period_days: int, today: date) -> ForecastResult:
    rate = history.sales_30d / 30 * SEASONAL_FACTORS[today.month - 1]
    confidence = "medium" if history.sales_365d > 0 else "low"
    return ForecastResult(_round(rate * period_days), confidence, "stable", "Seasonal Forecast")


def linear_regression(history: SalesHistory, period_days: int) -> ForecastResult:
    sales = _windows(history)
    mask = sales > 0
    x, y = np.array(WINDOW_DAYS, dtype=float)[mask], sales[mask]
    if len(x) < 3:
        return ForecastResult(
            _round(history.sales_30d * period_days / 30), "low", "stable", "Linear Regression"
        )

    slope, intercept = np.polyfit(x, y, 1)
    with np.errstate(divide="ignore", invalid="ignore"):
        correlation = abs(np.corrcoef(x, y)[0, 1])
    correlation = 0.0 if np.isnan(correlation) else correlation

    daily_rate = slope + intercept / period_days
    confidence = "high" if correlation > 0.8 else "medium" if correlation > 0.5 else "low"
    return ForecastResult(
        max(0, _round(daily_rate * period_days)), confidence, _trend_from_slope(slope), "Linear Regression"
    )


def all_forecasts(history: Optional[SalesHistory], period_days: int, today: date) -> List[ForecastResult]:
    history = history or SalesHistory()
    return [
        moving_average(history, period_days),
        trend_analysis(history, period_days),
        seasonal(history, period_days, today),
        linear_regression(history, period_days),
    ]


def best_forecast(forecasts: List[ForecastResult]) -> ForecastResult:
    return max(forecasts, key=lambda result: CONFIDENCE_SCORES[result.confidence])
