"""
Sales velocity analysis.

Turns the trailing-window sales aggregates of one product into daily, weekly
and monthly velocity, a trend label and 30/90 day demand forecasts. Pure
functions over already-fetched numbers; missing data degrades to zero.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

import numpy as np

LOOKBACK_WINDOWS = (7, 14, 30, 60, 90, 180, 365)

TREND_UP_FACTOR = 1.2
TREND_DOWN_FACTOR = 0.8


def _non_negative(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not np.isfinite(number) or number < 0:
        return 0.0
    return number


@dataclass
class SalesHistory:
    """Summed sale quantities per trailing window for one product."""

    sales_7d: float = 0.0
    sales_14d: float = 0.0
    sales_30d: float = 0.0
    sales_60d: float = 0.0
    sales_90d: float = 0.0
    sales_180d: float = 0.0
    sales_365d: float = 0.0
    avg_monthly_sales: float = 0.0
    total_sales: float = 0.0
    total_orders: int = 0
    last_sale_date: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Optional[Mapping[str, Any]]) -> "SalesHistory":
        if not row:
            return cls()
        values = {
            f"sales_{days}d": _non_negative(row.get(f"sales_{days}d")) for days in LOOKBACK_WINDOWS
        }
        return cls(
            avg_monthly_sales=_non_negative(row.get("avg_monthly_sales")),
            total_sales=_non_negative(row.get("total_sales")),
            total_orders=int(_non_negative(row.get("total_orders"))),
            last_sale_date=row.get("last_sale_date"),
            **values,
        )


@dataclass
class VelocityMetrics:
    daily_velocity: float = 0.0
    weekly_velocity: float = 0.0
    monthly_velocity: float = 0.0
    velocity_trend: str = "stable"
    forecast_30d: float = 0.0
    forecast_90d: float = 0.0
    history: SalesHistory = field(default_factory=SalesHistory)

    @property
    def is_trending_up(self) -> bool:
        return self.velocity_trend == "increasing"

    def to_dict(self) -> dict:
        return {
            "daily_velocity": round(self.daily_velocity, 2),
            "weekly_velocity": round(self.weekly_velocity, 2),
            "monthly_velocity": round(self.monthly_velocity, 2),
            "velocity_trend": self.velocity_trend,
        }


def classify_trend(sales_30d: float, avg_monthly_sales: float) -> str:
    if sales_30d > avg_monthly_sales * TREND_UP_FACTOR:
        return "increasing"
    if sales_30d < avg_monthly_sales * TREND_DOWN_FACTOR and avg_monthly_sales > 0:
        return "decreasing"
    return "stable"


def analyze_velocity(history: Optional[SalesHistory]) -> VelocityMetrics:
    history = history or SalesHistory()
    sales_7d = _non_negative(history.sales_7d)
    sales_30d = _non_negative(history.sales_30d)
    sales_90d = _non_negative(history.sales_90d)
    avg_monthly = _non_negative(history.avg_monthly_sales)

    daily = sales_30d / 30 if sales_30d > 0 else avg_monthly / 30
    weekly = sales_7d if sales_7d > 0 else (sales_30d / 30) * 7
    monthly = sales_30d if sales_30d > 0 else avg_monthly

    return VelocityMetrics(
        daily_velocity=daily,
        weekly_velocity=weekly,
        monthly_velocity=monthly,
        velocity_trend=classify_trend(sales_30d, avg_monthly),
        forecast_30d=max(sales_30d, avg_monthly),
        forecast_90d=max(sales_90d, avg_monthly * 3),
        history=history,
    )
