"""
Inventory turnover report.

Turnover ratio = cost of goods sold / average inventory for the period.
Average inventory is rebuilt from inventory-log deltas with pandas; products
without log history in the period fall back to their current stock.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from app.core.clock import as_naive_utc, start_of_day

DAYS_TO_SELL_SENTINEL = 999999
NO_SALE_SENTINEL_DAYS = 999999
DEAD_AFTER_DAYS = 90
FAST_TURNOVER = 6
MEDIUM_TURNOVER = 3


@dataclass
class ProductSales:
    product_id: int
    sku: str
    name: str
    category: str
    current_inventory: int
    total_sales_quantity: float = 0.0
    total_sales_revenue: float = 0.0
    cost_of_goods_sold: float = 0.0
    last_sale_date: Optional[datetime] = None


@dataclass
class TurnoverMetrics:
    product_id: int
    sku: str
    name: str
    category: str
    total_sales_quantity: float
    total_sales_revenue: float
    average_inventory: float
    current_inventory: int
    cost_of_goods_sold: float
    turnover_ratio: float
    days_to_sell: float
    velocity_category: str
    last_sale_date: Optional[str]
    trend_data: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return dict(self.__dict__)


def days_in_period(start: datetime, end: datetime) -> int:
    return max(1, round((end - start).total_seconds() / 86400))


def turnover_ratio(cost_of_goods_sold: float, average_inventory: float) -> float:
    if not average_inventory:
        return 0.0
    return cost_of_goods_sold / average_inventory


def days_to_sell(average_inventory: float, total_sales_quantity: float, period_days: int) -> float:
    if total_sales_quantity > 0:
        return (average_inventory / total_sales_quantity) * period_days
    return DAYS_TO_SELL_SENTINEL


def days_since(moment: Optional[datetime], now: datetime) -> int:
    if moment is None:
        return NO_SALE_SENTINEL_DAYS
    return round((now - as_naive_utc(moment)).total_seconds() / 86400)


def classify_velocity(ratio: float, days_since_last_sale: int) -> str:
    if days_since_last_sale > DEAD_AFTER_DAYS or ratio == 0:
        return "dead"
    if ratio >= FAST_TURNOVER:
        return "fast"
    if ratio >= MEDIUM_TURNOVER:
        return "medium"
    return "slow"


def average_inventory_levels(
    log_rows: Iterable[Tuple[int, datetime, int]],
    start: datetime,
    end: datetime,
) -> Dict[int, float]:
    """
    Mean end-of-day inventory per product over [start, end].

    `log_rows` are (product_id, created_at, quantity_change) tuples; the
    running level is the cumulative sum of deltas up to `end`.
    """
    frame = pd.DataFrame(list(log_rows), columns=["product_id", "created_at", "quantity_change"])
    if frame.empty:
        return {}

    frame["created_at"] = pd.to_datetime(frame["created_at"].map(as_naive_utc))
    frame = frame[frame["created_at"] <= end].sort_values(["product_id", "created_at"], kind="mergesort")
    if frame.empty:
        return {}

    frame["running_inventory"] = frame.groupby("product_id")["quantity_change"].cumsum()
    frame["day"] = frame["created_at"].dt.normalize()
    daily = frame.groupby(["product_id", "day"], as_index=False)["running_inventory"].last()
    in_range = daily[(daily["day"] >= start_of_day(start.date())) & (daily["day"] <= end)]

    levels = in_range.groupby("product_id")["running_inventory"].mean()
    return {int(product_id): float(level) for product_id, level in levels.items()}


def daily_sales_trend(
    sale_rows: Iterable[Tuple[int, datetime, int]],
    current_stock: Dict[int, int],
    start: date,
    end: date,
) -> Dict[int, List[dict]]:
    """Daily sold quantity for each product and each day in the range."""
    days = pd.date_range(start, end, freq="D")
    product_ids = list(current_stock)
    frame = pd.DataFrame(list(sale_rows), columns=["product_id", "created_at", "quantity"])

    if frame.empty:
        grid = pd.DataFrame(0, index=days, columns=product_ids)
    else:
        frame["day"] = pd.to_datetime(frame["created_at"].map(as_naive_utc)).dt.normalize()
        grid = frame.pivot_table(index="day", columns="product_id", values="quantity", aggfunc="sum", fill_value=0)
        grid = grid.reindex(index=days, columns=product_ids, fill_value=0)

    trends = {}
    for product_id in product_ids:
        inventory = int(current_stock[product_id] or 0)
        trends[product_id] = [
            {"date": day.strftime("%Y-%m-%d"), "sales": int(sales), "inventory": inventory}
            for day, sales in grid[product_id].items()
        ]
    return trends


def compute_metrics(
    product: ProductSales,
    average_inventory: Optional[float],
    period_days: int,
    now: datetime,
    trend: Optional[List[dict]] = None,
) -> TurnoverMetrics:
    avg_inventory = float(product.current_inventory if average_inventory is None else average_inventory)
    ratio = turnover_ratio(product.cost_of_goods_sold, avg_inventory)
    last_sale = as_naive_utc(product.last_sale_date)

    return TurnoverMetrics(
        product_id=product.product_id,
        sku=product.sku,
        name=product.name,
        category=product.category,
        total_sales_quantity=product.total_sales_quantity,
        total_sales_revenue=product.total_sales_revenue,
        average_inventory=avg_inventory,
        current_inventory=product.current_inventory,
        cost_of_goods_sold=product.cost_of_goods_sold,
        turnover_ratio=ratio,
        days_to_sell=days_to_sell(avg_inventory, product.total_sales_quantity, period_days),
        velocity_category=classify_velocity(ratio, days_since(last_sale, now)),
        last_sale_date=last_sale.strftime("%Y-%m-%d") if last_sale else None,
        trend_data=trend or [],
    )


def summarize(metrics: Sequence[TurnoverMetrics]) -> dict:
    count = len(metrics)

    def category_count(name: str) -> int:
        return sum(1 for m in metrics if m.velocity_category == name)

    inventory_value = 0.0
    for m in metrics:
        unit_cost = m.cost_of_goods_sold / max(1, m.total_sales_quantity)
        inventory_value += m.current_inventory * unit_cost

    return {
        "total_products": count,
        "average_turnover_ratio": sum(m.turnover_ratio for m in metrics) / count if count else 0,
        "fast_moving_count": category_count("fast"),
        "medium_moving_count": category_count("medium"),
        "slow_moving_count": category_count("slow"),
        "dead_stock_count": category_count("dead"),
        "total_inventory_value": inventory_value,
        "total_sales_revenue": sum(m.total_sales_revenue for m in metrics),
    }


def build_report(
    products: Sequence[ProductSales],
    average_levels: Dict[int, float],
    trends: Dict[int, List[dict]],
    start: datetime,
    end: datetime,
    now: datetime,
) -> dict:
    period_days = days_in_period(start, end)
    metrics = [
        compute_metrics(p, average_levels.get(p.product_id), period_days, now, trends.get(p.product_id))
        for p in products
    ]
    metrics.sort(key=lambda m: m.turnover_ratio, reverse=True)

    return {
        "turnover": [m.to_dict() for m in metrics],
        "stats": summarize(metrics),
        "period": {
            "start_date": start.strftime("%Y-%m-%d"),
            "end_date": end.strftime("%Y-%m-%d"),
            "days": period_days,
        },
    }
