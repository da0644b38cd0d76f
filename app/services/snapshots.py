"""
Daily inventory snapshots.

A snapshot records the store's catalog value, stock-status counts and 90-day
movement figures under one date, so valuation can chart history and compare
periods. There is one row per store and day; capturing again overwrites it.
Stock levels and prices are read as they stand at capture time, while the
sales window ends on the snapshot date.
"""
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from app.core.clock import end_of_day, utc_now, utc_today
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging_config import get_logger
from app.models.snapshot import InventorySnapshot
from app.repositories.store_scope import StoreRepository
from app.services.turnover import FAST_TURNOVER

logger = get_logger(__name__)

SALES_WINDOW_DAYS = 90
PERIODS_PER_YEAR = 4  # 90-day windows
NO_SALES_DAYS_TO_SELL = 365
SLOW_MOVING_UNITS = 5
TOP_PRODUCTS = 10
MAX_BACKFILL_DAYS = 366


@dataclass
class SnapshotProduct:
    product_id: int
    sku: str
    name: str
    category: str
    is_active: bool
    stock_quantity: int
    low_stock_threshold: int
    unit_cost: float
    retail_price: float
    units_sold: float = 0.0


def snapshot_metrics(products: Sequence[SnapshotProduct]) -> dict:
    """Column values for an InventorySnapshot computed over the whole catalog."""
    columns = list(SnapshotProduct.__dataclass_fields__)
    frame = pd.DataFrame([asdict(p) for p in products], columns=columns)
    frame["is_active"] = frame["is_active"].astype(bool)
    active = frame[frame["is_active"]].copy()

    stock = active["stock_quantity"].astype(float).to_numpy()
    units = active["units_sold"].astype(float).to_numpy()
    threshold = active["low_stock_threshold"].astype(float).to_numpy()
    active["cost_value"] = stock * active["unit_cost"].astype(float).to_numpy()
    active["retail_value"] = stock * active["retail_price"].astype(float).to_numpy()
    cost_value = active["cost_value"].to_numpy()

    ratio = np.divide(units * PERIODS_PER_YEAR, stock, out=np.zeros_like(stock), where=stock > 0)
    days_to_sell = np.divide(
        stock * SALES_WINDOW_DAYS, units, out=np.full_like(units, float(NO_SALES_DAYS_TO_SELL)), where=units > 0
    )
    slow = (units > 0) & (units < SLOW_MOVING_UNITS)
    dead = (stock > 0) & (units == 0)

    stocked = active[active["stock_quantity"] > 0]
    top = stocked.sort_values("cost_value", ascending=False, kind="stable").head(TOP_PRODUCTS)

    return {
        "total_products": int(len(active)),
        "total_quantity": int(stock.sum()),
        "total_cost_value": round(float(cost_value.sum()), 2),
        "total_retail_value": round(float(active["retail_value"].sum()), 2),
        "value_by_category": {
            name: round(float(value), 2) for name, value in active.groupby("category")["cost_value"].sum().items()
        },
        "quantity_by_category": {
            name: int(value) for name, value in active.groupby("category")["stock_quantity"].sum().items()
        },
        "in_stock_count": int((stock > threshold).sum()),
        "low_stock_count": int(((stock > 0) & (stock <= threshold)).sum()),
        "out_of_stock_count": int((stock <= 0).sum()),
        "discontinued_count": int((~frame["is_active"]).sum()),
        "dead_stock_count": int(dead.sum()),
        "dead_stock_value": round(float(cost_value[dead].sum()), 2),
        "slow_moving_count": int((slow & (stock > 0)).sum()),
        "slow_moving_value": round(float(cost_value[slow].sum()), 2),
        "avg_turnover_ratio": round(float(ratio.mean()), 2) if len(active) else None,
        "avg_days_to_sell": round(float(days_to_sell.mean()), 2) if len(active) else None,
        "fast_moving_count": int((ratio > FAST_TURNOVER).sum()),
        "top_products_by_value": [
            {
                "product_id": int(row["product_id"]),
                "sku": row["sku"],
                "name": row["name"],
                "value": round(float(row["cost_value"]), 2),
                "quantity": int(row["stock_quantity"]),
            }
            for row in top.to_dict("records")
        ],
    }


def capture_snapshot(
    repo: StoreRepository,
    snapshot_date: Optional[date] = None,
    snapshot_type: str = "daily",
) -> InventorySnapshot:
    snapshot_date = snapshot_date or utc_today()
    if snapshot_date > utc_today():
        raise ValidationError("Snapshots cannot be dated in the future")

    window_end = end_of_day(snapshot_date)
    sales = repo.sales_in_range(
        settings.VELOCITY_ORDER_STATUSES, window_end - timedelta(days=SALES_WINDOW_DAYS), window_end
    )
    catalog = [
        SnapshotProduct(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            category=product.category.name if product.category else "Uncategorized",
            is_active=bool(product.is_active),
            stock_quantity=product.stock_quantity or 0,
            low_stock_threshold=product.low_stock_threshold or 0,
            unit_cost=product.unit_cost,
            retail_price=float(product.base_price or 0),
            units_sold=sales.get(product.id, (0.0, 0.0))[0],
        )
        for product in repo.products()
    ]
    metrics = snapshot_metrics(catalog)

    with repo.transaction():
        snapshot = repo.snapshot_on(snapshot_date)
        if snapshot is None:
            snapshot = repo.add(InventorySnapshot(snapshot_date=snapshot_date))
        for field, value in metrics.items():
            setattr(snapshot, field, value)
        snapshot.snapshot_type = snapshot_type
        snapshot.created_by = repo.context.user_id
        snapshot.created_at = utc_now()

    logger.info(
        f"Captured {snapshot_type} snapshot for {snapshot_date.isoformat()}: "
        f"{metrics['total_products']} products, cost value {metrics['total_cost_value']:.2f}"
    )
    return snapshot


def backfill_snapshots(repo: StoreRepository, start_date: date, end_date: Optional[date] = None) -> List[date]:
    """Capture snapshots for each day in the range that has none yet; returns the days filled."""
    end_date = end_date or utc_today()
    if start_date > end_date:
        raise ValidationError("start_date must not be after end_date")
    if (end_date - start_date).days + 1 > MAX_BACKFILL_DAYS:
        raise ValidationError(f"Backfill is limited to {MAX_BACKFILL_DAYS} days")

    existing = {snapshot.snapshot_date for snapshot in repo.snapshots(start_date, end_date)}
    filled = []
    day = start_date
    while day <= end_date:
        if day not in existing:
            capture_snapshot(repo, day, snapshot_type="backfill")
            filled.append(day)
        day += timedelta(days=1)
    return filled
