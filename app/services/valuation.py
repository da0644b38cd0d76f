"""
Inventory valuation report.

Cost and retail value of the stock on hand, broken down by category and
supplier, with the most valuable products, a value history read from daily
snapshots and an optional comparison with the snapshot one period earlier.
Cost falls back to 60% of list price where no cost is recorded (see
Product.unit_cost).
"""
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

TOP_PRODUCTS = 10


@dataclass
class ValuedProduct:
    product_id: int
    sku: str
    name: str
    category: str
    supplier_id: Optional[int]
    supplier_name: Optional[str]
    quantity: int
    unit_cost: float
    retail_price: float


def margin_percentage(cost_value: float, retail_value: float) -> float:
    """Markup over cost, in percent; zero when there is no cost basis."""
    if not cost_value or cost_value <= 0:
        return 0.0
    return (retail_value - cost_value) / cost_value * 100


def summarize(total_products: int, total_quantity: int, total_cost_value: float, total_retail_value: float) -> dict:
    cost = float(total_cost_value or 0)
    retail = float(total_retail_value or 0)
    return {
        "total_cost_value": round(cost, 2),
        "total_retail_value": round(retail, 2),
        "total_quantity": int(total_quantity or 0),
        "total_products": int(total_products or 0),
        "average_margin_percentage": round(margin_percentage(cost, retail), 2),
        "total_potential_profit": round(retail - cost, 2),
    }


def snapshot_summary(snapshot) -> dict:
    return summarize(
        snapshot.total_products, snapshot.total_quantity, snapshot.total_cost_value, snapshot.total_retail_value
    )


def snapshot_point(snapshot) -> dict:
    return {
        "date": snapshot.snapshot_date.isoformat(),
        "total_cost_value": round(float(snapshot.total_cost_value or 0), 2),
        "total_retail_value": round(float(snapshot.total_retail_value or 0), 2),
        "total_quantity": int(snapshot.total_quantity or 0),
        "product_count": int(snapshot.total_products or 0),
    }


def previous_period_end(start_day: date, end_day: date) -> date:
    """Day whose snapshot stands for the previous period: one inclusive period length back."""
    return end_day - timedelta(days=(end_day - start_day).days + 1)


def _change(current: float, previous: float) -> float:
    if previous > 0:
        return round((current - previous) / previous * 100, 2)
    return 0.0


def compare_periods(current: dict, previous: Optional[dict]) -> Optional[dict]:
    if previous is None:
        return None
    return {
        "current_period": current,
        "previous_period": previous,
        "cost_value_change": round(current["total_cost_value"] - previous["total_cost_value"], 2),
        "cost_value_change_percentage": _change(current["total_cost_value"], previous["total_cost_value"]),
        "retail_value_change": round(current["total_retail_value"] - previous["total_retail_value"], 2),
        "retail_value_change_percentage": _change(current["total_retail_value"], previous["total_retail_value"]),
        "quantity_change": current["total_quantity"] - previous["total_quantity"],
        "quantity_change_percentage": _change(current["total_quantity"], previous["total_quantity"]),
    }


def _frame(products: Sequence[ValuedProduct]) -> pd.DataFrame:
    columns = list(ValuedProduct.__dataclass_fields__)
    frame = pd.DataFrame([asdict(p) for p in products if p.quantity > 0], columns=columns)
    frame["cost_value"] = frame["quantity"].astype(float) * frame["unit_cost"].astype(float)
    frame["retail_value"] = frame["quantity"].astype(float) * frame["retail_price"].astype(float)
    return frame


def _breakdown(frame: pd.DataFrame, keys: List[str]) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    grouped = (
        frame.groupby(keys, sort=False)
        .agg(
            product_count=("product_id", "nunique"),
            quantity=("quantity", "sum"),
            cost_value=("cost_value", "sum"),
            retail_value=("retail_value", "sum"),
        )
        .reset_index()
        .sort_values("cost_value", ascending=False, kind="stable")
    )
    rows = []
    for row in grouped.to_dict("records"):
        cost, retail = float(row["cost_value"]), float(row["retail_value"])
        entry = {key: row[key] for key in keys}
        entry.update({
            "cost_value": round(cost, 2),
            "retail_value": round(retail, 2),
            "quantity": int(row["quantity"]),
            "product_count": int(row["product_count"]),
            "margin_percentage": round(margin_percentage(cost, retail), 2),
        })
        rows.append(entry)
    return rows


def _top_products(frame: pd.DataFrame) -> List[dict]:
    top = frame.sort_values("cost_value", ascending=False, kind="stable").head(TOP_PRODUCTS)
    return [
        {
            "product_id": int(row["product_id"]),
            "sku": row["sku"],
            "name": row["name"],
            "category": row["category"],
            "quantity": int(row["quantity"]),
            "cost_price": round(float(row["unit_cost"]), 2),
            "retail_price": round(float(row["retail_price"]), 2),
            "total_cost_value": round(float(row["cost_value"]), 2),
            "total_retail_value": round(float(row["retail_value"]), 2),
            "margin_percentage": round(margin_percentage(float(row["unit_cost"]), float(row["retail_price"])), 2),
        }
        for row in top.to_dict("records")
    ]


def build_report(
    products: Sequence[ValuedProduct],
    history: Sequence[dict],
    previous: Optional[dict],
    start_day: date,
    end_day: date,
) -> dict:
    """
    Assemble the valuation report.

    Only products with stock on hand are valued. `history` holds snapshot
    points for the period; without any, the current totals stand in as a
    single point on the end date. `previous` is the summary of the comparison
    snapshot, or None when no comparison was asked for or none exists.
    """
    frame = _frame(products)
    summary = summarize(
        frame["product_id"].nunique(),
        frame["quantity"].sum(),
        frame["cost_value"].sum(),
        frame["retail_value"].sum(),
    )

    by_supplier = _breakdown(frame[frame["supplier_id"].notna()], ["supplier_id", "supplier_name"])
    for row in by_supplier:
        row["supplier_id"] = int(row["supplier_id"])

    trend = list(history) or [{
        "date": end_day.isoformat(),
        "total_cost_value": summary["total_cost_value"],
        "total_retail_value": summary["total_retail_value"],
        "total_quantity": summary["total_quantity"],
        "product_count": summary["total_products"],
    }]

    return {
        "summary": summary,
        "by_category": _breakdown(frame, ["category"]),
        "by_supplier": by_supplier,
        "top_products": _top_products(frame),
        "historical_trend": trend,
        "period_comparison": compare_periods(summary, previous),
        "period": {"start_date": start_day.isoformat(), "end_date": end_day.isoformat()},
    }
