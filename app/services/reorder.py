"""
Reorder recommendation engine.

Combines the current stock position of a product with its velocity metrics
to decide whether it should be reordered, how urgently, and how much.
"""
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from app.services.velocity import VelocityMetrics

STOCKOUT_SENTINEL_DAYS = 999
REORDER_BUFFER_UNITS = 5
MIN_REORDER_QUANTITY = 20
STOCKOUT_HORIZON_DAYS = 30
UNASSIGNED_SUPPLIER = "Unassigned"

PRIORITY_RANK = {"urgent": 0, "high": 1, "medium": 2, "low": 3}


@dataclass
class StockPosition:
    product_id: int
    name: str
    sku: str
    stock_quantity: int
    low_stock_threshold: int
    unit_cost: float = 0.0
    supplier_name: Optional[str] = None


@dataclass
class Recommendation:
    product_id: int
    product_name: str
    product_sku: str
    current_stock: int
    reorder_point: float
    forecast_demand: float
    recommended_quantity: float
    unit_cost: float
    supplier: Optional[str]
    confidence: str
    reason: str
    priority: str
    days_until_stockout: int
    velocity: VelocityMetrics

    @property
    def estimated_cost(self) -> float:
        return self.recommended_quantity * self.unit_cost

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "current_stock": self.current_stock,
            "reorder_point": self.reorder_point,
            "forecast_demand": self.forecast_demand,
            "recommended_quantity": self.recommended_quantity,
            "unit_cost": self.unit_cost,
            "supplier": self.supplier,
            "confidence": self.confidence,
            "reason": self.reason,
            "priority": self.priority,
            "days_until_stockout": self.days_until_stockout,
            "sales_velocity": self.velocity.to_dict(),
        }


def reorder_point(velocity: VelocityMetrics, low_stock_threshold: int) -> float:
    return max(velocity.forecast_30d + REORDER_BUFFER_UNITS, low_stock_threshold)


def reorder_quantity(velocity: VelocityMetrics) -> float:
    return max(velocity.forecast_90d, MIN_REORDER_QUANTITY)


def days_until_stockout(stock: int, daily_velocity: float) -> int:
    """Whole days of cover at the current rate; the sentinel means no measurable demand."""
    if daily_velocity > 0:
        return math.floor(stock / daily_velocity)
    return STOCKOUT_SENTINEL_DAYS


def _tiered(total_sales: float, threshold: float, above: str, below: str) -> str:
    return above if total_sales > threshold else below


def evaluate(position: StockPosition, velocity: VelocityMetrics) -> Optional[Recommendation]:
    """Apply the reorder decision table; returns None when no action is needed."""
    stock = position.stock_quantity
    threshold = position.low_stock_threshold
    total_sales = velocity.history.total_sales
    point = reorder_point(velocity, threshold)
    stockout_days = days_until_stockout(stock, velocity.daily_velocity)

    if stock == 0:
        priority, reason, confidence = "urgent", "Out of stock", "high"
    elif stock <= threshold:
        priority, reason = "high", "Below low stock threshold"
        confidence = _tiered(total_sales, 5, "high", "medium")
    elif stock <= point:
        priority, reason = "high", "Below reorder point"
        confidence = _tiered(total_sales, 3, "high", "medium")
    elif velocity.forecast_30d > stock:
        priority, reason = "medium", "Forecast demand exceeds current stock"
        confidence = _tiered(total_sales, 2, "medium", "low")
    elif stockout_days < STOCKOUT_HORIZON_DAYS and velocity.daily_velocity > 0:
        priority, reason = "medium", "Will run out of stock within 30 days"
        confidence = _tiered(total_sales, 2, "medium", "low")
    else:
        return None

    if velocity.is_trending_up:
        reason += ", increasing sales trend"
        if priority == "medium":
            priority = "high"

    return Recommendation(
        product_id=position.product_id,
        product_name=position.name,
        product_sku=position.sku,
        current_stock=stock,
        reorder_point=point,
        forecast_demand=velocity.forecast_30d,
        recommended_quantity=reorder_quantity(velocity),
        unit_cost=position.unit_cost,
        supplier=position.supplier_name,
        confidence=confidence,
        reason=reason,
        priority=priority,
        days_until_stockout=max(0, stockout_days),
        velocity=velocity,
    )


def rank(recommendations: Iterable[Recommendation]) -> List[Recommendation]:
    return sorted(
        recommendations,
        key=lambda r: (PRIORITY_RANK.get(r.priority, len(PRIORITY_RANK)), r.days_until_stockout, r.product_name),
    )


def assign_suppliers(recommendations: Sequence[Recommendation], supplier_names: Sequence[str]) -> None:
    """Fill in missing suppliers round-robin, in ranked order."""
    cursor = 0
    for rec in recommendations:
        if rec.supplier:
            continue
        if supplier_names:
            rec.supplier = supplier_names[cursor % len(supplier_names)]
            cursor += 1
        else:
            rec.supplier = UNASSIGNED_SUPPLIER


def build_recommendations(
    candidates: Iterable[tuple],
    supplier_names: Sequence[str],
    limit: int,
) -> dict:
    """
    Evaluate (StockPosition, VelocityMetrics) pairs and produce the ranked page
    plus its summary block.
    """
    emitted = [rec for rec in (evaluate(position, velocity) for position, velocity in candidates) if rec]
    ranked = rank(emitted)
    assign_suppliers(ranked, supplier_names)
    page = ranked[:max(0, limit)]

    return {
        "recommendations": page,
        "summary": {
            "total_recommendations": len(ranked),
            "urgent_items": sum(1 for r in ranked if r.priority == "urgent"),
            "high_priority_items": sum(1 for r in ranked if r.priority == "high"),
            "estimated_cost": sum(r.estimated_cost for r in page),
        },
    }
