"""
Dead-stock analysis: products holding stock that has not sold within the
configured thresholds, with carrying cost, a 0-100 risk score, markdown and
liquidation suggestions.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from app.core.clock import as_naive_utc
from app.services.turnover import days_since

ANNUAL_CARRYING_COST_RATE = 0.25
DEFAULT_THRESHOLDS = (90, 180, 365)
HIGH_RISK_SCORE = 75
MAX_LIQUIDATION_DISCOUNT = 75
MAX_BUNDLES = 3


@dataclass
class StockedProduct:
    product_id: int
    sku: str
    name: str
    category: str
    category_id: Optional[int]
    current_stock: int
    unit_cost: float
    base_price: float
    created_at: datetime
    last_sale_date: Optional[datetime] = None
    last_restock_date: Optional[datetime] = None


@dataclass
class DeadStockItem:
    product_id: int
    sku: str
    name: str
    category: str
    current_stock: int
    unit_cost: float
    total_value: float
    last_sale_date: Optional[str]
    last_restock_date: Optional[str]
    days_since_last_sale: int
    days_in_stock: int
    carrying_cost: float
    risk_score: int
    suggested_markdown_percent: int
    liquidation_value: float
    potential_bundles: List[str] = field(default_factory=list)


def risk_score(days_since_last_sale: float, total_value: float, stock: int, days_in_stock: float) -> float:
    score = (
        (days_since_last_sale / 3.65) * 0.4
        + (total_value / 1000) * 0.3
        + (stock / 100) * 0.2
        + (days_in_stock / 3.65) * 0.1
    )
    return min(100.0, score)


def suggested_markdown(days_since_last_sale: float, score: float) -> float:
    if days_since_last_sale >= 365:
        return 50 + score / 10
    if days_since_last_sale >= 180:
        return 30 + score / 20
    if days_since_last_sale >= 90:
        return 15 + score / 40
    return 0.0


def _fmt(moment: Optional[datetime]) -> Optional[str]:
    moment = as_naive_utc(moment)
    return moment.strftime("%Y-%m-%d") if moment else None


def analyze_item(product: StockedProduct, now: datetime) -> DeadStockItem:
    age = days_since(product.last_sale_date, now)
    stocked_since = product.last_restock_date or product.created_at
    in_stock_days = max(0, days_since(stocked_since, now)) if stocked_since else 0
    total_value = product.current_stock * product.unit_cost
    carrying_cost = total_value * (ANNUAL_CARRYING_COST_RATE / 365) * in_stock_days
    score = risk_score(age, total_value, product.current_stock, in_stock_days)
    markdown = suggested_markdown(age, score)
    liquidation_discount = min(MAX_LIQUIDATION_DISCOUNT, markdown * 1.5)

    return DeadStockItem(
        product_id=product.product_id,
        sku=product.sku,
        name=product.name,
        category=product.category,
        current_stock=product.current_stock,
        unit_cost=product.unit_cost,
        total_value=total_value,
        last_sale_date=_fmt(product.last_sale_date),
        last_restock_date=_fmt(product.last_restock_date),
        days_since_last_sale=age,
        days_in_stock=in_stock_days,
        carrying_cost=carrying_cost,
        risk_score=round(score),
        suggested_markdown_percent=round(markdown),
        liquidation_value=total_value * (1 - liquidation_discount / 100),
    )


def find_dead_stock(products: Sequence[StockedProduct], min_days: int, now: datetime) -> List[StockedProduct]:
    return [
        p for p in products
        if p.current_stock > 0 and days_since(p.last_sale_date, now) >= min_days
    ]


def bundle_candidates(dead: Sequence[StockedProduct], catalog: Sequence[StockedProduct]) -> Dict[int, List[str]]:
    """Up to three in-stock, non-dead products from the same category, priciest first."""
    dead_ids = {p.product_id for p in dead}
    by_category: Dict[int, List[StockedProduct]] = {}
    for p in catalog:
        if p.category_id is None or p.product_id in dead_ids or p.current_stock <= 0:
            continue
        by_category.setdefault(p.category_id, []).append(p)
    for peers in by_category.values():
        peers.sort(key=lambda p: p.base_price, reverse=True)

    return {
        p.product_id: [f"{peer.name} ({peer.sku})" for peer in by_category.get(p.category_id, [])[:MAX_BUNDLES]]
        for p in dead
    }


def summarize(items: Sequence[DeadStockItem]) -> dict:
    count = len(items)
    return {
        "total_dead_stock_items": count,
        "total_dead_stock_value": sum(i.total_value for i in items),
        "total_carrying_cost": sum(i.carrying_cost for i in items),
        "average_days_dead": sum(i.days_since_last_sale for i in items) / count if count else 0,
        "highest_risk_items": sum(1 for i in items if i.risk_score >= HIGH_RISK_SCORE),
        "total_liquidation_value": sum(i.liquidation_value for i in items),
        "potential_recovery_value": sum(
            i.total_value * (1 - i.suggested_markdown_percent / 100) for i in items
        ),
    }


def action_plan(items: Sequence[DeadStockItem], stats: dict) -> List[dict]:
    actions = []

    high_risk = [i for i in items if i.risk_score >= HIGH_RISK_SCORE]
    if high_risk:
        actions.append({
            "priority": "high",
            "title": "Immediate Action Required",
            "description": f"{len(high_risk)} items have critical risk scores. Consider aggressive markdowns or liquidation.",
            "items": [
                {"sku": i.sku, "name": i.name, "action": f"Apply {i.suggested_markdown_percent}% discount immediately"}
                for i in high_risk[:5]
            ],
        })

    bundles = [i for i in items if i.potential_bundles]
    if bundles:
        actions.append({
            "priority": "medium",
            "title": "Bundle Opportunities",
            "description": f"{len(bundles)} dead stock items can be bundled with active products.",
            "items": [
                {"sku": i.sku, "name": i.name, "action": f"Bundle with: {i.potential_bundles[0]}"}
                for i in bundles[:5]
            ],
        })

    # never-sold items carry the sentinel and count as obsolete
    obsolete = [i for i in items if i.days_since_last_sale > 365]
    if obsolete:
        actions.append({
            "priority": "high",
            "title": "Obsolete Inventory",
            "description": f"{len(obsolete)} items haven't sold in over a year. Consider liquidation or donation.",
            "items": [
                {"sku": i.sku, "name": i.name, "action": "Liquidate at 75% discount or donate"}
                for i in obsolete[:5]
            ],
        })

    if stats["total_carrying_cost"] > stats["total_dead_stock_value"] * 0.1:
        actions.append({
            "priority": "medium",
            "title": "Reduce Carrying Costs",
            "description": f"Carrying costs (${stats['total_carrying_cost']:,.2f}) are significant. Quick action can save money.",
            "action": "Implement tiered markdown strategy: 90-180 days (25% off), 180+ days (50% off)",
        })

    return actions


def build_report(catalog: Sequence[StockedProduct], thresholds: Sequence[int], now: datetime) -> dict:
    active_thresholds = sorted(set(thresholds)) or [DEFAULT_THRESHOLDS[0]]
    min_days = active_thresholds[0]

    dead = find_dead_stock(catalog, min_days, now)
    bundles = bundle_candidates(dead, catalog)
    items = []
    for product in dead:
        item = analyze_item(product, now)
        item.potential_bundles = bundles.get(product.product_id, [])
        items.append(item)
    items.sort(key=lambda i: (i.risk_score, i.total_value), reverse=True)

    stats = summarize(items)
    return {
        "items": [dict(i.__dict__) for i in items],
        "stats": stats,
        "recommendations": action_plan(items, stats),
        "thresholds": {
            "min_days": min_days,
            "max_days": active_thresholds[-1],
            "active_thresholds": active_thresholds,
        },
    }
