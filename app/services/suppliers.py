"""Supplier spend and delivery performance."""
from typing import Sequence

from app.models.inventory import Supplier
from app.models.purchasing import PurchaseOrder, PurchaseOrderStatus
from app.repositories.store_scope import StoreRepository

OPEN_STATUSES = {
    PurchaseOrderStatus.DRAFT,
    PurchaseOrderStatus.PENDING,
    PurchaseOrderStatus.APPROVED,
    PurchaseOrderStatus.SHIPPED,
}


def on_time_rate(orders: Sequence[PurchaseOrder]) -> float:
    """Percentage of delivered orders (with an expected date) that arrived on or before it."""
    measured = [
        po for po in orders
        if po.status == PurchaseOrderStatus.DELIVERED and po.expected_delivery and po.actual_delivery
    ]
    if not measured:
        return 0.0
    on_time = sum(1 for po in measured if po.actual_delivery <= po.expected_delivery)
    return round(on_time * 100.0 / len(measured), 2)


def supplier_analytics(orders: Sequence[PurchaseOrder]) -> dict:
    counted = [po for po in orders if po.status != PurchaseOrderStatus.CANCELLED]
    return {
        "total_spend": round(sum(po.total_amount or 0 for po in counted), 2),
        "total_orders": len(counted),
        "delivered_orders": sum(1 for po in orders if po.status == PurchaseOrderStatus.DELIVERED),
        "open_orders": sum(1 for po in orders if po.status in OPEN_STATUSES),
        "on_time_delivery_rate": on_time_rate(orders),
    }


def refresh_performance(repo: StoreRepository, supplier: Supplier) -> None:
    stats = supplier_analytics(repo.supplier_purchase_orders(supplier.id))
    supplier.total_orders = stats["total_orders"]
    supplier.on_time_delivery_rate = stats["on_time_delivery_rate"]
    # five-point rating scaled from the on-time percentage
    supplier.performance_rating = round(stats["on_time_delivery_rate"] / 20, 2)
