from app.models.store import Store
from app.models.user import User, Role
from app.models.inventory import Product, Category, Supplier, InventoryLog, ChangeType
from app.models.sales import Order, OrderItem, OrderStatus
from app.models.purchasing import (
    PurchaseOrder, PurchaseOrderItem, PurchaseOrderReceipt,
    PurchaseOrderStatusHistory, PurchaseOrderStatus, QualityStatus,
)
from app.models.snapshot import InventorySnapshot

__all__ = [
    "Store",
    "User", "Role",
    "Product", "Category", "Supplier", "InventoryLog", "ChangeType",
    "Order", "OrderItem", "OrderStatus",
    "PurchaseOrder", "PurchaseOrderItem", "PurchaseOrderReceipt",
    "PurchaseOrderStatusHistory", "PurchaseOrderStatus", "QualityStatus",
    "InventorySnapshot",
]
