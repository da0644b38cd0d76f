from app.schemas.auth import Token, UserResponse
from app.schemas.inventory import (
    ProductCreate, ProductUpdate, ProductResponse, StockAdjustment, InventoryLogResponse,
    CategoryCreate, CategoryResponse, SupplierCreate, SupplierUpdate, SupplierResponse,
    SnapshotCreate, SnapshotBackfill, InventorySnapshotResponse,
)
from app.schemas.purchasing import (
    PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderPatch, PurchaseOrderResponse,
    PurchaseOrderDetail, ReceiveItemLine, ReceiveItemsRequest,
)
from app.schemas.sales import OrderCreate, OrderResponse, OrderStatusUpdate
from app.schemas.common import envelope

__all__ = [
    "Token", "UserResponse",
    "ProductCreate", "ProductUpdate", "ProductResponse", "StockAdjustment", "InventoryLogResponse",
    "CategoryCreate", "CategoryResponse", "SupplierCreate", "SupplierUpdate", "SupplierResponse",
    "SnapshotCreate", "SnapshotBackfill", "InventorySnapshotResponse",
    "PurchaseOrderCreate", "PurchaseOrderUpdate", "PurchaseOrderPatch", "PurchaseOrderResponse",
    "PurchaseOrderDetail", "ReceiveItemLine", "ReceiveItemsRequest",
    "OrderCreate", "OrderResponse", "OrderStatusUpdate",
    "envelope",
]
