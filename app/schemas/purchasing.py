from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import date, datetime
from app.models.purchasing import PurchaseOrderStatus, QualityStatus
from app.services.receiving import ReceiptLine

class PurchaseOrderItemCreate(BaseModel):
    product_id: int
    quantity_ordered: int = Field(..., gt=0)
    unit_cost: Optional[float] = Field(None, ge=0)  # defaults to the product's cost
    notes: Optional[str] = None

class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    expected_delivery: Optional[date] = None
    tax_amount: float = Field(0.0, ge=0)
    shipping_amount: float = Field(0.0, ge=0)
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    items: List[PurchaseOrderItemCreate] = Field(..., min_length=1)

class PurchaseOrderUpdate(BaseModel):
    supplier_id: Optional[int] = None
    expected_delivery: Optional[date] = None
    tax_amount: Optional[float] = Field(None, ge=0)
    shipping_amount: Optional[float] = Field(None, ge=0)
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[PurchaseOrderItemCreate]] = Field(None, min_length=1)

class ReceiveItemLine(BaseModel):
    item_id: int
    received_quantity: int
    quality_status: QualityStatus = QualityStatus.PENDING
    damaged_quantity: int = 0
    notes: Optional[str] = None

    def to_receipt_line(self) -> ReceiptLine:
        return ReceiptLine(
            item_id=self.item_id,
            received_quantity=self.received_quantity,
            quality_status=self.quality_status.value,
            damaged_quantity=self.damaged_quantity,
            notes=self.notes,
        )

class ReceiveItemsRequest(BaseModel):
    items: List[ReceiveItemLine]

class PurchaseOrderPatch(BaseModel):
    """
    PATCH body: `action="receive_items"` with `items` runs receiving;
    `status` alone requests a workflow transition.
    """
    action: Optional[str] = None
    status: Optional[PurchaseOrderStatus] = None
    items: Optional[List[ReceiveItemLine]] = None
    notes: Optional[str] = None

class PurchaseOrderItemResponse(BaseModel):
    id: int
    product_id: Optional[int]
    product_sku: str
    product_name: str
    quantity_ordered: int
    quantity_received: int
    quantity_pending: int
    unit_cost: float
    total_cost: float
    notes: Optional[str]
    current_stock: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class ReceiptResponse(BaseModel):
    id: int
    purchase_order_item_id: int
    received_date: date
    quantity_received: int
    quality_status: Optional[str]
    damaged_quantity: Optional[int]
    notes: Optional[str]
    received_by: Optional[int]

    model_config = ConfigDict(from_attributes=True)

class StatusHistoryResponse(BaseModel):
    id: int
    old_status: Optional[str]
    new_status: str
    changed_by: Optional[int]
    notes: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class PurchaseOrderResponse(BaseModel):
    id: int
    po_number: str
    supplier_id: int
    supplier_name: Optional[str] = None
    status: PurchaseOrderStatus
    order_date: date
    expected_delivery: Optional[date]
    actual_delivery: Optional[date]
    approval_date: Optional[date]
    subtotal: float
    tax_amount: Optional[float]
    shipping_amount: Optional[float]
    total_amount: float
    payment_terms: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class PurchaseOrderDetail(PurchaseOrderResponse):
    items: List[PurchaseOrderItemResponse] = []
    receipts: List[ReceiptResponse] = []
    status_history: List[StatusHistoryResponse] = []
