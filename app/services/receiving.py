"""
Purchase order receiving.

Applies a batch of receipt lines to one purchase order inside a single
transaction: cumulative received quantities, product stock, one restock log
row and one receipt row per accepted line, then the automatic move to
``delivered`` once every item is fully received.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.models.inventory import ChangeType, Product
from app.models.purchasing import (
    PurchaseOrderItem, PurchaseOrderReceipt, PurchaseOrderStatus, QualityStatus,
)
from app.repositories.store_scope import StoreRepository
from app.services.purchase_orders import is_terminal, record_status_change
from app.services.suppliers import refresh_performance

logger = get_logger(__name__)

REFERENCE_TYPE = "purchase_order"


@dataclass
class ReceiptLine:
    item_id: int
    received_quantity: int
    quality_status: str = QualityStatus.PENDING.value
    damaged_quantity: int = 0
    notes: Optional[str] = None


@dataclass
class PlannedReceipt:
    item: PurchaseOrderItem
    product: Product
    quantity: int
    damaged: int
    requested: int
    line: ReceiptLine

    @property
    def clamped(self) -> bool:
        return self.quantity < self.requested


@dataclass
class ReceivingResult:
    purchase_order_id: int
    status: str
    delivered: bool
    received: List[dict] = field(default_factory=list)
    skipped: List[dict] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.skipped)

    def to_dict(self) -> dict:
        return {
            "purchase_order_id": self.purchase_order_id,
            "received_items": len(self.received),
            "items": self.received,
            "skipped_items": self.skipped,
            "partial": self.partial,
            "status": self.status,
            "delivered": self.delivered,
        }


def _skip(line: ReceiptLine, reason: str) -> dict:
    return {"item_id": line.item_id, "requested_quantity": line.received_quantity, "reason": reason}


def plan_receipt(
    items: Dict[int, PurchaseOrderItem],
    products: Dict[int, Product],
    lines: Sequence[ReceiptLine],
) -> Tuple[List[PlannedReceipt], List[dict]]:
    """
    Validate and clamp receipt lines without touching any state.

    Received quantities are clamped to what is still pending (accounting for
    earlier lines for the same item in this batch); damaged quantities are
    clamped to [0, received].
    """
    planned: List[PlannedReceipt] = []
    skipped: List[dict] = []
    claimed: Dict[int, int] = {}

    for line in lines:
        item = items.get(line.item_id)
        if item is None:
            skipped.append(_skip(line, "Item not found on this purchase order"))
            continue
        if line.received_quantity is None or line.received_quantity <= 0:
            skipped.append(_skip(line, "Received quantity must be greater than zero"))
            continue
        product = products.get(item.product_id)
        if product is None:
            skipped.append(_skip(line, "Product not found"))
            continue

        pending = item.quantity_pending - claimed.get(item.id, 0)
        if pending <= 0:
            skipped.append(_skip(line, "Item already fully received"))
            continue

        quantity = min(line.received_quantity, pending)
        damaged = min(max(0, line.damaged_quantity or 0), quantity)
        claimed[item.id] = claimed.get(item.id, 0) + quantity
        planned.append(PlannedReceipt(
            item=item,
            product=product,
            quantity=quantity,
            damaged=damaged,
            requested=line.received_quantity,
            line=line,
        ))

    return planned, skipped


def receive_items(
    repo: StoreRepository,
    purchase_order_id: int,
    lines: Sequence[ReceiptLine],
    strict: Optional[bool] = None,
    damaged_in_stock: Optional[bool] = None,
) -> ReceivingResult:
    strict = settings.RECEIVING_STRICT if strict is None else strict
    damaged_in_stock = settings.DAMAGED_UNITS_IN_STOCK if damaged_in_stock is None else damaged_in_stock
    received_by = repo.context.user_id

    with repo.transaction():
        po = repo.get_purchase_order(purchase_order_id, lock=True)
        if po is None:
            raise NotFoundError("Purchase order not found")
        if is_terminal(po.status):
            raise ValidationError(f"Cannot receive items for a {po.status.value} purchase order")
        if not any((line.received_quantity or 0) > 0 for line in lines):
            raise ValidationError("At least one item must have a received quantity greater than zero")

        items = repo.purchase_order_items(po.id, lock=True)
        products = {}
        for item in items:
            if item.product_id is not None and item.product_id not in products:
                product = repo.get_product(item.product_id, lock=True)
                if product is not None:
                    products[product.id] = product

        planned, skipped = plan_receipt({item.id: item for item in items}, products, lines)
        if skipped and strict:
            raise ValidationError("Some items could not be received", details=skipped)
        if not planned:
            raise ValidationError("No items could be received", details=skipped)

        received = []
        for receipt in planned:
            item, product = receipt.item, receipt.product
            item.quantity_received = (item.quantity_received or 0) + receipt.quantity

            stock_added = receipt.quantity if damaged_in_stock else receipt.quantity - receipt.damaged
            product.stock_quantity = (product.stock_quantity or 0) + stock_added

            notes = f"Received against {po.po_number}"
            if receipt.damaged:
                notes += f" ({receipt.damaged} damaged)"
            if receipt.line.notes:
                notes += f": {receipt.line.notes}"
            repo.log_stock_change(
                product,
                ChangeType.RESTOCK,
                stock_added,
                reference_type=REFERENCE_TYPE,
                reference_id=po.id,
                notes=notes,
            )
            po.receipts.append(PurchaseOrderReceipt(
                purchase_order_item_id=item.id,
                quantity_received=receipt.quantity,
                quality_status=receipt.line.quality_status or QualityStatus.PENDING.value,
                damaged_quantity=receipt.damaged,
                notes=receipt.line.notes,
                received_by=received_by,
            ))
            received.append({
                "item_id": item.id,
                "product_id": product.id,
                "quantity_received": receipt.quantity,
                "damaged_quantity": receipt.damaged,
                "stock_added": stock_added,
                "clamped": receipt.clamped,
                "quantity_pending": item.quantity_pending,
                "stock_quantity": product.stock_quantity,
            })

        delivered = bool(items) and all(item.quantity_received >= item.quantity_ordered for item in items)
        if delivered:
            record_status_change(po, PurchaseOrderStatus.DELIVERED, received_by, "All items received")
            repo.db.flush()
            if po.supplier is not None:
                refresh_performance(repo, po.supplier)

        result = ReceivingResult(
            purchase_order_id=po.id,
            status=po.status.value,
            delivered=delivered,
            received=received,
            skipped=skipped,
        )

    logger.info(
        f"Received {len(result.received)} line(s) on purchase order {purchase_order_id}, "
        f"skipped {len(result.skipped)}, status={result.status}"
    )
    return result
