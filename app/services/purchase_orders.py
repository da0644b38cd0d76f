"""
Purchase order lifecycle: numbering, totals and explicit status transitions.
"""
import re
from typing import Iterable, List, Optional

from app.core.clock import utc_today
from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.models.purchasing import (
    PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus, PurchaseOrderStatusHistory,
)
from app.repositories.store_scope import StoreRepository

logger = get_logger(__name__)

WORKFLOW = (
    PurchaseOrderStatus.DRAFT,
    PurchaseOrderStatus.PENDING,
    PurchaseOrderStatus.APPROVED,
    PurchaseOrderStatus.SHIPPED,
    PurchaseOrderStatus.DELIVERED,
)
TERMINAL_STATUSES = {PurchaseOrderStatus.DELIVERED, PurchaseOrderStatus.CANCELLED}

_PO_NUMBER = re.compile(r"^PO-(\d+)$")


def is_terminal(status: PurchaseOrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: PurchaseOrderStatus, target: PurchaseOrderStatus) -> bool:
    """Forward along the workflow, or to cancelled from any non-terminal state."""
    if is_terminal(current) or current == target:
        return False
    if target == PurchaseOrderStatus.CANCELLED:
        return True
    return WORKFLOW.index(target) > WORKFLOW.index(current)


def next_po_number(existing: Iterable[str]) -> str:
    highest = 0
    for number in existing:
        match = _PO_NUMBER.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"PO-{highest + 1:03d}"


def recalculate_totals(po: PurchaseOrder) -> None:
    for item in po.items:
        item.total_cost = round(item.quantity_ordered * item.unit_cost, 2)
    po.subtotal = round(sum(item.total_cost for item in po.items), 2)
    po.total_amount = round(po.subtotal + (po.tax_amount or 0) + (po.shipping_amount or 0), 2)


def record_status_change(
    po: PurchaseOrder,
    new_status: PurchaseOrderStatus,
    changed_by: Optional[int],
    notes: Optional[str] = None,
) -> PurchaseOrderStatusHistory:
    old_status = po.status
    po.status = new_status
    if new_status == PurchaseOrderStatus.APPROVED and po.approval_date is None:
        po.approval_date = utc_today()
    if new_status == PurchaseOrderStatus.DELIVERED and po.actual_delivery is None:
        po.actual_delivery = utc_today()

    entry = PurchaseOrderStatusHistory(
        old_status=old_status.value if old_status else None,
        new_status=new_status.value,
        changed_by=changed_by,
        notes=notes,
    )
    po.status_history.append(entry)
    logger.info(f"Purchase order {po.po_number} moved {entry.old_status} -> {entry.new_status}")
    return entry


def transition_status(
    po: PurchaseOrder,
    target: PurchaseOrderStatus,
    changed_by: Optional[int],
    notes: Optional[str] = None,
) -> PurchaseOrderStatusHistory:
    if not can_transition(po.status, target):
        raise InvalidTransitionError(
            f"Cannot change status from {po.status.value} to {target.value}",
            code="INVALID_TRANSITION",
        )
    return record_status_change(po, target, changed_by, notes)


def build_items(repo: StoreRepository, lines) -> List[PurchaseOrderItem]:
    """PurchaseOrderItem rows for create/replace; each product must belong to the store."""
    items = []
    for line in lines:
        product = repo.get_product(line.product_id)
        if product is None:
            raise NotFoundError(f"Product {line.product_id} not found")
        unit_cost = line.unit_cost if line.unit_cost is not None else product.unit_cost
        items.append(PurchaseOrderItem(
            product_id=product.id,
            product_sku=product.sku,
            product_name=product.name,
            quantity_ordered=line.quantity_ordered,
            quantity_received=0,
            unit_cost=unit_cost,
            total_cost=round(line.quantity_ordered * unit_cost, 2),
            notes=line.notes,
        ))
    if not items:
        raise ValidationError("Purchase order requires at least one item")
    return items


def has_receipts(po: PurchaseOrder) -> bool:
    return any((item.quantity_received or 0) > 0 for item in po.items)
