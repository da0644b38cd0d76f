from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.core.permissions import has_permission
from app.models.purchasing import PurchaseOrder, PurchaseOrderStatus
from app.models.user import User
from app.repositories.store_scope import StoreRepository
from app.schemas.common import envelope, reject_nulls
from app.schemas.purchasing import (
    PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderPatch, ReceiveItemsRequest,
    PurchaseOrderResponse, PurchaseOrderDetail, PurchaseOrderItemResponse,
)
from app.services import purchase_orders as po_service
from app.services.receiving import receive_items
from app.api.v1.dependencies import get_current_user, get_store_repository, require_permission_dependency

logger = get_logger(__name__)

router = APIRouter()

RECEIVE_ACTION = "receive_items"

def _summary(po: PurchaseOrder) -> PurchaseOrderResponse:
    response = PurchaseOrderResponse.model_validate(po)
    response.supplier_name = po.supplier.name if po.supplier else None
    return response

def _detail(po: PurchaseOrder) -> PurchaseOrderDetail:
    detail = PurchaseOrderDetail.model_validate(po)
    detail.supplier_name = po.supplier.name if po.supplier else None
    items = []
    for item in po.items:
        item_response = PurchaseOrderItemResponse.model_validate(item)
        item_response.current_stock = item.product.stock_quantity if item.product else None
        items.append(item_response)
    detail.items = items
    return detail

def _get_po(repo: StoreRepository, purchase_order_id: int) -> PurchaseOrder:
    po = repo.get_purchase_order(purchase_order_id)
    if po is None:
        raise NotFoundError("Purchase order not found")
    return po

def _receive(repo: StoreRepository, purchase_order_id: int, lines) -> dict:
    result = receive_items(repo, purchase_order_id, [line.to_receipt_line() for line in lines])
    message = "All items received" if result.delivered else "Items received"
    if result.partial:
        message += f"; {len(result.skipped)} line(s) skipped"
    return envelope(result.to_dict(), message)

@router.get("")
def get_purchase_orders(
    status: Optional[PurchaseOrderStatus] = None,
    supplier_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("purchasing", "view"))
):
    orders = repo.purchase_orders(
        status=status.value if status else None, supplier_id=supplier_id, skip=skip, limit=limit
    )
    return envelope([_summary(po) for po in orders])

@router.post("", status_code=201)
def create_purchase_order(
    payload: PurchaseOrderCreate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("purchasing", "create"))
):
    supplier = repo.get_supplier(payload.supplier_id)
    if supplier is None or not supplier.is_active:
        raise NotFoundError("Supplier not found")

    with repo.transaction():
        po = repo.add(PurchaseOrder(
            supplier_id=supplier.id,
            po_number=po_service.next_po_number(repo.po_numbers()),
            status=PurchaseOrderStatus.DRAFT,
            expected_delivery=payload.expected_delivery,
            tax_amount=payload.tax_amount,
            shipping_amount=payload.shipping_amount,
            payment_terms=payload.payment_terms or supplier.payment_terms,
            notes=payload.notes,
            created_by=current_user.id,
        ))
        po.items = po_service.build_items(repo, payload.items)
        po_service.recalculate_totals(po)

    logger.info(f"Created purchase order {po.po_number} for supplier {supplier.id}")
    return envelope(_detail(po), "Purchase order created")

@router.get("/{purchase_order_id}")
def get_purchase_order(
    purchase_order_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("purchasing", "view"))
):
    return envelope(_detail(_get_po(repo, purchase_order_id)))

@router.put("/{purchase_order_id}")
def update_purchase_order(
    purchase_order_id: int,
    payload: PurchaseOrderUpdate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("purchasing", "edit"))
):
    """Partial update; items can only be replaced before anything has been received"""
    po = _get_po(repo, purchase_order_id)
    if po_service.is_terminal(po.status):
        raise ValidationError(f"Cannot edit a {po.status.value} purchase order")

    update_data = payload.model_dump(exclude_unset=True, exclude={"items"})
    reject_nulls(update_data, ("supplier_id",))
    if "supplier_id" in update_data:
        supplier = repo.get_supplier(update_data["supplier_id"])
        if supplier is None or not supplier.is_active:
            raise NotFoundError("Supplier not found")

    with repo.transaction():
        for field, value in update_data.items():
            setattr(po, field, value)
        if payload.items is not None:
            if po_service.has_receipts(po):
                raise ValidationError("Items cannot be replaced after receiving has started")
            po.items = po_service.build_items(repo, payload.items)
        po_service.recalculate_totals(po)

    return envelope(_detail(po), "Purchase order updated")

@router.patch("/{purchase_order_id}")
def patch_purchase_order(
    purchase_order_id: int,
    payload: PurchaseOrderPatch,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(get_current_user)
):
    """
    `{"action": "receive_items", "items": [...]}` receives goods;
    `{"status": ...}` moves the order along its workflow.
    """
    action = "receive" if payload.action == RECEIVE_ACTION else "edit"
    if not has_permission(current_user, "purchasing", action):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission denied: You don't have permission to {action} purchasing"
        )

    if payload.action == RECEIVE_ACTION:
        if not payload.items:
            raise ValidationError("Items array is required for receive_items action")
        return _receive(repo, purchase_order_id, payload.items)
    if payload.action is not None:
        raise ValidationError(f"Unknown action: {payload.action}")
    if payload.status is None:
        raise ValidationError("Nothing to update")

    with repo.transaction():
        po = _get_po(repo, purchase_order_id)
        po_service.transition_status(po, payload.status, current_user.id, payload.notes)
    return envelope(_detail(po), f"Purchase order {po.status.value}")

@router.post("/{purchase_order_id}/receive")
def receive_purchase_order(
    purchase_order_id: int,
    payload: ReceiveItemsRequest,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("purchasing", "receive"))
):
    return _receive(repo, purchase_order_id, payload.items)

@router.delete("/{purchase_order_id}")
def delete_purchase_order(
    purchase_order_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("purchasing", "delete"))
):
    po = _get_po(repo, purchase_order_id)
    if po.status == PurchaseOrderStatus.DELIVERED:
        raise ValidationError("Cannot delete a delivered purchase order")
    if po_service.has_receipts(po):
        raise ValidationError("Cannot delete a purchase order with received items")

    with repo.transaction():
        repo.db.delete(po)
    logger.info(f"Deleted purchase order {purchase_order_id}")
    return envelope({"purchase_order_id": purchase_order_id}, "Purchase order deleted")
