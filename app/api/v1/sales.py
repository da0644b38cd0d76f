from fastapi import APIRouter, Depends, Query
from typing import Optional
from app.core.exceptions import NotFoundError
from app.models.sales import OrderStatus
from app.models.user import User
from app.repositories.store_scope import StoreRepository
from app.schemas.common import envelope
from app.schemas.sales import OrderCreate, OrderResponse, OrderStatusUpdate
from app.services.stock import cancel_order, place_order, update_order_status
from app.api.v1.dependencies import get_store_repository, require_permission_dependency

router = APIRouter()

@router.get("/orders")
def get_orders(
    status: Optional[OrderStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("sales", "view"))
):
    orders = repo.orders(status=status.value if status else None, skip=skip, limit=limit)
    return envelope([OrderResponse.model_validate(o) for o in orders])

@router.get("/orders/{order_id}")
def get_order(
    order_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("sales", "view"))
):
    order = repo.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    return envelope(OrderResponse.model_validate(order))

@router.post("/orders", status_code=201)
def create_order(
    order_data: OrderCreate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("sales", "create"))
):
    """Place an order: checks and decrements stock, one sale log row per line"""
    order = place_order(repo, order_data.customer_email, order_data.items, order_data.notes)
    return envelope(OrderResponse.model_validate(order), "Order created")

@router.put("/orders/{order_id}/status")
def update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("sales", "edit"))
):
    order = update_order_status(repo, order_id, payload.status)
    return envelope(OrderResponse.model_validate(order), f"Order {order.status.value}")

@router.post("/orders/{order_id}/cancel")
def cancel(
    order_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("sales", "edit"))
):
    """Cancel a pending or processing order and return its units to stock"""
    order = cancel_order(repo, order_id)
    return envelope(OrderResponse.model_validate(order), "Order cancelled")
