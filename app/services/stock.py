"""Manual stock adjustments and storefront order fulfilment."""
import uuid
from typing import Optional, Sequence

from app.core.clock import utc_now
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.models.inventory import ChangeType, Product
from app.models.sales import Order, OrderItem, OrderStatus
from app.repositories.store_scope import StoreRepository

logger = get_logger(__name__)

ORDER_FLOW = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.COMPLETED,
)
CANCELLABLE = {OrderStatus.PENDING, OrderStatus.PROCESSING}


def adjust_stock(
    repo: StoreRepository,
    product_id: int,
    stock_quantity: Optional[int] = None,
    quantity_change: Optional[int] = None,
    notes: Optional[str] = None,
) -> Product:
    """Set stock to an absolute value or apply a signed delta; never below zero."""
    if (stock_quantity is None) == (quantity_change is None):
        raise ValidationError("Provide exactly one of stock_quantity or quantity_change")

    with repo.transaction():
        product = repo.get_product(product_id, lock=True)
        if product is None:
            raise NotFoundError("Product not found")

        current = product.stock_quantity or 0
        delta = stock_quantity - current if stock_quantity is not None else quantity_change
        if current + delta < 0:
            raise ValidationError(
                "Stock quantity cannot go below zero",
                details={"current_stock": current, "quantity_change": delta},
            )
        if delta == 0:
            return product

        product.stock_quantity = current + delta
        repo.log_stock_change(product, ChangeType.ADJUSTMENT, delta, reference_type="manual", notes=notes)

    logger.info(f"Adjusted stock of product {product_id} by {delta}")
    return product


def _order_number() -> str:
    return f"ORD-{utc_now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"


def place_order(repo: StoreRepository, customer_email: Optional[str], lines: Sequence, notes: Optional[str] = None) -> Order:
    if not lines:
        raise ValidationError("Order requires at least one item")

    with repo.transaction():
        order = repo.add(Order(
            order_number=_order_number(),
            customer_email=customer_email,
            status=OrderStatus.PENDING,
            total_amount=0.0,
            notes=notes,
        ))
        total = 0.0
        for line in lines:
            product = repo.get_product(line.product_id, lock=True)
            if product is None or not product.is_active:
                raise NotFoundError(f"Product {line.product_id} not found")
            if (product.stock_quantity or 0) < line.quantity:
                raise ValidationError(f"Insufficient stock for product {product.name}")

            unit_price = line.unit_price if line.unit_price is not None else product.base_price
            subtotal = round(line.quantity * unit_price, 2)
            total += subtotal
            order.items.append(OrderItem(
                product_id=product.id,
                product_sku=product.sku,
                quantity=line.quantity,
                unit_price=unit_price,
                subtotal=subtotal,
            ))
            product.stock_quantity -= line.quantity
            repo.db.flush()
            repo.log_stock_change(
                product, ChangeType.SALE, -line.quantity,
                reference_type="order", reference_id=order.id,
                notes=f"Order {order.order_number}",
            )
        order.total_amount = round(total, 2)

    logger.info(f"Placed order {order.order_number} with {len(lines)} line(s)")
    return order


def update_order_status(repo: StoreRepository, order_id: int, status: OrderStatus) -> Order:
    """Advance along pending -> processing -> shipped -> completed, or cancel."""
    if status == OrderStatus.CANCELLED:
        return cancel_order(repo, order_id)

    with repo.transaction():
        order = repo.get_order(order_id, lock=True)
        if order is None:
            raise NotFoundError("Order not found")
        if order.status not in ORDER_FLOW or status not in ORDER_FLOW or \
                ORDER_FLOW.index(status) <= ORDER_FLOW.index(order.status):
            raise ValidationError(f"Cannot change order status from {order.status.value} to {status.value}")
        order.status = status
    return order


def cancel_order(repo: StoreRepository, order_id: int) -> Order:
    with repo.transaction():
        order = repo.get_order(order_id, lock=True)
        if order is None:
            raise NotFoundError("Order not found")
        if order.status not in CANCELLABLE:
            raise ValidationError(f"Cannot cancel an order that is {order.status.value}")

        for item in order.items:
            product = repo.get_product(item.product_id, lock=True)
            if product is None:
                continue
            product.stock_quantity = (product.stock_quantity or 0) + item.quantity
            repo.log_stock_change(
                product, ChangeType.RETURN, item.quantity,
                reference_type="order", reference_id=order.id,
                notes=f"Order {order.order_number} cancelled",
            )
        order.status = OrderStatus.CANCELLED

    logger.info(f"Cancelled order {order_id}")
    return order
