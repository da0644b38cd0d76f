"""Row factories for tests; every row belongs to an explicit store."""
from datetime import timedelta

from app.core.clock import utc_now
from app.core.security import create_access_token
from app.models import (
    Category, InventoryLog, Order, OrderItem, OrderStatus, Product, PurchaseOrder,
    PurchaseOrderItem, PurchaseOrderStatus, Supplier, User,
)


def make_supplier(db, store, name="Acme Supply", **kwargs):
    supplier = Supplier(store_id=store.id, name=name, **kwargs)
    db.add(supplier)
    db.commit()
    return supplier


def make_category(db, store, name="Apparel"):
    category = Category(store_id=store.id, name=name)
    db.add(category)
    db.commit()
    return category


def make_product(db, store, sku="SKU-1", **kwargs):
    values = {
        "name": f"Product {sku}",
        "base_price": 20.0,
        "cost_price": 8.0,
        "stock_quantity": 0,
        "low_stock_threshold": 10,
    }
    values.update(kwargs)
    product = Product(store_id=store.id, sku=sku, **values)
    db.add(product)
    db.commit()
    return product


def make_sale(db, store, product, quantity, days_ago=1, status=OrderStatus.COMPLETED, unit_price=None, number=None):
    created_at = utc_now() - timedelta(days=days_ago)
    price = product.base_price if unit_price is None else unit_price
    order = Order(
        store_id=store.id,
        order_number=number or f"ORD-{store.id}-{product.id}-{days_ago}-{quantity}-{status.value}",
        status=status,
        total_amount=quantity * price,
        created_at=created_at,
    )
    order.items.append(OrderItem(
        product_id=product.id,
        product_sku=product.sku,
        quantity=quantity,
        unit_price=price,
        subtotal=quantity * price,
        created_at=created_at,
    ))
    db.add(order)
    db.commit()
    return order


def make_log(db, store, product, change, days_ago, change_type="adjustment", after=0):
    entry = InventoryLog(
        store_id=store.id,
        product_id=product.id,
        change_type=change_type,
        quantity_change=change,
        quantity_after=after,
        created_at=utc_now() - timedelta(days=days_ago),
    )
    db.add(entry)
    db.commit()
    return entry


def make_purchase_order(db, store, supplier, lines, status=PurchaseOrderStatus.APPROVED, number="PO-001", **kwargs):
    """`lines` is a list of (product, quantity_ordered) or (product, quantity_ordered, quantity_received)."""
    po = PurchaseOrder(
        store_id=store.id,
        supplier_id=supplier.id,
        po_number=number,
        status=status,
        **kwargs,
    )
    for line in lines:
        product, ordered = line[0], line[1]
        received = line[2] if len(line) > 2 else 0
        po.items.append(PurchaseOrderItem(
            product_id=product.id,
            product_sku=product.sku,
            product_name=product.name,
            quantity_ordered=ordered,
            quantity_received=received,
            unit_cost=product.unit_cost,
            total_cost=ordered * product.unit_cost,
        ))
    po.subtotal = sum(item.total_cost for item in po.items)
    po.total_amount = po.subtotal
    db.add(po)
    db.commit()
    return po


def make_user(db, role, store, email):
    user = User(
        email=email,
        hashed_password="not-used",
        full_name=email.split("@")[0],
        role_id=role.id,
        store_id=store.id if store else None,
    )
    db.add(user)
    db.commit()
    return user


def auth_headers(user):
    token = create_access_token({"sub": user.email, "store_id": user.store_id})
    return {"Authorization": f"Bearer {token}"}
