"""Seed the demo store with users, catalog, sales history and purchase orders"""
import sys
import os
from pathlib import Path

# Add parent directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Load environment variables
from dotenv import load_dotenv
env_path = backend_dir / '.env'
load_dotenv(dotenv_path=env_path)

from datetime import timedelta
from random import Random
from app.core.clock import utc_now, utc_today
from app.core.database import SessionLocal
from app.core.security import get_password_hash
from app.models.store import Store
from app.models.user import User, Role
from app.models.inventory import Category, Supplier, Product, InventoryLog, ChangeType
from app.models.sales import Order, OrderItem, OrderStatus
from app.models.purchasing import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus

STORE_SLUG = "demo-store"

def seed_demo_data(seed: int = 42):
    """Populate the demo store; run scripts/init_db.py first"""
    rng = Random(seed)
    db = SessionLocal()

    try:
        store = db.query(Store).filter(Store.slug == STORE_SLUG).first()
        roles = {role.name: role for role in db.query(Role).all()}
        if store is None or not {"Admin", "Manager", "Staff"} <= set(roles):
            print("ERROR: Store or roles not found. Please run init_db.py first.")
            return
        if db.query(Product).filter(Product.store_id == store.id).first():
            print("Demo store already has products, skipping")
            return

        print("Creating users...")
        for email, name, role, password in [
            ("admin@storefront.local", "Admin User", "Admin", "admin123"),
            ("manager@storefront.local", "Manager User", "Manager", "manager123"),
            ("staff@storefront.local", "Staff User", "Staff", "staff123"),
        ]:
            if not db.query(User).filter(User.email == email).first():
                db.add(User(
                    email=email,
                    full_name=name,
                    hashed_password=get_password_hash(password),
                    role_id=roles[role].id,
                    store_id=store.id,
                ))

        print("Creating categories and suppliers...")
        categories = [
            Category(store_id=store.id, name=name, description=description)
            for name, description in [
                ("Apparel", "T-shirts, hoodies and caps"),
                ("Accessories", "Bags, mugs and stickers"),
                ("Prints", "Posters and art prints"),
            ]
        ]
        suppliers = [
            Supplier(store_id=store.id, name=name, email=email, payment_terms=terms)
            for name, email, terms in [
                ("Blank Goods Co", "orders@blankgoods.example", "Net 30"),
                ("PrintHouse", "sales@printhouse.example", "Net 15"),
            ]
        ]
        db.add_all(categories + suppliers)
        db.flush()

        print("Creating products...")
        now = utc_now()
        products = []
        for index in range(12):
            category = categories[index % len(categories)]
            base_price = round(rng.uniform(12, 60), 2)
            product = Product(
                store_id=store.id,
                sku=f"{category.name[:3].upper()}-{index + 1:03d}",
                name=f"{category.name} Item {index + 1}",
                category_id=category.id,
                supplier_id=suppliers[index % len(suppliers)].id if index % 3 else None,
                base_price=base_price,
                cost_price=round(base_price * rng.uniform(0.35, 0.55), 2) if index % 4 else None,
                stock_quantity=rng.randint(0, 80),
                low_stock_threshold=10,
                created_at=now - timedelta(days=400),
            )
            products.append(product)
        db.add_all(products)
        db.flush()
        for product in products:
            db.add(InventoryLog(
                store_id=store.id,
                product_id=product.id,
                change_type=ChangeType.INITIAL.value,
                quantity_change=product.stock_quantity,
                quantity_after=product.stock_quantity,
                notes="Initial stock",
                created_at=product.created_at,
            ))

        print("Creating sales history...")
        statuses = [OrderStatus.COMPLETED, OrderStatus.COMPLETED, OrderStatus.SHIPPED, OrderStatus.PROCESSING]
        for index in range(60):
            created_at = now - timedelta(days=rng.randint(0, 180), hours=rng.randint(0, 23))
            order = Order(
                store_id=store.id,
                order_number=f"ORD-DEMO-{index + 1:04d}",
                customer_email=f"customer{index % 15}@example.com",
                status=rng.choice(statuses),
                total_amount=0.0,
                created_at=created_at,
            )
            total = 0.0
            for product in rng.sample(products[:9], rng.randint(1, 3)):
                quantity = rng.randint(1, 4)
                subtotal = round(quantity * product.base_price, 2)
                total += subtotal
                order.items.append(OrderItem(
                    product_id=product.id,
                    product_sku=product.sku,
                    quantity=quantity,
                    unit_price=product.base_price,
                    subtotal=subtotal,
                    created_at=created_at,
                ))
            order.total_amount = round(total, 2)
            db.add(order)

        print("Creating purchase orders...")
        for index, supplier in enumerate(suppliers):
            po = PurchaseOrder(
                store_id=store.id,
                supplier_id=supplier.id,
                po_number=f"PO-{index + 1:03d}",
                status=PurchaseOrderStatus.APPROVED,
                order_date=utc_today() - timedelta(days=7),
                approval_date=utc_today() - timedelta(days=6),
                expected_delivery=utc_today() + timedelta(days=7),
                payment_terms=supplier.payment_terms,
            )
            for product in [p for p in products if p.supplier_id == supplier.id][:3]:
                unit_cost = product.unit_cost
                po.items.append(PurchaseOrderItem(
                    product_id=product.id,
                    product_sku=product.sku,
                    product_name=product.name,
                    quantity_ordered=50,
                    quantity_received=0,
                    unit_cost=unit_cost,
                    total_cost=round(50 * unit_cost, 2),
                ))
            po.subtotal = round(sum(item.total_cost for item in po.items), 2)
            po.total_amount = po.subtotal
            db.add(po)

        db.commit()
        print("Demo data seeded successfully!")
    except Exception as e:
        print(f"Error seeding demo data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    seed_demo_data()
