from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from app.core.clock import utc_now
from app.core.database import Base

class ChangeType(str, enum.Enum):
    ADJUSTMENT = "adjustment"
    RESTOCK = "restock"
    SALE = "sale"
    RETURN = "return"
    TRANSFER = "transfer"
    INITIAL = "initial"
    DISCONTINUED = "discontinued"

class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("store_id", "name", name="uq_categories_store_name"),)

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text)
    created_at = Column(DateTime, default=utc_now)

    products = relationship("Product", back_populates="category")

class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    contact_person = Column(String)
    email = Column(String)
    phone = Column(String)
    address = Column(Text)
    payment_terms = Column(String, default="Net 30")
    notes = Column(Text)
    is_active = Column(Boolean, default=True)
    performance_rating = Column(Float, default=0.0)  # 0.00 to 5.00
    total_orders = Column(Integer, default=0)
    on_time_delivery_rate = Column(Float, default=0.0)  # percentage
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, onupdate=utc_now)

    products = relationship("Product", back_populates="supplier")
    purchase_orders = relationship("PurchaseOrder", back_populates="supplier")

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("store_id", "sku", name="uq_products_store_sku"),)

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    sku = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text)
    category_id = Column(Integer, ForeignKey("categories.id"))
    supplier_id = Column(Integer, ForeignKey("suppliers.id"))
    base_price = Column(Float, nullable=False)
    cost_price = Column(Float)
    stock_quantity = Column(Integer, default=0, nullable=False)
    low_stock_threshold = Column(Integer, default=10, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, onupdate=utc_now)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")
    inventory_logs = relationship("InventoryLog", back_populates="product")
    order_items = relationship("OrderItem", back_populates="product")

    @property
    def unit_cost(self) -> float:
        """Cost basis; falls back to 60% of the list price when no cost is recorded."""
        if self.cost_price is not None:
            return float(self.cost_price)
        return float(self.base_price or 0) * 0.6

class InventoryLog(Base):
    """Append-only audit trail of stock mutations"""
    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    change_type = Column(String, nullable=False, index=True)
    quantity_change = Column(Integer, nullable=False)  # signed delta
    quantity_after = Column(Integer, nullable=False)
    reference_type = Column(String)  # 'purchase_order', 'order', 'manual'
    reference_id = Column(Integer)
    notes = Column(Text)
    created_at = Column(DateTime, default=utc_now, index=True)

    product = relationship("Product", back_populates="inventory_logs")
