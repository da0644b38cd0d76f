from sqlalchemy import (
    Column, Integer, String, Float, ForeignKey, DateTime, Date, Text,
    Enum as SQLEnum, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
import enum
from app.core.clock import utc_now, utc_today
from app.core.database import Base

class PurchaseOrderStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class QualityStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    __table_args__ = (UniqueConstraint("store_id", "po_number", name="uq_purchase_orders_store_number"),)

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    po_number = Column(String, nullable=False)
    status = Column(SQLEnum(PurchaseOrderStatus), default=PurchaseOrderStatus.DRAFT, nullable=False, index=True)
    order_date = Column(Date, default=utc_today, nullable=False)
    expected_delivery = Column(Date)
    actual_delivery = Column(Date)
    approval_date = Column(Date)
    subtotal = Column(Float, default=0.0, nullable=False)
    tax_amount = Column(Float, default=0.0)
    shipping_amount = Column(Float, default=0.0)
    total_amount = Column(Float, default=0.0, nullable=False)
    payment_terms = Column(String)
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, onupdate=utc_now)

    supplier = relationship("Supplier", back_populates="purchase_orders")
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )
    receipts = relationship("PurchaseOrderReceipt", back_populates="purchase_order", cascade="all, delete-orphan")
    status_history = relationship(
        "PurchaseOrderStatusHistory",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderStatusHistory.id",
    )

    @property
    def is_fully_received(self) -> bool:
        return bool(self.items) and all(item.quantity_received >= item.quantity_ordered for item in self.items)

class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"
    __table_args__ = (CheckConstraint("quantity_received >= 0", name="ck_purchase_order_items_received_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True)
    product_sku = Column(String, nullable=False)
    product_name = Column(String, nullable=False)
    quantity_ordered = Column(Integer, nullable=False)
    quantity_received = Column(Integer, default=0, nullable=False)
    unit_cost = Column(Float, nullable=False)
    total_cost = Column(Float, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, onupdate=utc_now)

    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")

    @property
    def quantity_pending(self) -> int:
        return max(0, (self.quantity_ordered or 0) - (self.quantity_received or 0))

class PurchaseOrderReceipt(Base):
    """One accepted receipt line; partial deliveries produce several rows per item"""
    __tablename__ = "purchase_order_receipts"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    purchase_order_item_id = Column(Integer, ForeignKey("purchase_order_items.id"), nullable=False, index=True)
    received_date = Column(Date, default=utc_today, nullable=False)
    quantity_received = Column(Integer, nullable=False)
    quality_status = Column(String, default=QualityStatus.PENDING.value)
    damaged_quantity = Column(Integer, default=0)
    notes = Column(Text)
    received_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=utc_now)

    purchase_order = relationship("PurchaseOrder", back_populates="receipts")
    item = relationship("PurchaseOrderItem")

class PurchaseOrderStatusHistory(Base):
    __tablename__ = "purchase_order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    old_status = Column(String)
    new_status = Column(String, nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"))
    notes = Column(Text)
    created_at = Column(DateTime, default=utc_now)

    purchase_order = relationship("PurchaseOrder", back_populates="status_history")
