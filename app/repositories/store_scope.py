"""
Store-scoped data access.

Every query over tenant-owned rows goes through StoreRepository, which is
constructed from a resolved StoreContext and filters each read and write by
its store id. There is no unscoped path.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from app.core.clock import utc_now
from app.core.exceptions import StoreNotFoundError
from app.core.logging_config import get_logger, store_id_context
from app.models.inventory import Category, ChangeType, InventoryLog, Product, Supplier
from app.models.purchasing import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus
from app.models.sales import Order, OrderItem, OrderStatus
from app.models.snapshot import InventorySnapshot
from app.services.velocity import LOOKBACK_WINDOWS

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoreContext:
    """Identity of an authenticated caller: the user and the store they act for."""

    store_id: Optional[int]
    user: Any = None

    @property
    def user_id(self) -> Optional[int]:
        return getattr(self.user, "id", None)


def _order_statuses(statuses: Iterable[str]) -> List[OrderStatus]:
    return [OrderStatus(s) for s in statuses]


class StoreRepository:
    def __init__(self, db: Session, context: Optional[StoreContext]):
        if context is None or context.store_id is None:
            raise StoreNotFoundError()
        self.db = db
        self.context = context
        self.store_id = context.store_id
        store_id_context.set(self.store_id)

    @contextmanager
    def transaction(self):
        """Commit on success, roll back everything on any exception."""
        try:
            yield self.db
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning("Transaction rolled back", exc_info=True)
            raise

    def add(self, instance):
        if hasattr(instance, "store_id"):
            instance.store_id = self.store_id
        self.db.add(instance)
        return instance

    def _scoped(self, model):
        return self.db.query(model).filter(model.store_id == self.store_id)

    # Products

    def products(
        self,
        active_only: bool = False,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Product]:
        query = self._scoped(Product).options(joinedload(Product.category), joinedload(Product.supplier))
        if active_only:
            query = query.filter(Product.is_active.is_(True))
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter((Product.name.ilike(pattern)) | (Product.sku.ilike(pattern)))
        query = query.order_by(Product.name, Product.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_product(self, product_id: int, lock: bool = False) -> Optional[Product]:
        query = self._scoped(Product).filter(Product.id == product_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def product_by_sku(self, sku: str) -> Optional[Product]:
        return self._scoped(Product).filter(Product.sku == sku).first()

    def log_stock_change(
        self,
        product: Product,
        change_type: ChangeType,
        quantity_change: int,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> InventoryLog:
        """Append an audit row for a stock mutation already applied to `product`."""
        entry = InventoryLog(
            product_id=product.id,
            change_type=change_type.value,
            quantity_change=quantity_change,
            quantity_after=product.stock_quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
        )
        return self.add(entry)

    def inventory_logs(self, product_id: Optional[int] = None, skip: int = 0, limit: int = 100) -> List[InventoryLog]:
        query = self._scoped(InventoryLog)
        if product_id is not None:
            query = query.filter(InventoryLog.product_id == product_id)
        return query.order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc()).offset(skip).limit(limit).all()

    # Categories

    def categories(self) -> List[Category]:
        return self._scoped(Category).order_by(Category.name).all()

    def get_category(self, category_id: int) -> Optional[Category]:
        return self._scoped(Category).filter(Category.id == category_id).first()

    def category_by_name(self, name: str) -> Optional[Category]:
        return self._scoped(Category).filter(func.lower(Category.name) == name.strip().lower()).first()

    # Suppliers

    def suppliers(self, active_only: bool = False) -> List[Supplier]:
        query = self._scoped(Supplier)
        if active_only:
            query = query.filter(Supplier.is_active.is_(True))
        return query.order_by(Supplier.name, Supplier.id).all()

    def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        return self._scoped(Supplier).filter(Supplier.id == supplier_id).first()

    def supplier_by_name(self, name: str, exclude_id: Optional[int] = None) -> Optional[Supplier]:
        query = self._scoped(Supplier).filter(func.lower(Supplier.name) == name.strip().lower())
        if exclude_id is not None:
            query = query.filter(Supplier.id != exclude_id)
        return query.first()

    def active_supplier_names(self) -> List[str]:
        return [s.name for s in self.suppliers(active_only=True)]

    # Storefront orders

    def orders(self, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Order]:
        query = self._scoped(Order).options(joinedload(Order.items))
        if status:
            query = query.filter(Order.status == OrderStatus(status))
        return query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit).all()

    def get_order(self, order_id: int, lock: bool = False) -> Optional[Order]:
        query = self._scoped(Order).filter(Order.id == order_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def order_count(self) -> int:
        return self._scoped(Order).count()

    # Purchase orders

    def purchase_orders(
        self,
        status: Optional[str] = None,
        supplier_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PurchaseOrder]:
        query = self._scoped(PurchaseOrder).options(joinedload(PurchaseOrder.supplier))
        if status:
            query = query.filter(PurchaseOrder.status == PurchaseOrderStatus(status))
        if supplier_id:
            query = query.filter(PurchaseOrder.supplier_id == supplier_id)
        return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).offset(skip).limit(limit).all()

    def get_purchase_order(self, purchase_order_id: int, lock: bool = False) -> Optional[PurchaseOrder]:
        query = self._scoped(PurchaseOrder).filter(PurchaseOrder.id == purchase_order_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def purchase_order_items(self, purchase_order_id: int, lock: bool = False) -> List[PurchaseOrderItem]:
        """Items of one of this store's purchase orders, reached through the owning order."""
        query = (
            self.db.query(PurchaseOrderItem)
            .join(PurchaseOrder, PurchaseOrderItem.purchase_order_id == PurchaseOrder.id)
            .filter(
                PurchaseOrder.store_id == self.store_id,
                PurchaseOrderItem.purchase_order_id == purchase_order_id,
            )
            .order_by(PurchaseOrderItem.id)
        )
        if lock:
            query = query.with_for_update()
        return query.all()

    def po_numbers(self) -> List[str]:
        return [number for (number,) in self.db.query(PurchaseOrder.po_number).filter(
            PurchaseOrder.store_id == self.store_id
        )]

    def supplier_purchase_orders(self, supplier_id: int) -> List[PurchaseOrder]:
        return self._scoped(PurchaseOrder).filter(PurchaseOrder.supplier_id == supplier_id).all()

    # Sales aggregates

    def _counted_sales(self, statuses: Iterable[str]):
        return (
            self.db.query(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(Order.store_id == self.store_id, Order.status.in_(_order_statuses(statuses)))
        )

    def sales_history_rows(self, statuses: Iterable[str], now: Optional[datetime] = None) -> Dict[int, Dict[str, Any]]:
        """
        Per-product sale quantities over each lookback window, keyed by product id.

        avg_monthly_sales is the mean line quantity over the trailing 30 days.
        """
        now = now or utc_now()
        window_columns = [
            func.coalesce(func.sum(case((Order.created_at >= now - timedelta(days=days), OrderItem.quantity), else_=0)), 0)
            .label(f"sales_{days}d")
            for days in LOOKBACK_WINDOWS
        ]
        month_ago = now - timedelta(days=30)
        rows = (
            self._counted_sales(statuses)
            .with_entities(
                OrderItem.product_id,
                *window_columns,
                func.avg(case((Order.created_at >= month_ago, OrderItem.quantity), else_=None)).label("avg_monthly_sales"),
                func.coalesce(func.sum(OrderItem.quantity), 0).label("total_sales"),
                func.count(func.distinct(Order.id)).label("total_orders"),
                func.max(Order.created_at).label("last_sale_date"),
            )
            .group_by(OrderItem.product_id)
            .all()
        )
        return {row.product_id: dict(row._mapping) for row in rows}

    def sales_in_range(self, statuses: Iterable[str], start: datetime, end: datetime) -> Dict[int, Tuple[float, float]]:
        """(quantity, revenue) per product for counted orders created within [start, end]."""
        rows = (
            self._counted_sales(statuses)
            .filter(Order.created_at >= start, Order.created_at <= end)
            .with_entities(
                OrderItem.product_id,
                func.sum(OrderItem.quantity).label("quantity"),
                func.sum(OrderItem.quantity * OrderItem.unit_price).label("revenue"),
            )
            .group_by(OrderItem.product_id)
            .all()
        )
        return {row.product_id: (float(row.quantity or 0), float(row.revenue or 0)) for row in rows}

    def last_sale_dates(self, statuses: Iterable[str], until: Optional[datetime] = None) -> Dict[int, datetime]:
        query = self._counted_sales(statuses)
        if until is not None:
            query = query.filter(Order.created_at <= until)
        rows = query.with_entities(OrderItem.product_id, func.max(Order.created_at)).group_by(OrderItem.product_id)
        return {product_id: moment for product_id, moment in rows}

    def sale_rows(self, statuses: Iterable[str], start: datetime, end: datetime) -> List[Tuple[int, datetime, int]]:
        return [
            (product_id, created_at, quantity)
            for product_id, created_at, quantity in self._counted_sales(statuses)
            .filter(Order.created_at >= start, Order.created_at <= end)
            .with_entities(OrderItem.product_id, Order.created_at, OrderItem.quantity)
        ]

    # Inventory log aggregates

    def inventory_deltas(self, until: datetime) -> List[Tuple[int, datetime, int]]:
        return [
            (product_id, created_at, change)
            for product_id, created_at, change in self._scoped(InventoryLog)
            .filter(InventoryLog.created_at <= until)
            .with_entities(InventoryLog.product_id, InventoryLog.created_at, InventoryLog.quantity_change)
            .order_by(InventoryLog.created_at, InventoryLog.id)
        ]

    def last_restock_dates(self) -> Dict[int, datetime]:
        rows = (
            self._scoped(InventoryLog)
            .filter(InventoryLog.change_type == ChangeType.RESTOCK.value, InventoryLog.quantity_change > 0)
            .with_entities(InventoryLog.product_id, func.max(InventoryLog.created_at))
            .group_by(InventoryLog.product_id)
        )
        return {product_id: moment for product_id, moment in rows}

    # Inventory snapshots

    def snapshots(self, start: date, end: date) -> List[InventorySnapshot]:
        return (
            self._scoped(InventorySnapshot)
            .filter(InventorySnapshot.snapshot_date >= start, InventorySnapshot.snapshot_date <= end)
            .order_by(InventorySnapshot.snapshot_date)
            .all()
        )

    def snapshot_on(self, snapshot_date: date) -> Optional[InventorySnapshot]:
        return self._scoped(InventorySnapshot).filter(InventorySnapshot.snapshot_date == snapshot_date).first()

    def latest_snapshot(self) -> Optional[InventorySnapshot]:
        return self._scoped(InventorySnapshot).order_by(InventorySnapshot.snapshot_date.desc()).first()
