from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import date
from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.models.inventory import Category, ChangeType, Product
from app.models.user import User
from app.repositories.store_scope import StoreRepository
from app.schemas.common import envelope, reject_nulls
from app.schemas.inventory import (
    ProductCreate, ProductResponse, ProductUpdate, StockAdjustment, InventoryLogResponse,
    CategoryCreate, CategoryResponse, SnapshotCreate, SnapshotBackfill, InventorySnapshotResponse,
)
from app.services import inventory_reports, snapshots
from app.services.dead_stock import DEFAULT_THRESHOLDS
from app.services.stock import adjust_stock
from app.api.v1.dependencies import get_store_repository, require_permission_dependency

logger = get_logger(__name__)

router = APIRouter()

def _product_response(product: Product) -> ProductResponse:
    response = ProductResponse.model_validate(product)
    response.category_name = product.category.name if product.category else None
    response.supplier_name = product.supplier.name if product.supplier else None
    return response

def _check_references(repo: StoreRepository, category_id: Optional[int], supplier_id: Optional[int]):
    if category_id is not None and repo.get_category(category_id) is None:
        raise NotFoundError("Category not found")
    if supplier_id is not None and repo.get_supplier(supplier_id) is None:
        raise NotFoundError("Supplier not found")

# Categories
@router.get("/categories")
def get_categories(
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    return envelope([CategoryResponse.model_validate(c) for c in repo.categories()])

@router.post("/categories", status_code=201)
def create_category(
    category: CategoryCreate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "create"))
):
    if repo.category_by_name(category.name):
        raise ConflictError("Category already exists")
    with repo.transaction():
        db_category = repo.add(Category(**category.model_dump()))
    return envelope(CategoryResponse.model_validate(db_category), "Category created")

# Products
@router.get("/products")
def get_products(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    active_only: bool = True,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    products = repo.products(
        active_only=active_only, category_id=category_id, search=search, skip=skip, limit=limit
    )
    return envelope([_product_response(p) for p in products])

@router.get("/products/{product_id}")
def get_product(
    product_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    """Product with its demand forecast and stock status"""
    product = repo.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")
    velocity = inventory_reports.product_velocity(repo).get(product.id)
    data = _product_response(product).model_dump()
    data["forecast"] = inventory_reports.product_forecast(product, velocity)
    return envelope(data)

@router.post("/products", status_code=201)
def create_product(
    product: ProductCreate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "create"))
):
    if repo.product_by_sku(product.sku):
        raise ConflictError("SKU already exists")
    _check_references(repo, product.category_id, product.supplier_id)

    with repo.transaction():
        db_product = repo.add(Product(**product.model_dump()))
        repo.db.flush()
        # Initial stock row so turnover can rebuild inventory levels from the log
        repo.log_stock_change(db_product, ChangeType.INITIAL, db_product.stock_quantity, notes="Initial stock")

    logger.info(f"Created product {db_product.sku}")
    return envelope(_product_response(db_product), "Product created")

@router.patch("/products/{product_id}")
@router.put("/products/{product_id}")
def update_product(
    product_id: int,
    product_update: ProductUpdate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "edit"))
):
    product = repo.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")

    update_data = product_update.model_dump(exclude_unset=True)
    if not update_data:
        raise ValidationError("No fields to update")
    reject_nulls(update_data, ("sku", "name", "base_price", "low_stock_threshold", "is_active"))
    if "sku" in update_data and update_data["sku"] != product.sku and repo.product_by_sku(update_data["sku"]):
        raise ConflictError("SKU already exists")
    _check_references(repo, update_data.get("category_id"), update_data.get("supplier_id"))

    with repo.transaction():
        for field, value in update_data.items():
            setattr(product, field, value)

    return envelope(_product_response(product), "Product updated")

@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "delete"))
):
    """Soft delete - order and stock history keep pointing at the product"""
    product = repo.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")
    if not product.is_active:
        raise ValidationError("Product is already discontinued")

    with repo.transaction():
        product.is_active = False
        repo.log_stock_change(product, ChangeType.DISCONTINUED, 0, reference_type="manual", notes="Product discontinued")

    return envelope({"product_id": product_id}, "Product deactivated successfully")

@router.put("/products/{product_id}/stock")
def update_stock(
    product_id: int,
    adjustment: StockAdjustment,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "edit"))
):
    product = adjust_stock(
        repo,
        product_id,
        stock_quantity=adjustment.stock_quantity,
        quantity_change=adjustment.quantity_change,
        notes=adjustment.notes,
    )
    return envelope(_product_response(product), "Stock updated")

@router.get("/products/{product_id}/forecast")
def get_product_forecast(
    product_id: int,
    period_days: int = Query(30, alias="periodDays"),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    """Demand over the next periodDays from every forecasting method, with the most confident one picked"""
    product = repo.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return envelope(inventory_reports.demand_forecast(repo, product, period_days))

@router.get("/products/{product_id}/logs")
def get_product_logs(
    product_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    if not repo.get_product(product_id):
        raise NotFoundError("Product not found")
    logs = repo.inventory_logs(product_id=product_id, skip=skip, limit=limit)
    return envelope([InventoryLogResponse.model_validate(log) for log in logs])

@router.get("/logs")
def get_inventory_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    logs = repo.inventory_logs(skip=skip, limit=limit)
    return envelope([InventoryLogResponse.model_validate(log) for log in logs])

# Analytics
@router.get("/recommendations")
def get_reorder_recommendations(
    limit: Optional[int] = Query(None, ge=1, le=100),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    """
    Reorder recommendations from sales velocity and current stock.
    Ranked urgent → high → medium → low, then by days until stockout.
    """
    limit = limit or settings.RECOMMENDATION_DEFAULT_LIMIT
    return envelope(inventory_reports.reorder_recommendations(repo, limit=limit))

@router.get("/reports/turnover")
def get_turnover_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "view"))
):
    """Turnover ratio, days to sell and velocity category per product (defaults to the last 30 days)"""
    return envelope(inventory_reports.turnover_report(repo, start_date, end_date))

@router.get("/reports/dead-stock")
def get_dead_stock_report(
    thresholds: List[int] = Query(list(DEFAULT_THRESHOLDS)),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "view"))
):
    if any(days <= 0 for days in thresholds):
        raise ValidationError("Thresholds must be positive day counts")
    return envelope(inventory_reports.dead_stock_report(repo, thresholds))

@router.get("/forecasts")
def get_batch_forecast(
    period_days: int = Query(30, alias="periodDays"),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("inventory", "view"))
):
    """Most confident demand forecast per active product, keyed by product id"""
    return envelope(inventory_reports.batch_forecast(repo, period_days))

@router.get("/reports/valuation")
def get_valuation_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    compare_previous: bool = Query(False, alias="comparePrevious"),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "view"))
):
    """Cost and retail value of stock on hand, with snapshot history and optional period comparison"""
    return envelope(inventory_reports.valuation_report(repo, start_date, end_date, compare_previous))

# Snapshots
@router.get("/snapshots")
def get_snapshots(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "view"))
):
    start, end = inventory_reports.resolve_period(start_date, end_date)
    history = repo.snapshots(start.date(), end.date())
    return envelope([InventorySnapshotResponse.model_validate(s) for s in reversed(history)])

@router.get("/snapshots/latest")
def get_latest_snapshot(
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "view"))
):
    snapshot = repo.latest_snapshot()
    if snapshot is None:
        raise NotFoundError("No snapshots recorded yet")
    return envelope(InventorySnapshotResponse.model_validate(snapshot))

@router.post("/snapshots", status_code=201)
def create_snapshot(
    payload: SnapshotCreate,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "create"))
):
    """Capture (or re-capture) the snapshot for a day, today by default"""
    snapshot = snapshots.capture_snapshot(repo, payload.snapshot_date, snapshot_type="manual")
    return envelope(InventorySnapshotResponse.model_validate(snapshot), "Snapshot captured")

@router.post("/snapshots/backfill")
def backfill_snapshots(
    payload: SnapshotBackfill,
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("reports", "create"))
):
    filled = snapshots.backfill_snapshots(repo, payload.start_date, payload.end_date)
    return envelope(
        {"count": len(filled), "dates": [day.isoformat() for day in filled]},
        f"Backfilled {len(filled)} snapshot(s)",
    )
