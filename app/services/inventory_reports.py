"""
Store-level inventory reports.

Fetches aggregates through the store repository and hands them to the pure
calculators in velocity, forecasting, reorder, turnover, dead_stock and
valuation.
"""
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from app.core.clock import end_of_day, start_of_day, utc_now, utc_today
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging_config import get_logger
from app.models.inventory import Product
from app.repositories.store_scope import StoreRepository
from app.services import dead_stock, forecasting, reorder, turnover, valuation
from app.services.velocity import SalesHistory, VelocityMetrics, analyze_velocity

logger = get_logger(__name__)

DEFAULT_REPORT_DAYS = 30


def product_velocity(repo: StoreRepository, now: Optional[datetime] = None) -> dict:
    """VelocityMetrics per product id; products without counted sales are absent."""
    rows = repo.sales_history_rows(settings.VELOCITY_ORDER_STATUSES, now=now)
    return {product_id: analyze_velocity(SalesHistory.from_row(row)) for product_id, row in rows.items()}


def _position(product: Product) -> reorder.StockPosition:
    return reorder.StockPosition(
        product_id=product.id,
        name=product.name,
        sku=product.sku,
        stock_quantity=product.stock_quantity or 0,
        low_stock_threshold=product.low_stock_threshold or 0,
        unit_cost=product.unit_cost,
        supplier_name=product.supplier.name if product.supplier else None,
    )


def reorder_recommendations(repo: StoreRepository, limit: Optional[int] = None, now: Optional[datetime] = None) -> dict:
    limit = settings.RECOMMENDATION_DEFAULT_LIMIT if limit is None else limit
    velocities = product_velocity(repo, now=now)
    candidates = [
        (_position(product), velocities.get(product.id) or analyze_velocity(None))
        for product in repo.products(active_only=True)
    ]
    report = reorder.build_recommendations(candidates, repo.active_supplier_names(), limit)
    logger.info(
        f"Reorder scan over {len(candidates)} products produced "
        f"{report['summary']['total_recommendations']} recommendations"
    )
    return {
        "recommendations": [rec.to_dict() for rec in report["recommendations"]],
        "summary": report["summary"],
    }


def stock_status(product: Product) -> str:
    if not product.is_active:
        return "discontinued"
    if (product.stock_quantity or 0) <= 0:
        return "out_of_stock"
    if product.stock_quantity <= (product.low_stock_threshold or 0):
        return "low_stock"
    return "in_stock"


def product_forecast(product: Product, velocity: Optional[VelocityMetrics]) -> dict:
    velocity = velocity or analyze_velocity(None)
    return {
        "forecast_30d": velocity.forecast_30d,
        "forecast_90d": velocity.forecast_90d,
        "reorder_point": reorder.reorder_point(velocity, product.low_stock_threshold or 0),
        "reorder_quantity": reorder.reorder_quantity(velocity),
        "days_until_stockout": max(0, reorder.days_until_stockout(product.stock_quantity or 0, velocity.daily_velocity)),
        "stock_status": stock_status(product),
        "sales_velocity": velocity.to_dict(),
    }


def resolve_period(start_date: Optional[date], end_date: Optional[date]):
    end_day = end_date or utc_today()
    start_day = start_date or (end_day - timedelta(days=DEFAULT_REPORT_DAYS))
    if start_day > end_day:
        raise ValidationError("startDate must not be after endDate")
    return start_of_day(start_day), end_of_day(end_day)


def turnover_report(
    repo: StoreRepository,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> dict:
    now = now or utc_now()
    start, end = resolve_period(start_date, end_date)
    statuses = settings.TURNOVER_ORDER_STATUSES

    catalog = repo.products()
    sales = repo.sales_in_range(statuses, start, end)
    last_sales = repo.last_sale_dates(statuses, until=end)

    products = []
    for product in catalog:
        quantity, revenue = sales.get(product.id, (0.0, 0.0))
        products.append(turnover.ProductSales(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            category=product.category.name if product.category else "Uncategorized",
            current_inventory=product.stock_quantity or 0,
            total_sales_quantity=quantity,
            total_sales_revenue=revenue,
            cost_of_goods_sold=quantity * product.unit_cost,
            last_sale_date=last_sales.get(product.id),
        ))

    levels = turnover.average_inventory_levels(repo.inventory_deltas(end), start, end)
    trends = turnover.daily_sales_trend(
        repo.sale_rows(statuses, start, end),
        {p.product_id: p.current_inventory for p in products},
        start.date(),
        end.date(),
    )
    return turnover.build_report(products, levels, trends, start, end, now)


def dead_stock_report(
    repo: StoreRepository,
    thresholds: Sequence[int] = dead_stock.DEFAULT_THRESHOLDS,
    now: Optional[datetime] = None,
) -> dict:
    now = now or utc_now()
    last_sales = repo.last_sale_dates(settings.TURNOVER_ORDER_STATUSES)
    restocks = repo.last_restock_dates()
    catalog = [
        dead_stock.StockedProduct(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            category=product.category.name if product.category else "Uncategorized",
            category_id=product.category_id,
            current_stock=product.stock_quantity or 0,
            unit_cost=product.unit_cost,
            base_price=product.base_price or 0,
            created_at=product.created_at,
            last_sale_date=last_sales.get(product.id),
            last_restock_date=restocks.get(product.id),
        )
        for product in repo.products(active_only=True)
    ]
    return dead_stock.build_report(catalog, thresholds, now)


def valuation_report(
    repo: StoreRepository,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    compare_previous: bool = False,
) -> dict:
    start, end = resolve_period(start_date, end_date)
    start_day, end_day = start.date(), end.date()

    products = [
        valuation.ValuedProduct(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            category=product.category.name if product.category else "Uncategorized",
            supplier_id=product.supplier_id,
            supplier_name=product.supplier.name if product.supplier else None,
            quantity=product.stock_quantity or 0,
            unit_cost=product.unit_cost,
            retail_price=float(product.base_price or 0),
        )
        for product in repo.products(active_only=True)
    ]
    history = [valuation.snapshot_point(snapshot) for snapshot in repo.snapshots(start_day, end_day)]

    previous = None
    if compare_previous:
        snapshot = repo.snapshot_on(valuation.previous_period_end(start_day, end_day))
        if snapshot is None:
            logger.info("No snapshot for the previous period; comparison skipped")
        else:
            previous = valuation.snapshot_summary(snapshot)

    return valuation.build_report(products, history, previous, start_day, end_day)


def _check_period(period_days: int) -> None:
    if period_days not in forecasting.FORECAST_PERIODS:
        allowed = ", ".join(str(days) for days in forecasting.FORECAST_PERIODS)
        raise ValidationError(f"periodDays must be one of {allowed}")


def demand_forecast(
    repo: StoreRepository,
    product: Product,
    period_days: int,
    now: Optional[datetime] = None,
) -> dict:
    """Every forecasting method for one product, plus the most confident one"""
    _check_period(period_days)
    now = now or utc_now()
    row = repo.sales_history_rows(settings.VELOCITY_ORDER_STATUSES, now=now).get(product.id)
    results = forecasting.all_forecasts(SalesHistory.from_row(row), period_days, now.date())
    return {
        "product_id": product.id,
        "period_days": period_days,
        "forecast": forecasting.best_forecast(results).to_dict(),
        "methods": [result.to_dict() for result in results],
    }


def batch_forecast(repo: StoreRepository, period_days: int, now: Optional[datetime] = None) -> dict:
    _check_period(period_days)
    now = now or utc_now()
    rows = repo.sales_history_rows(settings.VELOCITY_ORDER_STATUSES, now=now)
    return {
        str(product.id): forecasting.best_forecast(
            forecasting.all_forecasts(SalesHistory.from_row(rows.get(product.id)), period_days, now.date())
        ).to_dict()
        for product in repo.products(active_only=True)
    }
