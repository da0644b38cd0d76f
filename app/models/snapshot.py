from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Date, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.clock import utc_now
from app.core.database import Base

class InventorySnapshot(Base):
    """Daily record of a store's stock value, used for valuation history and period comparison"""
    __tablename__ = "inventory_snapshots"
    __table_args__ = (UniqueConstraint("store_id", "snapshot_date", name="uq_inventory_snapshots_store_date"),)

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    snapshot_date = Column(Date, nullable=False, index=True)

    total_products = Column(Integer, default=0, nullable=False)
    total_quantity = Column(Integer, default=0, nullable=False)
    total_cost_value = Column(Float, default=0.0, nullable=False)
    total_retail_value = Column(Float, default=0.0, nullable=False)

    value_by_category = Column(JSON, default=dict)
    quantity_by_category = Column(JSON, default=dict)

    in_stock_count = Column(Integer, default=0)
    low_stock_count = Column(Integer, default=0)
    out_of_stock_count = Column(Integer, default=0)
    discontinued_count = Column(Integer, default=0)

    dead_stock_count = Column(Integer, default=0)  # no sales in 90 days
    dead_stock_value = Column(Float, default=0.0)
    slow_moving_count = Column(Integer, default=0)
    slow_moving_value = Column(Float, default=0.0)

    avg_turnover_ratio = Column(Float)
    avg_days_to_sell = Column(Float)
    fast_moving_count = Column(Integer, default=0)

    top_products_by_value = Column(JSON, default=list)

    snapshot_type = Column(String, default="daily")  # daily, manual, backfill
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=utc_now)

    creator = relationship("User")
