from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Any, Dict, List, Optional
from datetime import date, datetime

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    payment_terms: Optional[str] = "Net 30"
    notes: Optional[str] = None

class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

class SupplierResponse(BaseModel):
    id: int
    name: str
    contact_person: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    payment_terms: Optional[str]
    notes: Optional[str]
    is_active: bool
    performance_rating: Optional[float]
    total_orders: Optional[int]
    on_time_delivery_rate: Optional[float]
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ProductCreate(BaseModel):
    sku: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    base_price: float = Field(..., ge=0)
    cost_price: Optional[float] = Field(None, ge=0)
    stock_quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)

class ProductUpdate(BaseModel):
    """Catalog fields only; stock moves through the stock endpoint so it is always logged."""
    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    base_price: Optional[float] = Field(None, ge=0)
    cost_price: Optional[float] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    description: Optional[str]
    category_id: Optional[int]
    category_name: Optional[str] = None
    supplier_id: Optional[int]
    supplier_name: Optional[str] = None
    base_price: float
    cost_price: Optional[float]
    stock_quantity: int
    low_stock_threshold: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class StockAdjustment(BaseModel):
    stock_quantity: Optional[int] = Field(None, ge=0)
    quantity_change: Optional[int] = None
    notes: Optional[str] = None

class InventoryLogResponse(BaseModel):
    id: int
    product_id: int
    change_type: str
    quantity_change: int
    quantity_after: int
    reference_type: Optional[str]
    reference_id: Optional[int]
    notes: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class SnapshotCreate(BaseModel):
    snapshot_date: Optional[date] = None

class SnapshotBackfill(BaseModel):
    start_date: date
    end_date: Optional[date] = None

class InventorySnapshotResponse(BaseModel):
    id: int
    snapshot_date: date
    snapshot_type: Optional[str]
    total_products: int
    total_quantity: int
    total_cost_value: float
    total_retail_value: float
    value_by_category: Optional[Dict[str, float]]
    quantity_by_category: Optional[Dict[str, int]]
    in_stock_count: Optional[int]
    low_stock_count: Optional[int]
    out_of_stock_count: Optional[int]
    discontinued_count: Optional[int]
    dead_stock_count: Optional[int]
    dead_stock_value: Optional[float]
    slow_moving_count: Optional[int]
    slow_moving_value: Optional[float]
    avg_turnover_ratio: Optional[float]
    avg_days_to_sell: Optional[float]
    fast_moving_count: Optional[int]
    top_products_by_value: Optional[List[Dict[str, Any]]]
    created_by: Optional[int]
    created_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
