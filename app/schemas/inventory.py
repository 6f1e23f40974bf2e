from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field


class StockUpdateRequest(BaseModel):
    new_stock: int = Field(ge=0)
    reason: str = ""


class StockAdjustmentRequest(BaseModel):
    adjustment: int
    reason: str = ""


class MinimumStockRequest(BaseModel):
    minimum_stock: int = Field(ge=0)


class StockEventRead(BaseModel):
    product_id: int
    product_name: str
    old_stock: int
    new_stock: int
    is_low_stock: bool
    reason: str = ""
    timestamp: datetime


class CategoryStockRead(BaseModel):
    category: str
    total_products: int
    low_stock_count: int
    total_value: float


class RevenuePointRead(BaseModel):
    date: date
    revenue: float


class TopProductRead(BaseModel):
    name: str
    total_sold: int
    revenue: float


class DashboardRead(BaseModel):
    total_products: int
    low_stock_alerts: int
    total_inventory_value: float
    monthly_revenue: float
    category_stock: List[CategoryStockRead] = Field(default_factory=list)
    revenue_data: List[RevenuePointRead] = Field(default_factory=list)
    top_products: List[TopProductRead] = Field(default_factory=list)


class InventoryReportRead(BaseModel):
    generated_at: datetime
    period_start: date
    period_end: date
    total_products: int
    total_inventory_value: float
    low_stock_products_count: int
    out_of_stock_products_count: int
    total_sales_in_period: float
    total_units_sold_in_period: int
