from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field


class ProductAbcRead(BaseModel):
    product_id: int
    product_name: str
    sku: str
    category: str
    abc_category: str
    score: float
    revenue: float
    volume: int
    frequency: int
    unit_price: float
    average_order_value: float
    seasonality_index: float
    current_stock: int
    minimum_stock: int
    defaulted: bool = False


class PortfolioSummaryRead(BaseModel):
    analysis_date: datetime
    analysis_period_start: date
    analysis_period_end: date
    total_products: int
    category_a_count: int
    category_b_count: int
    category_c_count: int
    category_a_revenue: float
    category_b_revenue: float
    category_c_revenue: float
    soft_default_count: int = 0
    product_analyses: List[ProductAbcRead] = Field(default_factory=list)
