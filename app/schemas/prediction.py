from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PredictionRead(BaseModel):
    id: Optional[int] = None
    product_id: int
    predicted_date: date
    predicted_demand: float
    confidence: float = Field(ge=0, le=1)
    abc_category: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategorySummaryRead(BaseModel):
    category: str
    count: int
    average_confidence: float
    total_predicted_demand: float


class ProductPredictionSummaryRead(BaseModel):
    product_id: int
    product_name: str
    total_predicted_demand: float
    average_confidence: float
    day_count: int


class PredictionSummaryRead(BaseModel):
    total_predictions: int = 0
    high_confidence_predictions: int = 0
    average_confidence: float = 0.0
    total_predicted_demand: float = 0.0
    category_breakdown: List[CategorySummaryRead] = Field(default_factory=list)
    top_products: List[ProductPredictionSummaryRead] = Field(default_factory=list)
    last_generation_date: Optional[datetime] = None


class SeasonalPatternRead(BaseModel):
    month: int
    month_name: str
    average_daily_sales: float
    total_sales: int
    sales_count: int
    seasonality_index: float


class AbcCategoryRead(BaseModel):
    product_id: int
    abc_category: str


class ModelStatusRead(BaseModel):
    is_trained: bool
    last_trained_at: Optional[datetime] = None
    model_loaded: bool = False
    metadata: Optional[dict] = None

    model_config = ConfigDict(protected_namespaces=())
