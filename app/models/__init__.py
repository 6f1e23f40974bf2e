from app.models.prediction import PredictionResult
from app.models.product import Product
from app.models.sales import SalesHistory

__all__ = [
    "PredictionResult",
    "Product",
    "SalesHistory",
]
