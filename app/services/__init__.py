from app.services.analysis_service import portfolio_summary
from app.services.inventory_service import dashboard, update_stock
from app.services.notification_service import StockEventBroadcaster
from app.services.prediction_service import generate_predictions, get_prediction_summary

__all__ = [
    "StockEventBroadcaster",
    "dashboard",
    "generate_predictions",
    "get_prediction_summary",
    "portfolio_summary",
    "update_stock",
]
