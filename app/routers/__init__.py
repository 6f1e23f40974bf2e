from app.routers.analysis import router as analysis_router
from app.routers.health import router as health_router
from app.routers.inventory import router as inventory_router
from app.routers.predictions import router as predictions_router
from app.routers.products import router as products_router

__all__ = [
    "analysis_router",
    "health_router",
    "inventory_router",
    "predictions_router",
    "products_router",
]
