import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import Settings, get_settings
from app.core.logging import setup_logging
from app.database import create_tables
from app.ml.model_state import ModelState
from app.routers import (
    analysis_router,
    health_router,
    inventory_router,
    predictions_router,
    products_router,
)
from app.services.notification_service import StockEventBroadcaster
from app.services.prediction_service import reload_model

logger = logging.getLogger(__name__)

setup_logging()
settings: Settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    create_tables()
    status = reload_model(_app.state.model_state)
    logger.info("%s started (model loaded: %s)", settings.APP_NAME, status["model_loaded"])
    try:
        yield
    finally:
        logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.state.model_state = ModelState()
app.state.broadcaster = StockEventBroadcaster()

app.include_router(health_router)
app.include_router(products_router)
app.include_router(inventory_router)
app.include_router(predictions_router)
app.include_router(analysis_router)


@app.get("/")
def root():
    return {"status": "ok", "app": settings.APP_NAME}


__all__ = ["app", "root"]
