from fastapi import Request

from app.database.session import get_db
from app.ml.model_state import ModelState
from app.services.notification_service import StockEventBroadcaster


def get_model_state(request: Request) -> ModelState:
    return request.app.state.model_state


def get_broadcaster(request: Request) -> StockEventBroadcaster:
    return request.app.state.broadcaster


__all__ = ["get_broadcaster", "get_db", "get_model_state"]
