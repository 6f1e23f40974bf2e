from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.config import get_settings
from app.dependencies import get_model_state
from app.ml.model_state import ModelState

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(model_state: ModelState = Depends(get_model_state)):
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "time": datetime.now(timezone.utc).isoformat(),
        "model": model_state.snapshot(),
    }
