from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_model_state
from app.ml.model_state import ModelState
from app.schemas.prediction import (
    AbcCategoryRead,
    ModelStatusRead,
    PredictionRead,
    PredictionSummaryRead,
    SeasonalPatternRead,
)
from app.services.prediction_service import (
    generate_predictions,
    get_abc_category,
    get_all_predictions,
    get_high_confidence_predictions,
    get_prediction_summary,
    get_predictions,
    get_predictions_by_date_range,
    get_seasonal_patterns,
    model_status,
    reload_model,
)

router = APIRouter(prefix="/predictions", tags=["Predictions"])


@router.post("/generate", response_model=List[PredictionRead])
def generate(
    seed: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    model_state: ModelState = Depends(get_model_state),
):
    return generate_predictions(db, model_state, seed=seed)


@router.get("", response_model=List[PredictionRead])
def read_all(db: Session = Depends(get_db)):
    return get_all_predictions(db)


@router.get("/product/{product_id}", response_model=List[PredictionRead])
def read_for_product(product_id: int, db: Session = Depends(get_db)):
    return get_predictions(db, product_id)


@router.get("/range", response_model=List[PredictionRead])
def read_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
):
    try:
        return get_predictions_by_date_range(db, start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/high-confidence", response_model=List[PredictionRead])
def read_high_confidence(
    minimum_confidence: Optional[float] = Query(None, ge=0, le=1),
    db: Session = Depends(get_db),
):
    return get_high_confidence_predictions(db, minimum_confidence)


@router.get("/summary", response_model=PredictionSummaryRead)
def read_summary(db: Session = Depends(get_db)):
    return get_prediction_summary(db)


@router.get("/abc/{product_id}", response_model=AbcCategoryRead)
def read_abc_category(product_id: int, db: Session = Depends(get_db)):
    return {"product_id": product_id, "abc_category": get_abc_category(db, product_id)}


@router.get("/seasonal/{product_id}", response_model=List[SeasonalPatternRead])
def read_seasonal_patterns(product_id: int, db: Session = Depends(get_db)):
    return get_seasonal_patterns(db, product_id)


@router.post("/retrain", response_model=ModelStatusRead)
def retrain(model_state: ModelState = Depends(get_model_state)):
    return reload_model(model_state)


@router.get("/model-status", response_model=ModelStatusRead)
def read_model_status(model_state: ModelState = Depends(get_model_state)):
    return model_status(model_state)
