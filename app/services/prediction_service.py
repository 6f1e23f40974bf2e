import logging
from collections import defaultdict
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.constants import FALLBACK_TIER, MONTH_NAMES
from app.core.dates import utc_today
from app.ml.demand import generate_forecast_batch, quick_tier
from app.ml.model_io import load_model
from app.ml.model_state import ModelState
from app.models.prediction import PredictionResult
from app.models.product import Product
from app.services.analysis_service import portfolio_tiers
from app.services.storage import (
    load_product_snapshots,
    load_sales_records,
    replace_future_forecasts,
    to_snapshot,
)

logger = logging.getLogger(__name__)

TIER_SOURCES = ("quick", "portfolio")


def _resolve_tiers(db, tier_source, today):
    if tier_source == "quick":
        return None
    if tier_source == "portfolio":
        return portfolio_tiers(db, as_of=today)
    raise ValueError("Unknown forecast tier source: {}".format(tier_source))


def generate_predictions(
    db: Session,
    model_state: ModelState,
    *,
    today=None,
    days=None,
    seed=None,
    tier_source=None,
) -> list[PredictionResult]:
    settings = get_settings()
    today = today or utc_today()
    if days is None:
        days = settings.FORECAST_HORIZON_DAYS
    seed = seed if seed is not None else settings.FORECAST_SEED
    tier_source = (tier_source or settings.FORECAST_TIER_SOURCE).strip().lower()

    if days <= 0:
        logger.warning("Forecast horizon of %s day(s) requested; nothing to generate", days)
        return []

    logger.info("Starting prediction generation")
    products = load_product_snapshots(db)
    if not products:
        logger.warning("No products found for prediction generation")
        return []

    start_date = today + timedelta(days=1)
    tiers = _resolve_tiers(db, tier_source, today)

    logger.info(
        "Generating predictions for %d product(s) over %d day(s) (tiers: %s)",
        len(products),
        days,
        tier_source,
    )
    forecasts = generate_forecast_batch(
        products,
        days,
        start_date=start_date,
        seed=seed,
        tiers=tiers,
        model=model_state.model,
        max_workers=settings.FORECAST_MAX_WORKERS,
    )
    rows = replace_future_forecasts(db, forecasts, start_date)
    logger.info("Successfully generated %d predictions", len(rows))
    return rows


def get_predictions(db: Session, product_id: int) -> list[PredictionResult]:
    return list(
        db.execute(
            select(PredictionResult)
            .where(PredictionResult.product_id == product_id)
            .order_by(PredictionResult.predicted_date)
        )
        .scalars()
        .all()
    )


def get_all_predictions(db: Session) -> list[PredictionResult]:
    return list(
        db.execute(
            select(PredictionResult).order_by(
                PredictionResult.product_id,
                PredictionResult.predicted_date,
            )
        )
        .scalars()
        .all()
    )


def get_predictions_by_date_range(db: Session, start_date, end_date) -> list[PredictionResult]:
    if end_date < start_date:
        raise ValueError("end_date must not be before start_date")
    return list(
        db.execute(
            select(PredictionResult)
            .where(
                PredictionResult.predicted_date >= start_date,
                PredictionResult.predicted_date <= end_date,
            )
            .order_by(PredictionResult.predicted_date, PredictionResult.product_id)
        )
        .scalars()
        .all()
    )


def get_high_confidence_predictions(db: Session, minimum_confidence=None) -> list[PredictionResult]:
    if minimum_confidence is None:
        minimum_confidence = get_settings().HIGH_CONFIDENCE_THRESHOLD
    return list(
        db.execute(
            select(PredictionResult)
            .where(PredictionResult.confidence >= minimum_confidence)
            .order_by(PredictionResult.confidence.desc(), PredictionResult.predicted_date)
        )
        .scalars()
        .all()
    )


def get_abc_category(db: Session, product_id: int) -> str:
    product = db.get(Product, product_id)
    if product is None:
        return FALLBACK_TIER
    return quick_tier(to_snapshot(product))


def get_prediction_summary(db: Session, today=None) -> dict:
    today = today or utc_today()
    threshold = get_settings().HIGH_CONFIDENCE_THRESHOLD
    rows = db.execute(
        select(PredictionResult, Product.name)
        .outerjoin(Product, Product.id == PredictionResult.product_id)
        .where(PredictionResult.predicted_date >= today)
    ).all()

    if not rows:
        return {
            "total_predictions": 0,
            "high_confidence_predictions": 0,
            "average_confidence": 0.0,
            "total_predicted_demand": 0.0,
            "category_breakdown": [],
            "top_products": [],
            "last_generation_date": None,
        }

    by_tier = defaultdict(list)
    by_product = defaultdict(list)
    for prediction, product_name in rows:
        by_tier[prediction.abc_category].append(prediction)
        by_product[(prediction.product_id, product_name or "Unknown")].append(prediction)

    def _average_confidence(items):
        return sum(item.confidence for item in items) / len(items)

    def _total_demand(items):
        return sum(item.predicted_demand for item in items)

    predictions = [prediction for prediction, _ in rows]
    top_products = sorted(
        (
            {
                "product_id": product_id,
                "product_name": product_name,
                "total_predicted_demand": _total_demand(items),
                "average_confidence": _average_confidence(items),
                "day_count": len(items),
            }
            for (product_id, product_name), items in by_product.items()
        ),
        key=lambda entry: entry["total_predicted_demand"],
        reverse=True,
    )[:10]

    return {
        "total_predictions": len(predictions),
        "high_confidence_predictions": sum(1 for item in predictions if item.confidence >= threshold),
        "average_confidence": _average_confidence(predictions),
        "total_predicted_demand": _total_demand(predictions),
        "category_breakdown": [
            {
                "category": tier,
                "count": len(items),
                "average_confidence": _average_confidence(items),
                "total_predicted_demand": _total_demand(items),
            }
            for tier, items in sorted(by_tier.items())
        ],
        "top_products": top_products,
        "last_generation_date": max(item.created_at for item in predictions),
    }


def get_seasonal_patterns(db: Session, product_id: int) -> list[dict]:
    """Monthly sales profile; the index is each month's units over the mean month."""
    sales = load_sales_records(db, product_id=product_id)

    units = defaultdict(int)
    counts = defaultdict(int)
    days = defaultdict(set)
    for record in sales:
        month = record.sale_date.month
        units[month] += int(record.quantity_sold)
        counts[month] += 1
        days[month].add(record.sale_date)

    mean_month = sum(units.values()) / 12.0
    patterns = []
    for month in range(1, 13):
        day_count = len(days[month])
        patterns.append(
            {
                "month": month,
                "month_name": MONTH_NAMES[month - 1],
                "average_daily_sales": units[month] / day_count if day_count else 0.0,
                "total_sales": units[month],
                "sales_count": counts[month],
                "seasonality_index": units[month] / mean_month if mean_month > 0 else 1.0,
            }
        )
    return patterns


def reload_model(model_state: ModelState, model_path=None, metadata_path=None) -> dict:
    try:
        model, metadata = load_model(model_path, metadata_path)
    # noinspection PyBroadException
    except Exception as exc:
        logger.warning("Failed to load demand model; using heuristic projection: %s", exc)
        model, metadata = None, {"load_error": str(exc)}
    if model is not None:
        logger.info("Loaded demand model artifact.")
    elif metadata is None:
        logger.info("No demand model artifact found; using heuristic projection.")
    model_state.mark_trained(model=model, metadata=metadata)
    return model_state.snapshot()


def model_status(model_state: ModelState) -> dict:
    return model_state.snapshot()


__all__ = [
    "TIER_SOURCES",
    "generate_predictions",
    "get_abc_category",
    "get_all_predictions",
    "get_high_confidence_predictions",
    "get_prediction_summary",
    "get_predictions",
    "get_predictions_by_date_range",
    "get_seasonal_patterns",
    "model_status",
    "reload_model",
]
