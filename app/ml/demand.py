from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

from app.core.constants import DEFAULT_FORECAST_DAYS
from app.core.dates import date_range, is_weekend, utc_tomorrow
from app.ml.abc_analysis import ProductSnapshot
from app.ml.features import build_demand_features

logger = logging.getLogger(__name__)

VARIATION_RANGE = 0.2
CONFIDENCE_JITTER = 0.1
BASE_CONFIDENCE = 0.75
WELL_STOCKED_BONUS = 0.10
WEEKEND_PENALTY = 0.05
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0

_CATEGORY_DEMAND = {
    "electronics": 8.0,
    "clothing": 12.0,
    "books": 5.0,
    "home & garden": 6.0,
    "sports": 7.0,
}
_DEFAULT_CATEGORY_DEMAND = 5.0

# Cheaper items sell more units.
_PRICE_MULTIPLIERS = (
    (20, 1.5),
    (50, 1.2),
    (100, 1.0),
    (200, 0.8),
)
_DEFAULT_PRICE_MULTIPLIER = 0.6

_SEASONAL_FACTORS = {
    12: 1.3,
    1: 1.3,
    6: 1.1,
    7: 1.1,
    8: 1.1,
    3: 0.9,
    4: 0.9,
    5: 0.9,
}

# Keyed by date.weekday(): Monday == 0.
_DAY_OF_WEEK_FACTORS = {
    0: 0.8,
    4: 1.2,
    5: 1.2,
    6: 0.7,
}

_QUICK_TIER_CATEGORY_BOOST = {"electronics": 1.5}
_QUICK_TIER_A_MIN = 100
_QUICK_TIER_B_MIN = 50

_ITEM_EXCEPTIONS = (TypeError, ValueError, AttributeError, ArithmeticError)


@dataclass(frozen=True)
class DemandForecast:
    product_id: int
    target_date: date
    predicted_demand: float
    confidence: float
    tier: str


def _clamp(value, low, high):
    if value < low:
        return low
    if value > high:
        return high
    return value


def _category_key(category) -> str:
    return str(category or "").strip().lower()


def base_demand(category, unit_price) -> float:
    category_multiplier = _CATEGORY_DEMAND.get(_category_key(category), _DEFAULT_CATEGORY_DEMAND)
    price = float(unit_price)
    price_multiplier = _DEFAULT_PRICE_MULTIPLIER
    for upper_bound, multiplier in _PRICE_MULTIPLIERS:
        if price < upper_bound:
            price_multiplier = multiplier
            break
    return category_multiplier * price_multiplier


def seasonal_factor(day: date) -> float:
    return _SEASONAL_FACTORS.get(day.month, 1.0)


def day_of_week_factor(day: date) -> float:
    return _DAY_OF_WEEK_FACTORS.get(day.weekday(), 1.0)


def _model_demand(model, product: ProductSnapshot, day: date) -> float:
    features = build_demand_features(
        category=product.category,
        unit_price=product.unit_price,
        target_date=day,
    )
    return max(0.0, float(model.predict([features])[0]))


def project(product: ProductSnapshot, day: date, rng, *, model=None):
    """Return ``(demand, confidence)`` for one product on one day.

    ``rng`` needs only ``uniform(a, b)``; two draws are made per call, the
    demand variation first and the confidence jitter second.
    """
    if model is not None:
        expected = _model_demand(model, product, day)
    else:
        expected = (
            base_demand(product.category, product.unit_price)
            * seasonal_factor(day)
            * day_of_week_factor(day)
        )
    variation = rng.uniform(-VARIATION_RANGE, VARIATION_RANGE)
    demand = max(0.0, expected * (1 + variation))

    confidence = BASE_CONFIDENCE
    if product.current_stock > product.minimum_stock * 3:
        confidence += WELL_STOCKED_BONUS
    if is_weekend(day):
        confidence -= WEEKEND_PENALTY
    confidence += rng.uniform(-CONFIDENCE_JITTER, CONFIDENCE_JITTER)

    return demand, _clamp(confidence, MIN_CONFIDENCE, MAX_CONFIDENCE)


def quick_tier(product: ProductSnapshot) -> str:
    """Price/category tier shown beside forecasts; independent of ABC analysis."""
    score = float(product.unit_price) * _QUICK_TIER_CATEGORY_BOOST.get(_category_key(product.category), 1.0)
    if score >= _QUICK_TIER_A_MIN:
        return "A"
    if score >= _QUICK_TIER_B_MIN:
        return "B"
    return "C"


def _product_rng(seed, product_id):
    if seed is None:
        return random.Random()
    return random.Random("{}:{}".format(seed, product_id))


def _forecast_product(product, days, rng, tier, model):
    forecasts = []
    for day in days:
        try:
            demand, confidence = project(product, day, rng, model=model)
            day_tier = tier if tier is not None else quick_tier(product)
        except _ITEM_EXCEPTIONS:
            logger.warning(
                "Skipping forecast for product %s on %s.",
                product.product_id,
                day,
                exc_info=True,
                extra={"product_id": product.product_id, "target_date": day},
            )
            continue
        # noinspection PyBroadException
        except Exception:
            logger.exception(
                "Forecast failed for product %s on %s; skipping the day.",
                product.product_id,
                day,
                extra={"product_id": product.product_id, "target_date": day},
            )
            continue
        forecasts.append(
            DemandForecast(
                product_id=product.product_id,
                target_date=day,
                predicted_demand=demand,
                confidence=confidence,
                tier=day_tier,
            )
        )
    return forecasts


def generate_forecast_batch(
    products: Sequence[ProductSnapshot],
    days: int = DEFAULT_FORECAST_DAYS,
    *,
    start_date: Optional[date] = None,
    seed=None,
    tiers: Optional[Mapping[int, str]] = None,
    model=None,
    max_workers: Optional[int] = None,
) -> list[DemandForecast]:
    products = list(products)
    if not products:
        return []

    start = start_date or utc_tomorrow()
    horizon = list(date_range(start, days))
    tiers = tiers or {}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="forecast") as executor:
        futures = [
            executor.submit(
                _forecast_product,
                product,
                horizon,
                _product_rng(seed, product.product_id),
                tiers.get(product.product_id),
                model,
            )
            for product in products
        ]

        forecasts = []
        for product, future in zip(products, futures):
            try:
                forecasts.extend(future.result())
            # noinspection PyBroadException
            except Exception:
                logger.exception(
                    "Forecast generation failed for product %s; skipping it.",
                    product.product_id,
                    extra={"product_id": product.product_id},
                )

    expected = len(products) * len(horizon)
    if len(forecasts) < expected:
        logger.warning(
            "Forecast batch produced %d of %d product-day forecasts.",
            len(forecasts),
            expected,
        )
    return forecasts


__all__ = [
    "DemandForecast",
    "base_demand",
    "day_of_week_factor",
    "generate_forecast_batch",
    "project",
    "quick_tier",
    "seasonal_factor",
]
