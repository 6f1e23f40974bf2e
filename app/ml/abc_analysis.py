from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from app.core.constants import (
    ABC_TIERS,
    DEFAULT_ANALYSIS_WINDOW_DAYS,
    FALLBACK_TIER,
    SCORE_WEIGHTS,
    TIER_A_MIN_SCORE,
    TIER_B_MIN_SCORE,
)
from app.core.dates import normalize_date, utc_now
from app.core.score_ladders import (
    average_order_value_score,
    frequency_score,
    revenue_score,
    seasonality_score,
    unit_price_score,
    volume_score,
)

logger = logging.getLogger(__name__)

_SCORE_PRECISION = 9


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: int
    category: str
    unit_price: float
    current_stock: int = 0
    minimum_stock: int = 0
    name: str = ""
    sku: str = ""


@dataclass(frozen=True)
class SalesRecord:
    product_id: int
    sale_date: date
    quantity_sold: int
    unit_price: float

    @property
    def total_revenue(self) -> float:
        return float(self.quantity_sold) * float(self.unit_price)


@dataclass(frozen=True)
class SalesAggregate:
    total_revenue: float = 0.0
    total_volume: int = 0
    frequency: int = 0
    average_order_value: float = 0.0
    seasonality_index: float = 1.0


@dataclass(frozen=True)
class ProductMetrics:
    """The six classifier inputs for one product over one analysis window."""

    revenue: float
    volume: float
    frequency: float
    unit_price: float
    average_order_value: float = 0.0
    seasonality_index: float = 1.0

    @classmethod
    def from_aggregate(cls, aggregate: SalesAggregate, unit_price) -> "ProductMetrics":
        return cls(
            revenue=aggregate.total_revenue,
            volume=aggregate.total_volume,
            frequency=aggregate.frequency,
            unit_price=unit_price,
            average_order_value=aggregate.average_order_value,
            seasonality_index=aggregate.seasonality_index,
        )


@dataclass(frozen=True)
class ClassificationResult:
    product_id: int
    score: float
    tier: str
    aggregate: SalesAggregate = field(default_factory=SalesAggregate)
    name: str = ""
    sku: str = ""
    category: str = ""
    unit_price: float = 0.0
    current_stock: int = 0
    minimum_stock: int = 0
    defaulted: bool = False


@dataclass(frozen=True)
class PortfolioSummary:
    analysis_date: datetime
    period_start: date
    period_end: date
    total_products: int
    tier_counts: dict
    tier_revenue: dict
    results: list
    soft_default_count: int = 0

    @property
    def category_a_count(self) -> int:
        return self.tier_counts["A"]

    @property
    def category_b_count(self) -> int:
        return self.tier_counts["B"]

    @property
    def category_c_count(self) -> int:
        return self.tier_counts["C"]

    def results_for_tier(self, tier: str) -> list:
        return [result for result in self.results if result.tier == tier]


def component_scores(metrics: ProductMetrics) -> dict:
    return {
        "revenue": revenue_score(metrics.revenue),
        "volume": volume_score(metrics.volume),
        "frequency": frequency_score(metrics.frequency),
        "unit_price": unit_price_score(metrics.unit_price),
        "average_order_value": average_order_value_score(metrics.average_order_value),
        "seasonality": seasonality_score(metrics.seasonality_index),
    }


def composite_score(metrics: ProductMetrics) -> float:
    scores = component_scores(metrics)
    total = sum(SCORE_WEIGHTS[name] * score for name, score in scores.items())
    return round(total, _SCORE_PRECISION)


def tier_for_score(score: float) -> str:
    if score >= TIER_A_MIN_SCORE:
        return "A"
    if score >= TIER_B_MIN_SCORE:
        return "B"
    return "C"


def classify_metrics(product_id, metrics: ProductMetrics) -> ClassificationResult:
    try:
        score = composite_score(metrics)
    except (TypeError, ValueError, AttributeError, ArithmeticError):
        logger.warning(
            "Falling back to tier %s for product %s: composite score failed.",
            FALLBACK_TIER,
            product_id,
            exc_info=True,
            extra={"product_id": product_id, "tier": FALLBACK_TIER},
        )
        return ClassificationResult(
            product_id=product_id,
            score=0.0,
            tier=FALLBACK_TIER,
            defaulted=True,
        )
    return ClassificationResult(product_id=product_id, score=score, tier=tier_for_score(score))


def classify(metrics: ProductMetrics) -> str:
    return classify_metrics(None, metrics).tier


def _window_bounds(as_of, window_days):
    end_date = normalize_date(as_of)
    if end_date is None:
        raise ValueError("as_of must be a date or datetime")
    return end_date - timedelta(days=int(window_days)), end_date


def seasonality_index(sales: Iterable[SalesRecord], as_of) -> float:
    """Current-month units relative to the window's average month (12ths)."""
    current_month = normalize_date(as_of).month
    monthly_units = defaultdict(float)
    for record in sales:
        monthly_units[normalize_date(record.sale_date).month] += float(record.quantity_sold)

    total_units = sum(monthly_units.values())
    average_monthly = total_units / 12.0
    if average_monthly <= 0:
        return 1.0
    return monthly_units.get(current_month, 0.0) / average_monthly


def aggregate_sales(sales: Iterable[SalesRecord], as_of) -> SalesAggregate:
    sales = list(sales)
    if not sales:
        return SalesAggregate()

    revenue = sum(record.total_revenue for record in sales)
    volume = sum(int(record.quantity_sold) for record in sales)
    frequency = len(sales)
    return SalesAggregate(
        total_revenue=revenue,
        total_volume=volume,
        frequency=frequency,
        average_order_value=revenue / frequency if frequency > 0 else 0.0,
        seasonality_index=seasonality_index(sales, as_of),
    )


def _index_window_sales(sales_history, period_start, period_end):
    index = defaultdict(list)
    for record in sales_history:
        sale_date = normalize_date(record.sale_date)
        if sale_date is None:
            logger.warning(
                "Ignoring sale without a usable date for product %s.",
                record.product_id,
                extra={"product_id": record.product_id},
            )
            continue
        if period_start <= sale_date <= period_end:
            index[record.product_id].append(record)
    return index


def _classify_product(product: ProductSnapshot, window_sales, as_of) -> ClassificationResult:
    try:
        aggregate = aggregate_sales(window_sales, as_of)
        metrics = ProductMetrics.from_aggregate(aggregate, product.unit_price)
    except (TypeError, ValueError, AttributeError, ArithmeticError):
        logger.warning(
            "Falling back to tier %s for product %s: sales aggregation failed.",
            FALLBACK_TIER,
            product.product_id,
            exc_info=True,
            extra={"product_id": product.product_id, "tier": FALLBACK_TIER},
        )
        aggregate = SalesAggregate()
        classified = ClassificationResult(
            product_id=product.product_id,
            score=0.0,
            tier=FALLBACK_TIER,
            defaulted=True,
        )
    else:
        classified = classify_metrics(product.product_id, metrics)

    return ClassificationResult(
        product_id=product.product_id,
        score=classified.score,
        tier=classified.tier,
        aggregate=aggregate,
        name=product.name,
        sku=product.sku,
        category=product.category,
        unit_price=product.unit_price,
        current_stock=product.current_stock,
        minimum_stock=product.minimum_stock,
        defaulted=classified.defaulted,
    )


def analyze_portfolio(
    products: Iterable[ProductSnapshot],
    sales_history: Iterable[SalesRecord],
    *,
    as_of: Optional[datetime] = None,
    window_days: int = DEFAULT_ANALYSIS_WINDOW_DAYS,
) -> PortfolioSummary:
    analysis_date = as_of or utc_now()
    period_start, period_end = _window_bounds(analysis_date, window_days)

    products = list(products)
    window_index = _index_window_sales(sales_history, period_start, period_end)

    results = [
        _classify_product(product, window_index.get(product.product_id, []), analysis_date)
        for product in products
    ]

    tier_counts = {tier: 0 for tier in ABC_TIERS}
    tier_revenue = {tier: 0.0 for tier in ABC_TIERS}
    soft_defaults = 0
    for result in results:
        tier_counts[result.tier] += 1
        tier_revenue[result.tier] += result.aggregate.total_revenue
        if result.defaulted:
            soft_defaults += 1

    if soft_defaults:
        logger.warning(
            "ABC analysis soft-defaulted %d of %d product(s) to tier %s.",
            soft_defaults,
            len(results),
            FALLBACK_TIER,
        )
    logger.info(
        "ABC analysis over %s..%s: A=%d B=%d C=%d.",
        period_start,
        period_end,
        tier_counts["A"],
        tier_counts["B"],
        tier_counts["C"],
    )

    return PortfolioSummary(
        analysis_date=analysis_date,
        period_start=period_start,
        period_end=period_end,
        total_products=len(products),
        tier_counts=tier_counts,
        tier_revenue=tier_revenue,
        results=results,
        soft_default_count=soft_defaults,
    )


__all__ = [
    "ClassificationResult",
    "PortfolioSummary",
    "ProductMetrics",
    "ProductSnapshot",
    "SalesAggregate",
    "SalesRecord",
    "aggregate_sales",
    "analyze_portfolio",
    "classify",
    "classify_metrics",
    "component_scores",
    "composite_score",
    "seasonality_index",
    "tier_for_score",
]
