import logging
from datetime import datetime, time, timedelta, timezone

from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.dates import normalize_date, utc_now
from app.ml.abc_analysis import PortfolioSummary, analyze_portfolio
from app.services.storage import load_product_snapshots, load_sales_records

logger = logging.getLogger(__name__)


def _as_datetime(value):
    if value is None:
        return utc_now()
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    day = normalize_date(value)
    if day is None:
        raise ValueError("as_of must be a date or datetime")
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def portfolio_summary(db: Session, *, as_of=None, window_days=None) -> PortfolioSummary:
    """Load products and window sales from storage and run the ABC analysis."""
    settings = get_settings()
    if window_days is None:
        window_days = settings.ANALYSIS_WINDOW_DAYS
    analysis_date = _as_datetime(as_of)
    end_date = analysis_date.date()
    start_date = end_date - timedelta(days=window_days)

    products = load_product_snapshots(db)
    sales = load_sales_records(db, start_date=start_date, end_date=end_date)
    logger.info(
        "Running ABC analysis for %d product(s) over %d sale(s).",
        len(products),
        len(sales),
    )
    return analyze_portfolio(products, sales, as_of=analysis_date, window_days=window_days)


def portfolio_tiers(db: Session, *, as_of=None) -> dict:
    summary = portfolio_summary(db, as_of=as_of)
    return {result.product_id: result.tier for result in summary.results}


def summary_to_dict(summary: PortfolioSummary) -> dict:
    return {
        "analysis_date": summary.analysis_date,
        "analysis_period_start": summary.period_start,
        "analysis_period_end": summary.period_end,
        "total_products": summary.total_products,
        "category_a_count": summary.tier_counts["A"],
        "category_b_count": summary.tier_counts["B"],
        "category_c_count": summary.tier_counts["C"],
        "category_a_revenue": summary.tier_revenue["A"],
        "category_b_revenue": summary.tier_revenue["B"],
        "category_c_revenue": summary.tier_revenue["C"],
        "soft_default_count": summary.soft_default_count,
        "product_analyses": [
            {
                "product_id": result.product_id,
                "product_name": result.name,
                "sku": result.sku,
                "category": result.category,
                "abc_category": result.tier,
                "score": result.score,
                "revenue": result.aggregate.total_revenue,
                "volume": result.aggregate.total_volume,
                "frequency": result.aggregate.frequency,
                "unit_price": result.unit_price,
                "average_order_value": result.aggregate.average_order_value,
                "seasonality_index": result.aggregate.seasonality_index,
                "current_stock": result.current_stock,
                "minimum_stock": result.minimum_stock,
                "defaulted": result.defaulted,
            }
            for result in summary.results
        ],
    }


__all__ = ["portfolio_summary", "portfolio_tiers", "summary_to_dict"]
