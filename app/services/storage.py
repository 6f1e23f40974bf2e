from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.ml.abc_analysis import ProductSnapshot, SalesRecord
from app.ml.demand import DemandForecast
from app.models.prediction import PredictionResult
from app.models.product import Product
from app.models.sales import SalesHistory

logger = logging.getLogger(__name__)


def to_snapshot(product: Product) -> ProductSnapshot:
    return ProductSnapshot(
        product_id=product.id,
        category=product.category,
        unit_price=product.unit_price,
        current_stock=product.current_stock,
        minimum_stock=product.minimum_stock,
        name=product.name,
        sku=product.sku,
    )


def load_product_snapshots(db: Session) -> list[ProductSnapshot]:
    products = db.execute(select(Product).order_by(Product.id)).scalars().all()
    return [to_snapshot(product) for product in products]


def load_sales_records(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    product_id: Optional[int] = None,
) -> list[SalesRecord]:
    stmt = select(SalesHistory)
    if start_date is not None:
        stmt = stmt.where(SalesHistory.sale_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(SalesHistory.sale_date <= end_date)
    if product_id is not None:
        stmt = stmt.where(SalesHistory.product_id == product_id)
    rows = db.execute(stmt.order_by(SalesHistory.sale_date)).scalars().all()
    return [
        SalesRecord(
            product_id=row.product_id,
            sale_date=row.sale_date,
            quantity_sold=row.quantity_sold,
            unit_price=row.unit_price,
        )
        for row in rows
    ]


def replace_future_forecasts(
    db: Session,
    forecasts: Iterable[DemandForecast],
    from_date: date,
) -> list[PredictionResult]:
    """Drop every stored forecast dated ``from_date`` or later, then insert ``forecasts``."""
    try:
        removed = db.execute(
            delete(PredictionResult).where(PredictionResult.predicted_date >= from_date)
        ).rowcount
        rows = [
            PredictionResult(
                product_id=forecast.product_id,
                predicted_date=forecast.target_date,
                predicted_demand=float(forecast.predicted_demand),
                confidence=float(forecast.confidence),
                abc_category=forecast.tier,
            )
            for forecast in forecasts
        ]
        db.add_all(rows)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Replaced %s stored forecast(s) from %s with %d new row(s).",
        removed,
        from_date,
        len(rows),
    )
    return rows


__all__ = [
    "load_product_snapshots",
    "load_sales_records",
    "replace_future_forecasts",
    "to_snapshot",
]
