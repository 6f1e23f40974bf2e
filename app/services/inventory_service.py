from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.constants import DEFAULT_CATEGORIES, LOW_STOCK_ALERT_EVENT, STOCK_UPDATED_EVENT
from app.core.dates import utc_now, utc_today
from app.models.product import Product
from app.models.sales import SalesHistory
from app.services.notification_service import StockEventBroadcaster

logger = logging.getLogger(__name__)

_TOP_PRODUCTS_LIMIT = 10


class DuplicateSkuError(ValueError):
    pass


def _filter_products(stmt, category, low_stock):
    if category:
        stmt = stmt.where(func.lower(Product.category) == category.strip().lower())
    if low_stock:
        stmt = stmt.where(Product.current_stock <= Product.minimum_stock)
    return stmt


def list_products(
    db: Session,
    category: Optional[str] = None,
    low_stock: bool = False,
    offset: int = 0,
    limit: Optional[int] = None,
) -> list[Product]:
    """Products ordered by id; ``low_stock`` keeps those at or below their minimum."""
    stmt = _filter_products(select(Product), category, low_stock).order_by(Product.id)
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())


def count_products(db: Session, category: Optional[str] = None, low_stock: bool = False) -> int:
    stmt = _filter_products(select(func.count(Product.id)), category, low_stock)
    return int(db.execute(stmt).scalar_one())


def list_categories(db: Session) -> list[str]:
    categories = db.execute(select(Product.category).distinct().order_by(Product.category)).scalars().all()
    return list(categories) or list(DEFAULT_CATEGORIES)


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.get(Product, product_id)


def _commit_product(db: Session, product: Product) -> Product:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateSkuError("SKU {} already exists".format(product.sku)) from exc
    db.refresh(product)
    return product


def create_product(db: Session, **fields) -> Product:
    product = Product(**fields)
    db.add(product)
    return _commit_product(db, product)


def update_product(db: Session, product: Product, **fields) -> Product:
    for name, value in fields.items():
        if value is not None:
            setattr(product, name, value)
    product.updated_at = utc_now()
    return _commit_product(db, product)


def delete_product(db: Session, product: Product) -> None:
    db.delete(product)
    db.commit()


def _stock_event_payload(product: Product, old_stock: int, new_stock: int, reason: str) -> dict:
    return {
        "product_id": product.id,
        "product_name": product.name,
        "old_stock": old_stock,
        "new_stock": new_stock,
        "is_low_stock": new_stock <= product.minimum_stock,
        "reason": reason,
        "timestamp": utc_now(),
    }


def _low_stock_alert_payload(product: Product) -> dict:
    return {
        "product_id": product.id,
        "product_name": product.name,
        "sku": product.sku,
        "current_stock": product.current_stock,
        "minimum_stock": product.minimum_stock,
        "message": "Low stock alert: {} has only {} units remaining (minimum: {})".format(
            product.name,
            product.current_stock,
            product.minimum_stock,
        ),
        "severity": "Critical" if product.current_stock == 0 else "Warning",
        "timestamp": utc_now(),
    }


def send_low_stock_alert(product: Product, broadcaster: Optional[StockEventBroadcaster]) -> None:
    logger.warning(
        "Low stock for product %s (%s): %s <= %s",
        product.id,
        product.name,
        product.current_stock,
        product.minimum_stock,
        extra={"product_id": product.id, "event": LOW_STOCK_ALERT_EVENT},
    )
    if broadcaster is not None:
        broadcaster.publish(LOW_STOCK_ALERT_EVENT, _low_stock_alert_payload(product))


def update_stock(
    db: Session,
    product_id: int,
    new_stock: int,
    reason: str = "",
    broadcaster: Optional[StockEventBroadcaster] = None,
) -> Optional[dict]:
    """Persist a new stock level and return the stock event payload (None if unknown)."""
    product = db.get(Product, product_id)
    if product is None:
        logger.warning("Product with ID %s not found", product_id)
        return None

    old_stock = product.current_stock
    product.current_stock = int(new_stock)
    product.updated_at = utc_now()
    db.commit()

    logger.info(
        "Stock updated for product %s from %s to %s (%s)",
        product_id,
        old_stock,
        new_stock,
        reason or "no reason given",
    )
    event = _stock_event_payload(product, old_stock, product.current_stock, reason)
    if broadcaster is not None:
        broadcaster.publish(STOCK_UPDATED_EVENT, event)
    if event["is_low_stock"]:
        send_low_stock_alert(product, broadcaster)
    return event


def adjust_stock(
    db: Session,
    product_id: int,
    adjustment: int,
    reason: str = "",
    broadcaster: Optional[StockEventBroadcaster] = None,
) -> Optional[dict]:
    product = db.get(Product, product_id)
    if product is None:
        return None
    new_stock = max(0, product.current_stock + int(adjustment))
    return update_stock(db, product_id, new_stock, reason, broadcaster)


def set_minimum_stock(
    db: Session,
    product_id: int,
    minimum_stock: int,
    broadcaster: Optional[StockEventBroadcaster] = None,
) -> Optional[Product]:
    product = db.get(Product, product_id)
    if product is None:
        return None
    product.minimum_stock = int(minimum_stock)
    product.updated_at = utc_now()
    db.commit()
    if product.is_low_stock:
        send_low_stock_alert(product, broadcaster)
    return product


def low_stock_products(db: Session) -> list[Product]:
    return list(
        db.execute(
            select(Product)
            .where(Product.current_stock <= Product.minimum_stock)
            .order_by(Product.current_stock, Product.id)
        )
        .scalars()
        .all()
    )


def dashboard(db: Session, today: Optional[date] = None) -> dict:
    settings = get_settings()
    today = today or utc_today()
    window_start = today - timedelta(days=settings.DASHBOARD_WINDOW_DAYS)

    products = list(db.execute(select(Product)).scalars().all())
    category_stock = defaultdict(lambda: {"total_products": 0, "low_stock_count": 0, "total_value": 0.0})
    for product in products:
        entry = category_stock[product.category]
        entry["total_products"] += 1
        entry["low_stock_count"] += 1 if product.is_low_stock else 0
        entry["total_value"] += product.current_stock * product.unit_price

    sales_rows = db.execute(
        select(SalesHistory, Product.name)
        .join(Product, Product.id == SalesHistory.product_id)
        .where(SalesHistory.sale_date >= window_start)
    ).all()
    daily_revenue = defaultdict(float)
    top_products = defaultdict(lambda: {"total_sold": 0, "revenue": 0.0})
    for sale, product_name in sales_rows:
        daily_revenue[sale.sale_date] += sale.total_revenue
        top_products[product_name]["total_sold"] += sale.quantity_sold
        top_products[product_name]["revenue"] += sale.total_revenue

    return {
        "total_products": len(products),
        "low_stock_alerts": sum(1 for product in products if product.is_low_stock),
        "total_inventory_value": sum(p.current_stock * p.unit_price for p in products),
        "monthly_revenue": sum(daily_revenue.values()),
        "category_stock": [
            dict(category=category, **values) for category, values in sorted(category_stock.items())
        ],
        "revenue_data": [
            {"date": day, "revenue": revenue} for day, revenue in sorted(daily_revenue.items())
        ],
        "top_products": sorted(
            (dict(name=name, **values) for name, values in top_products.items()),
            key=lambda entry: entry["revenue"],
            reverse=True,
        )[:_TOP_PRODUCTS_LIMIT],
    }


def inventory_report(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    end_date = end_date or utc_today()
    start_date = start_date or end_date - timedelta(days=get_settings().DASHBOARD_WINDOW_DAYS)
    if end_date < start_date:
        raise ValueError("end_date must not be before start_date")

    products = list(db.execute(select(Product)).scalars().all())
    sales = list(
        db.execute(
            select(SalesHistory).where(
                SalesHistory.sale_date >= start_date,
                SalesHistory.sale_date <= end_date,
            )
        )
        .scalars()
        .all()
    )
    return {
        "generated_at": utc_now(),
        "period_start": start_date,
        "period_end": end_date,
        "total_products": len(products),
        "total_inventory_value": sum(p.current_stock * p.unit_price for p in products),
        "low_stock_products_count": sum(1 for p in products if p.is_low_stock),
        "out_of_stock_products_count": sum(1 for p in products if p.current_stock == 0),
        "total_sales_in_period": sum(sale.total_revenue for sale in sales),
        "total_units_sold_in_period": sum(sale.quantity_sold for sale in sales),
    }


__all__ = [
    "DuplicateSkuError",
    "adjust_stock",
    "count_products",
    "create_product",
    "dashboard",
    "delete_product",
    "get_product",
    "inventory_report",
    "list_categories",
    "list_products",
    "low_stock_products",
    "send_low_stock_alert",
    "set_minimum_stock",
    "update_product",
    "update_stock",
]
