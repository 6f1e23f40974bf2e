from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.constants import (
    STOCK_STATUS_HIGH,
    STOCK_STATUS_LOW,
    STOCK_STATUS_MEDIUM,
    STOCK_STATUS_OUT,
)
from app.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)

    name = Column(String(100), nullable=False)
    sku = Column(String(50), nullable=False)
    category = Column(String(50), nullable=False)

    unit_price = Column(Float, nullable=False, default=0)
    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    sales = relationship("SalesHistory", back_populates="product", cascade="all, delete-orphan")
    predictions = relationship("PredictionResult", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("sku", name="uq_products_sku"),
        Index("idx_products_category", "category"),
    )

    @property
    def is_low_stock(self) -> bool:
        return (self.current_stock or 0) <= (self.minimum_stock or 0)

    @property
    def stock_status(self) -> str:
        return stock_status(self.current_stock or 0, self.minimum_stock or 0)


def stock_status(current_stock: int, minimum_stock: int) -> str:
    if current_stock == 0:
        return STOCK_STATUS_OUT
    if current_stock <= minimum_stock:
        return STOCK_STATUS_LOW
    if current_stock <= minimum_stock * 2:
        return STOCK_STATUS_MEDIUM
    return STOCK_STATUS_HIGH


__all__ = ["Product", "stock_status"]
