from sqlalchemy import Column, Date, Float, ForeignKey, Index, Integer
from sqlalchemy.orm import relationship

from app.database.base import Base


class SalesHistory(Base):
    __tablename__ = "sales_history"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    sale_date = Column(Date, nullable=False)
    quantity_sold = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)

    product = relationship("Product", back_populates="sales")

    __table_args__ = (
        Index("idx_sales_history_product_date", "product_id", "sale_date"),
    )

    @property
    def total_revenue(self) -> float:
        return float(self.quantity_sold or 0) * float(self.unit_price or 0)


__all__ = ["SalesHistory"]
