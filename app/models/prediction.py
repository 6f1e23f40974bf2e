from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database.base import Base


class PredictionResult(Base):
    __tablename__ = "prediction_results"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    predicted_date = Column(Date, nullable=False)
    predicted_demand = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False)
    abc_category = Column(String(10), nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    product = relationship("Product", back_populates="predictions")

    __table_args__ = (
        UniqueConstraint("product_id", "predicted_date", name="uq_prediction_product_date"),
        Index("idx_prediction_date", "predicted_date"),
    )


__all__ = ["PredictionResult"]
