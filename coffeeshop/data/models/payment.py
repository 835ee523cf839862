from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from coffeeshop.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)

    # ORDER-<order_id>-<epoch ms>, to samo id widzi Midtrans
    transaction_id = Column(String, nullable=False, unique=True, index=True)
    payment_type = Column(String, nullable=False, default="pending")
    gross_amount = Column(Numeric(12, 2), nullable=False)
    status_code = Column(String, nullable=False)
    transaction_status = Column(String, nullable=True)  # ostatni zastosowany status z bramki
    fraud_status = Column(String, nullable=True)
    transaction_time = Column(DateTime(timezone=True), nullable=False, default=_now)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    order = relationship("OrderModel", back_populates="payment")
