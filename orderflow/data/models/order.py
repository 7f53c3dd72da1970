from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from orderflow.data.database import Base
from orderflow.domain.enums import OrderStatus


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    # idempotency key of the whole checkout; the unique index is the real guard
    order_number = Column(String(40), nullable=False, unique=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    customer_email = Column(String(255), nullable=True)
    customer_name = Column(String(200), nullable=True)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)

    subtotal = Column(Numeric(10, 2), nullable=False)
    shipping = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")

    payment_method = Column(String(20), nullable=False)
    payment_reference = Column(String(255), nullable=True, index=True)
    discount_code = Column(String(50), nullable=True)

    shipping_method = Column(String(100), nullable=True)
    tracking_number = Column(String(100), nullable=True)
    shipping_address_id = Column(Integer, ForeignKey("addresses.id"), nullable=True)

    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
    )
    shipping_address = relationship("AddressModel")
