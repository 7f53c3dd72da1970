from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime

from orderflow.data.database import Base
from orderflow.domain.enums import DiscountType


class DiscountCodeModel(Base):
    __tablename__ = "discount_codes"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True, index=True)

    type = Column(String(20), nullable=False, default=DiscountType.PERCENTAGE.value)
    value = Column(Numeric(10, 2), nullable=False)

    min_purchase = Column(Numeric(10, 2), nullable=True)
    max_discount = Column(Numeric(10, 2), nullable=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
