from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from orderflow.data.database import Base
from orderflow.domain.enums import AccountKind


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default="customer")

    # guest rows are owner references only and never hold a password
    account_kind = Column(String(20), nullable=False, default=AccountKind.GUEST.value)
    password_hash = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    addresses = relationship("AddressModel", back_populates="user")
