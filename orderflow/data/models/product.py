from sqlalchemy import Column, Integer, ForeignKey, String, Numeric, Boolean
from sqlalchemy.orm import relationship

from orderflow.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(50), nullable=False, default="accessories")

    # quantity >= 0 and in_stock == (quantity > 0)
    quantity = Column(Integer, nullable=False, default=0)
    in_stock = Column(Boolean, nullable=False, default=False)

    variants = relationship(
        "ProductVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
    )


class ProductVariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    size = Column(String(20), nullable=True)
    color = Column(String(50), nullable=True)

    quantity = Column(Integer, nullable=False, default=0)
    in_stock = Column(Boolean, nullable=False, default=False)

    product = relationship("ProductModel", back_populates="variants")
