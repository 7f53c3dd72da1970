# orderflow/data/seed.py
from decimal import Decimal

from orderflow.data.database import SessionLocal
from orderflow.data.models import DiscountCodeModel, ProductModel, ProductVariantModel
from orderflow.domain.enums import DiscountType
from orderflow.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    # id, name, price, category, quantity, variants (size, color, quantity)
    ("void-tee", "Void Tee", "50.00", "tops", 20, [("M", "black", 10), ("L", "black", 10)]),
    ("void-cargo", "Void Cargo Pants", "120.00", "bottoms", 8, [("32", "olive", 4), ("34", "olive", 4)]),
    ("void-runner", "Void Runner", "180.00", "footwear", 6, [("42", "white", 3), ("43", "white", 3)]),
    ("void-cap", "Void Cap", "35.00", "accessories", 15, []),
]


def seed():
    db = SessionLocal()
    try:
        # only seed an empty catalogue
        if db.query(ProductModel).first():
            return

        for pid, name, price, category, quantity, variants in PRODUCTS:
            product = ProductModel(
                id=pid,
                name=name,
                price=Decimal(price),
                category=category,
                quantity=quantity,
                in_stock=quantity > 0,
            )
            product.variants = [
                ProductVariantModel(size=size, color=color, quantity=q, in_stock=q > 0)
                for size, color, q in variants
            ]
            db.add(product)

        db.add(
            DiscountCodeModel(
                code="SAVE10",
                type=DiscountType.PERCENTAGE.value,
                value=Decimal("10"),
                min_purchase=Decimal("50"),
                usage_limit=100,
            )
        )
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products and discount SAVE10")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
