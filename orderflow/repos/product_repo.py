# orderflow/repos/product_repo.py
from typing import Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from orderflow.data.models.product import ProductModel, ProductVariantModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: str) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids: Iterable[str]) -> List[ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return []
        return list(
            self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars().all()
        )

    def existing_ids(self, product_ids: Iterable[str]) -> Set[str]:
        ids = list(set(product_ids))
        if not ids:
            return set()
        return set(self.db.execute(select(ProductModel.id).where(ProductModel.id.in_(ids))).scalars().all())

    def find_variant(
        self, product_id: str, size: Optional[str], color: Optional[str]
    ) -> ProductVariantModel | None:
        # exact match on both selectors, an absent selector matches NULL only
        stmt = select(ProductVariantModel).where(ProductVariantModel.product_id == product_id)
        stmt = stmt.where(
            ProductVariantModel.size.is_(None) if size is None else ProductVariantModel.size == size
        )
        stmt = stmt.where(
            ProductVariantModel.color.is_(None) if color is None else ProductVariantModel.color == color
        )
        return self.db.execute(stmt).scalars().first()

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
