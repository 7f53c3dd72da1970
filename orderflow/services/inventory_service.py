# orderflow/services/inventory_service.py
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from orderflow.domain.errors import BestEffortFailure, ValidationError
from orderflow.domain.events import LineItem
from orderflow.repos.product_repo import ProductRepo
from orderflow.utils.logging import get_logger

logger = get_logger(__name__)


def _selector(value: Optional[str]) -> Optional[str]:
    # "" from the storefront means "not chosen"
    return value or None


def _decrement(entity, ordered: int) -> int:
    new_quantity = max(0, (entity.quantity or 0) - ordered)
    entity.quantity = new_quantity
    entity.in_stock = new_quantity > 0
    return new_quantity


class InventoryService:
    """
    Stock bookkeeping for committed orders.

    Decrements are read-modify-write per item with a floor at zero. Every
    item is committed on its own so one bad line cannot undo the others or
    the order itself.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def adjust_item(self, item: LineItem) -> Optional[int]:
        """Decrement one line; returns the new product quantity or None when the product is gone."""
        if not item.product_id:
            return None

        product = self.repo.get_product(item.product_id)
        if not product:
            logger.warning(f"Inventory: product {item.product_id} not found, skipping")
            return None

        new_quantity = _decrement(product, item.quantity)

        size, color = _selector(item.size), _selector(item.color)
        if size is not None or color is not None:
            variant = self.repo.find_variant(product.id, size, color)
            if variant:
                _decrement(variant, item.quantity)
            else:
                logger.warning(
                    f"Inventory: no variant size={size} color={color} for product {product.id}"
                )

        self.repo.commit()
        return new_quantity

    def adjust_for_order(self, order_number: str, items: Iterable[LineItem]) -> List[BestEffortFailure]:
        failures = []
        for item in items:
            try:
                new_quantity = self.adjust_item(item)
                if new_quantity is not None:
                    logger.info(
                        f"Inventory: {item.product_id} -{item.quantity} -> {new_quantity} (order {order_number})"
                    )
            except Exception as e:
                self.repo.rollback()
                failure = BestEffortFailure(f"inventory[{item.product_id}]", order_number, e)
                logger.error(failure.message)
                failures.append(failure)
        return failures

    def check_availability(self, items: Iterable[LineItem]) -> None:
        """Pre-payment sanity check; raises ValidationError for unknown or short products."""
        items = list(items)
        products = {p.id: p for p in self.repo.get_products(i.product_id for i in items if i.product_id)}
        for item in items:
            product = products.get(item.product_id)
            if not product:
                raise ValidationError(f"Product {item.product_id} not found")
            if not product.in_stock or product.quantity < item.quantity:
                raise ValidationError(
                    f"Insufficient stock for {product.name}. Available: {product.quantity}, requested: {item.quantity}"
                )
