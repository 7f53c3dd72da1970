# orderflow/services/simulated_payment_service.py
"""Order paths that involve no payment provider: the test payment and direct creation."""
import time
from dataclasses import replace
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from orderflow.data.models.product import ProductModel
from orderflow.domain.errors import ValidationError
from orderflow.domain.events import DirectOrder, Purchaser, SimulatedPayment
from orderflow.domain.schemas import OrderRequest
from orderflow.repos.product_repo import ProductRepo
from orderflow.services.cart_mapping import line_items, shipping_address
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.order_numbers import generate_order_number, is_order_number
from orderflow.services.order_service import OrderService
from orderflow.services.pricing_service import compute_subtotal, money
from orderflow.utils.logging import get_logger
from orderflow.utils.settings import PLACEHOLDER_PRODUCT_ID, STORE_CURRENCY

logger = get_logger(__name__)


class SimulatedPaymentService:
    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationService] = None,
        lock_service: Optional[LockService] = None,
    ):
        self.products = ProductRepo(db)
        self.orders = OrderService(db, notifier=notifier, lock_service=lock_service)

    def _order_number(self, requested: Optional[str]):
        if requested:
            if not is_order_number(requested):
                raise ValidationError("Invalid order number")
            return requested, True
        return generate_order_number(), False

    def _placeholder(self) -> str:
        # stands in for products missing from the catalogue (demo/test data)
        if not self.products.get_product(PLACEHOLDER_PRODUCT_ID):
            self.products.add_product(
                ProductModel(
                    id=PLACEHOLDER_PRODUCT_ID,
                    name="Placeholder product",
                    price=0,
                    category="accessories",
                    quantity=0,
                    in_stock=False,
                )
            )
            self.products.commit()
            logger.info(f"Created placeholder product {PLACEHOLDER_PRODUCT_ID}")
        return PLACEHOLDER_PRODUCT_ID

    def pay(self, payload: OrderRequest, purchaser: Purchaser) -> Dict[str, Any]:
        logger.info("[TEST PAYMENT] processing simulated payment")
        items = line_items(payload.items)
        address = shipping_address(payload.shipping_address, require_phone=True)

        subtotal = money(payload.subtotal) if payload.subtotal is not None else compute_subtotal(items)
        shipping = money(payload.shipping)
        discount = money(payload.discount)
        total = money(payload.total) if payload.total is not None else subtotal - discount + shipping
        if total < 0:
            raise ValidationError("Invalid total amount")

        order_number, fixed = self._order_number(payload.order_number)

        known = self.products.existing_ids(i.product_id for i in items)
        if any(i.product_id not in known for i in items):
            placeholder = self._placeholder()
            items = tuple(
                i if i.product_id in known else replace(i, product_id=placeholder)
                for i in items
            )

        reference = f"test_{time.time_ns() // 1_000_000}"
        result = self.orders.commit(
            SimulatedPayment(
                order_number=order_number,
                order_number_fixed=fixed,
                items=items,
                shipping_address=address,
                subtotal=subtotal,
                shipping=shipping,
                tax=money(payload.tax),
                discount=discount,
                discount_code=payload.discount_code or None,
                provider_reference=reference,
                provider_amount=total,
                purchaser=purchaser,
                currency=STORE_CURRENCY,
                shipping_method=payload.shipping_method,
            )
        )
        return {
            "success": True,
            "payment_intent_id": result.order.payment_reference,
            "order": result.order,
            "message": "Test payment successful. Order created.",
        }

    def place_direct_order(self, payload: OrderRequest, purchaser: Purchaser) -> Dict[str, Any]:
        logger.info("[ORDERS CREATE] direct order")
        if not payload.items or payload.shipping_address is None or not payload.payment_method or payload.total is None:
            raise ValidationError("Missing required fields")

        items = line_items(payload.items)
        address = shipping_address(payload.shipping_address)
        order_number, fixed = self._order_number(payload.order_number)
        subtotal = money(payload.subtotal) if payload.subtotal is not None else compute_subtotal(items)

        result = self.orders.commit(
            DirectOrder(
                order_number=order_number,
                order_number_fixed=fixed,
                items=items,
                shipping_address=address,
                subtotal=subtotal,
                shipping=money(payload.shipping),
                tax=money(payload.tax),
                discount=money(payload.discount),
                discount_code=payload.discount_code or None,
                provider_reference=payload.payment_intent_id,
                provider_amount=money(payload.total),
                purchaser=purchaser,
                currency=STORE_CURRENCY,
                shipping_method=payload.shipping_method,
                declared_method=payload.payment_method,
            )
        )
        return {"success": True, "order": result.order}
