# orderflow/services/capture_service.py
"""
Two-step provider path (PayPal): create, customer approval, capture.

create_order() only talks to the provider. capture() validates the cart
first, so funds are never captured for a cart we could not turn into an
order, then captures and commits.
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from orderflow.domain.enums import PaymentMethod
from orderflow.domain.errors import ValidationError
from orderflow.domain.events import CapturedPayment, Purchaser
from orderflow.domain.schemas import CaptureRequest, OrderRequest
from orderflow.repos.order_repo import OrderRepo
from orderflow.services.cart_mapping import line_items, shipping_address
from orderflow.services.inventory_service import InventoryService
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.order_numbers import generate_order_number, is_order_number
from orderflow.services.order_service import OrderService
from orderflow.services.payments.port import AmountBreakdown, TwoStepGateway
from orderflow.services.pricing_service import compute_subtotal, money
from orderflow.utils.logging import get_logger
from orderflow.utils.settings import SITE_URL, STORE_CURRENCY

logger = get_logger(__name__)


class CaptureService:
    def __init__(
        self,
        db: Session,
        gateway: TwoStepGateway,
        notifier: Optional[NotificationService] = None,
        lock_service: Optional[LockService] = None,
    ):
        self.repo = OrderRepo(db)
        self.inventory = InventoryService(db)
        self.gateway = gateway
        self.orders = OrderService(db, notifier=notifier, lock_service=lock_service)

    # step 1
    def create_order(self, payload: OrderRequest) -> Dict[str, str]:
        logger.info("[PAYPAL CREATE] opening provider order")
        items = line_items(payload.items)
        if payload.shipping_address is None:
            raise ValidationError("Missing shipping address")

        self.inventory.check_availability(items)

        subtotal = money(payload.subtotal) if payload.subtotal is not None else compute_subtotal(items)
        tax = money(payload.tax)
        shipping = money(payload.shipping)
        discount = max(money(payload.discount), money(0))
        total = subtotal - discount + shipping
        if payload.total is not None and money(payload.total) != total:
            logger.warning(f"[PAYPAL CREATE] client total {payload.total} differs from computed {total}")
        if total <= 0:
            raise ValidationError("Invalid total")

        breakdown = AmountBreakdown(
            currency=STORE_CURRENCY,
            item_total=max(subtotal - tax, money(0)),
            shipping=shipping,
            tax=tax,
            discount=discount,
            total=total,
        )
        provider_order = self.gateway.create_order(
            breakdown,
            reference=payload.order_number,
            return_url=f"{SITE_URL}/paypal/return",
            cancel_url=f"{SITE_URL}/checkout?canceled=1",
        )
        logger.info(f"[PAYPAL CREATE] provider order {provider_order.id} for {total} {STORE_CURRENCY}")
        return {"id": provider_order.id, "approval_url": provider_order.approval_url}

    # step 2
    def capture(self, payload: CaptureRequest, purchaser: Purchaser) -> Dict[str, Any]:
        provider_order_id = (payload.provider_order_id or "").strip()
        if not provider_order_id:
            raise ValidationError("Missing orderID")

        existing = self.repo.get_by_reference(PaymentMethod.PAYPAL.value, provider_order_id)
        if existing:
            logger.info(f"[PAYPAL CAPTURE] {provider_order_id} already recorded as {existing.order_number}")
            return self._response(existing, provider_order_id)

        cart = payload.cart
        if cart is None:
            raise ValidationError("Missing cart data for local order creation")
        items = line_items(cart.items)
        address = shipping_address(cart.shipping_address)

        if cart.order_number and not is_order_number(cart.order_number):
            raise ValidationError("Invalid order number")
        if cart.order_number:
            taken = self.repo.get_by_number(cart.order_number)
            if taken and taken.payment_reference != provider_order_id:
                logger.warning(
                    f"[PAYPAL CAPTURE] {cart.order_number} already belongs to payment "
                    f"{taken.payment_reference}, refusing to capture {provider_order_id}"
                )
                raise ValidationError("Order number is already in use")

        discount = money(cart.discount)
        if discount < 0:
            raise ValidationError("Invalid discount amount")

        capture = self.gateway.capture_order(provider_order_id)
        if not capture.completed:
            raise ValidationError(f"Payment not completed (status {capture.status})")

        confirmation = CapturedPayment(
            order_number=cart.order_number or generate_order_number(),
            order_number_fixed=bool(cart.order_number),
            items=items,
            shipping_address=address,
            subtotal=money(cart.subtotal) if cart.subtotal is not None else compute_subtotal(items),
            shipping=money(cart.shipping),
            tax=money(cart.tax),
            discount=discount,
            discount_code=cart.discount_code or None,
            provider_reference=provider_order_id,
            provider_amount=capture.amount,
            currency=(capture.currency or STORE_CURRENCY).upper(),
            purchaser=purchaser,
            shipping_method=cart.shipping_method,
        )
        result = self.orders.commit(confirmation)
        return self._response(result.order, provider_order_id)

    @staticmethod
    def _response(order, provider_order_id: str) -> Dict[str, Any]:
        return {
            "success": True,
            "order_number": order.order_number,
            "payment_intent_id": order.payment_reference or provider_order_id,
            "total": order.total,
        }
