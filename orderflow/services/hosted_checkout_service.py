# orderflow/services/hosted_checkout_service.py
"""
Hosted checkout path (Stripe Checkout).

create_session() prices the cart from stored products and opens a provider
session; nothing is written locally. The order is created only when the
signed ``checkout.session.completed`` webhook arrives, from the metadata bag
we attached to the session.
"""
import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from orderflow.domain.errors import SignatureError, ValidationError
from orderflow.domain.events import ZERO, HostedCheckoutConfirmation, LineItem, Purchaser
from orderflow.domain.schemas import OrderRequest, ShippingAddressIn
from orderflow.repos.product_repo import ProductRepo
from orderflow.services.cart_mapping import line_items, line_items_from_metadata, shipping_address
from orderflow.services.lock_service import LockService
from orderflow.services.notification_service import NotificationService
from orderflow.services.order_numbers import generate_order_number
from orderflow.services.order_service import CommitResult, OrderService
from orderflow.services.payments.port import CheckoutLine, HostedCheckoutGateway
from orderflow.services.pricing_service import compute_subtotal, money
from orderflow.utils.logging import get_logger
from orderflow.utils.settings import SITE_URL, STORE_CURRENCY

logger = get_logger(__name__)

COMPLETED_EVENT = "checkout.session.completed"


def _decimal(value: Any, field: str) -> Decimal:
    if value in (None, ""):
        return ZERO
    try:
        return money(value)
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid {field} in metadata") from e


class HostedCheckoutService:
    def __init__(
        self,
        db: Session,
        gateway: HostedCheckoutGateway,
        notifier: Optional[NotificationService] = None,
        lock_service: Optional[LockService] = None,
    ):
        self.products = ProductRepo(db)
        self.gateway = gateway
        self.orders = OrderService(db, notifier=notifier, lock_service=lock_service)

    def create_session(self, payload: OrderRequest, purchaser: Purchaser) -> Dict[str, str]:
        logger.info("[STRIPE CHECKOUT] creating session")
        requested = line_items(payload.items)
        address = shipping_address(payload.shipping_address, require_phone=True)

        if money(payload.discount) > 0:
            raise ValidationError(
                "Discount codes are not yet supported with Stripe Checkout. "
                "Please remove the discount and try again."
            )

        # price from the catalogue, not from the browser
        products = {p.id: p for p in self.products.get_products(i.product_id for i in requested)}
        priced = []
        for item in requested:
            product = products.get(item.product_id)
            if not product:
                raise ValidationError(f"Product not found: {item.product_id}")
            if not product.in_stock or product.quantity < item.quantity:
                raise ValidationError(f"Product {product.name} is out of stock or insufficient quantity")
            priced.append(
                LineItem(
                    product_id=product.id,
                    name=product.name,
                    price=money(product.price),
                    quantity=item.quantity,
                    size=item.size,
                    color=item.color,
                    category=product.category,
                )
            )

        subtotal = compute_subtotal(priced)
        shipping = money(payload.shipping)
        if subtotal + shipping <= 0:
            raise ValidationError("Order total must be greater than zero")

        lines = [CheckoutLine(name=i.name, unit_amount=i.price, quantity=i.quantity) for i in priced]
        if shipping > 0:
            lines.append(CheckoutLine(name="Shipping", unit_amount=shipping, quantity=1))

        order_number = generate_order_number()
        metadata = {
            "orderNumber": order_number,
            "userId": str(purchaser.user_id) if purchaser.user_id is not None else "",
            "shippingAddress": payload.shipping_address.model_dump_json(by_alias=True, exclude_none=True),
            "items": json.dumps([
                {"id": i.product_id, "name": i.name, "price": str(i.price), "quantity": i.quantity,
                 "size": i.size, "color": i.color}
                for i in priced
            ]),
            "subtotal": str(subtotal),
            "shipping": str(shipping),
            "tax": str(money(payload.tax)),
            "discount": "0.00",
            "discountCode": payload.discount_code or "",
        }

        session = self.gateway.create_checkout_session(
            lines=lines,
            currency=STORE_CURRENCY,
            metadata=metadata,
            customer_email=address.email,
            success_url=f"{SITE_URL}/order-confirmation/{order_number}",
            cancel_url=f"{SITE_URL}/checkout?canceled=1",
        )
        logger.info(f"[STRIPE CHECKOUT] session {session.id} opened for {order_number}")
        return {"url": session.url, "order_number": order_number}

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Optional[CommitResult]:
        """Verify and apply one webhook delivery. Returns None for ignored event types."""
        if not signature:
            raise SignatureError("Missing Stripe-Signature header")

        event = self.gateway.verify_webhook(payload, signature)
        event_type = event.get("type")
        if event_type != COMPLETED_EVENT:
            logger.info(f"[STRIPE WEBHOOK] ignoring event {event_type}")
            return None

        confirmation = self._confirmation(event.get("data", {}).get("object") or {})
        logger.info(f"[STRIPE WEBHOOK] checkout completed for {confirmation.order_number}")
        return self.orders.commit(confirmation)

    def _confirmation(self, session: Dict[str, Any]) -> HostedCheckoutConfirmation:
        metadata = session.get("metadata") or {}
        order_number = metadata.get("orderNumber")
        try:
            raw_items = json.loads(metadata.get("items") or "[]")
            raw_address = json.loads(metadata["shippingAddress"]) if metadata.get("shippingAddress") else None
        except ValueError as e:
            raise ValidationError("Missing required metadata") from e

        if not order_number or not isinstance(raw_items, list) or not raw_items or not raw_address:
            logger.error(
                f"[STRIPE WEBHOOK] missing metadata: order={order_number!r} "
                f"items={len(raw_items) if isinstance(raw_items, list) else 'invalid'} address={bool(raw_address)}"
            )
            raise ValidationError("Missing required metadata")

        items = line_items_from_metadata(raw_items)
        address = shipping_address(ShippingAddressIn.model_validate(raw_address))

        user_id = metadata.get("userId") or None
        purchaser = Purchaser(
            user_id=int(user_id) if user_id and str(user_id).isdigit() else None,
            email=address.email,
            name=address.name,
        )

        amount_total = session.get("amount_total")
        provider_amount = money(Decimal(amount_total) / 100) if amount_total is not None else None

        reference = session.get("payment_intent")
        if isinstance(reference, dict):
            reference = reference.get("id")

        return HostedCheckoutConfirmation(
            order_number=order_number,
            items=items,
            shipping_address=address,
            subtotal=_decimal(metadata.get("subtotal"), "subtotal") or compute_subtotal(items),
            shipping=_decimal(metadata.get("shipping"), "shipping"),
            tax=_decimal(metadata.get("tax"), "tax"),
            discount=_decimal(metadata.get("discount"), "discount"),
            discount_code=metadata.get("discountCode") or None,
            provider_reference=reference or session.get("id"),
            purchaser=purchaser,
            currency=(session.get("currency") or STORE_CURRENCY).upper(),
            provider_amount=provider_amount,
        )
