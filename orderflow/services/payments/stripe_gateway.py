"""Stripe Checkout adapter (hosted checkout + signed webhooks)."""

import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

import stripe

from orderflow.domain.errors import ConfigurationError, ProviderError, SignatureError
from orderflow.services.payments.port import CheckoutLine, CheckoutSession, HostedCheckoutGateway
from orderflow.utils.logging import get_logger
from orderflow.utils.settings import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, STRIPE_WEBHOOK_TOLERANCE

logger = get_logger(__name__)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway(HostedCheckoutGateway):
    def __init__(
        self,
        api_key: str = STRIPE_SECRET_KEY,
        webhook_secret: str = STRIPE_WEBHOOK_SECRET,
        tolerance: int = STRIPE_WEBHOOK_TOLERANCE,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def create_checkout_session(
        self,
        lines: List[CheckoutLine],
        currency: str,
        metadata: Dict[str, str],
        customer_email: Optional[str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        if not self.api_key:
            raise ConfigurationError("Stripe secret key is not configured")

        line_items = [
            {
                "quantity": line.quantity,
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {"name": line.name, **({"description": line.description} if line.description else {})},
                    "unit_amount": to_minor_units(line.unit_amount),
                },
            }
            for line in lines
        ]

        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                payment_method_types=["card"],
                customer_email=customer_email,
                success_url=success_url,
                cancel_url=cancel_url,
                line_items=line_items,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"[STRIPE] session create failed: {e}")
            raise ProviderError(f"Failed to create checkout session: {e.user_message or e}") from e

        return CheckoutSession(id=session.id, url=session.url)

    def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
        if not self.webhook_secret:
            raise ConfigurationError("Stripe webhook secret is not configured")

        try:
            body = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        except UnicodeDecodeError as e:
            logger.warning(f"[STRIPE WEBHOOK] payload is not valid UTF-8: {e}")
            raise SignatureError("Webhook Error: payload is not valid UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"[STRIPE WEBHOOK] signature verification failed: {e}")
            raise SignatureError(f"Webhook Error: {e}") from e

        try:
            return json.loads(body)
        except ValueError as e:
            raise SignatureError(f"Webhook Error: invalid payload ({e})") from e
