"""In-process payment provider for development and tests.

Implements both provider shapes without any network calls. Webhooks are
signed with an HMAC over the raw body so the verification path is still
exercised; tests can build a valid header with ``sign()``.
"""

import hashlib
import hmac
import json
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from orderflow.domain.errors import SignatureError, ValidationError
from orderflow.services.payments.port import (
    AmountBreakdown,
    CaptureResult,
    CheckoutLine,
    CheckoutSession,
    HostedCheckoutGateway,
    ProviderOrder,
    TwoStepGateway,
)


class FakeGateway(HostedCheckoutGateway, TwoStepGateway):
    def __init__(self, webhook_secret: str = "whsec_fake") -> None:
        self.webhook_secret = webhook_secret
        self.capture_status: str = "COMPLETED"
        self.orders: Dict[str, AmountBreakdown] = {}
        self.captured: Dict[str, CaptureResult] = {}
        self.calls: list[dict] = []

    def configure(self, capture_status: str = "COMPLETED") -> None:
        self.capture_status = capture_status

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    # hosted checkout
    def create_checkout_session(
        self,
        lines: List[CheckoutLine],
        currency: str,
        metadata: Dict[str, str],
        customer_email: Optional[str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        session_id = f"cs_fake_{uuid4().hex[:12]}"
        self.calls.append({"method": "create_checkout_session", "id": session_id, "metadata": metadata})
        return CheckoutSession(id=session_id, url=f"https://checkout.fake/{session_id}")

    def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
        if not hmac.compare_digest(self.sign(payload), signature or ""):
            raise SignatureError("No signatures found matching the expected signature for payload")
        try:
            return json.loads(payload)
        except ValueError as e:
            raise SignatureError(f"Invalid payload: {e}") from e

    # two step
    def create_order(
        self,
        amount: AmountBreakdown,
        reference: Optional[str],
        return_url: str,
        cancel_url: str,
    ) -> ProviderOrder:
        order_id = f"FAKE-{uuid4().hex[:17].upper()}"
        self.orders[order_id] = amount
        self.calls.append({"method": "create_order", "id": order_id, "total": amount.total})
        return ProviderOrder(id=order_id, approval_url=f"https://paypal.fake/checkoutnow?token={order_id}")

    def capture_order(self, provider_order_id: str) -> CaptureResult:
        self.calls.append({"method": "capture_order", "id": provider_order_id})
        if provider_order_id in self.captured:
            return self.captured[provider_order_id]

        amount = self.orders.get(provider_order_id)
        if amount is None:
            raise ValidationError(f"Unknown payment order {provider_order_id}")

        result = CaptureResult(
            id=provider_order_id,
            status=self.capture_status,
            amount=Decimal(amount.total),
            currency=amount.currency,
        )
        if result.completed:
            self.captured[provider_order_id] = result
        return result
