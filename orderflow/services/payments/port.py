"""Payment provider ports.

Two shapes of provider are supported:
- HostedCheckoutGateway: the customer pays on the provider's page and the
  result arrives later as a signed webhook (Stripe Checkout).
- TwoStepGateway: we open a provider order, the customer approves it, and a
  second call captures the funds (PayPal).

Adapters never touch the database; the payment services own that.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CheckoutLine:
    name: str
    unit_amount: Decimal
    quantity: int
    description: Optional[str] = None


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


@dataclass(frozen=True)
class AmountBreakdown:
    """Money sent to a two-step provider. ``item_total`` excludes tax."""

    currency: str
    item_total: Decimal
    shipping: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class ProviderOrder:
    id: str
    approval_url: str
    status: str = "CREATED"


@dataclass(frozen=True)
class CaptureResult:
    id: str
    status: str
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    payer_email: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status == "COMPLETED"


class HostedCheckoutGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        lines: List[CheckoutLine],
        currency: str,
        metadata: Dict[str, str],
        customer_email: Optional[str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Open a hosted payment page; ``metadata`` comes back verbatim in the webhook."""
        ...

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Check the signature over the raw body and return the decoded event.

        Raises SignatureError when the payload cannot be trusted.
        """
        ...


class TwoStepGateway(ABC):
    @abstractmethod
    def create_order(
        self,
        amount: AmountBreakdown,
        reference: Optional[str],
        return_url: str,
        cancel_url: str,
    ) -> ProviderOrder:
        ...

    @abstractmethod
    def capture_order(self, provider_order_id: str) -> CaptureResult:
        """Capture an approved order. Raises ValidationError for ids the provider does not know."""
        ...
