# orderflow/domain/events.py
"""
Canonical "confirmed payment" events.

Each payment path builds exactly one of the PaymentConfirmation variants below
from its provider-specific payload and hands it to OrderService.commit(),
the only code allowed to write an order. The variant decides the payment
method tag and whether the order starts paid (``processing``) or ``pending``.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, Optional, Tuple

from orderflow.domain.enums import OrderStatus, PaymentMethod

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class LineItem:
    product_id: Optional[str]
    name: str
    price: Decimal
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    category: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class ShippingAddress:
    email: str
    name: str
    street: str
    city: str
    postal_code: str
    country: str
    apartment: Optional[str] = None
    province: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class Purchaser:
    """Identity forwarded by the session layer, if any."""

    user_id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = "customer"

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None or bool(self.email)

    @property
    def is_admin(self) -> bool:
        return self.authenticated and self.role == "admin"


@dataclass(frozen=True)
class PaymentConfirmation:
    order_number: str
    items: Tuple[LineItem, ...]
    shipping_address: ShippingAddress
    subtotal: Decimal
    shipping: Decimal = ZERO
    tax: Decimal = ZERO
    discount: Decimal = ZERO
    discount_code: Optional[str] = None
    provider_reference: Optional[str] = None
    purchaser: Purchaser = field(default_factory=Purchaser)
    currency: str = "EUR"
    # amount the provider reports as charged, kept for reconciliation logs
    provider_amount: Optional[Decimal] = None
    shipping_method: Optional[str] = None
    # False when the server generated the number and may pick another one
    order_number_fixed: bool = True

    method: ClassVar[PaymentMethod]
    paid: ClassVar[bool] = False

    @property
    def payment_method(self) -> str:
        return self.method.value

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount + self.shipping

    @property
    def initial_status(self) -> OrderStatus:
        return OrderStatus.PROCESSING if self.paid else OrderStatus.PENDING


@dataclass(frozen=True)
class HostedCheckoutConfirmation(PaymentConfirmation):
    """Asynchronous provider webhook (Stripe Checkout)."""

    method: ClassVar[PaymentMethod] = PaymentMethod.STRIPE
    paid: ClassVar[bool] = True


@dataclass(frozen=True)
class CapturedPayment(PaymentConfirmation):
    """Second step of the create/capture redirect flow (PayPal)."""

    method: ClassVar[PaymentMethod] = PaymentMethod.PAYPAL
    paid: ClassVar[bool] = True


@dataclass(frozen=True)
class SimulatedPayment(PaymentConfirmation):
    """Same-request test payment, no provider involved."""

    method: ClassVar[PaymentMethod] = PaymentMethod.TEST
    paid: ClassVar[bool] = False


@dataclass(frozen=True)
class DirectOrder(PaymentConfirmation):
    """Order placed by the storefront with a caller-declared payment method."""

    declared_method: str = PaymentMethod.TEST.value
    paid: ClassVar[bool] = False

    @property
    def payment_method(self) -> str:
        return self.declared_method
