# orderflow/services/pricing_service.py
"""
Subtotal, discount and VAT arithmetic.

All money is Decimal and rounded half-up to cents at the edges. Prices in
the store already include VAT, so tax is extracted, never added.
"""
from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from orderflow.domain.enums import DiscountType
from orderflow.domain.errors import InvalidDiscount, ValidationError
from orderflow.domain.events import ZERO, LineItem
from orderflow.repos.discount_repo import DiscountRepo
from orderflow.utils.logging import get_logger
from orderflow.utils.settings import VAT_RATE

logger = get_logger(__name__)

CENT = Decimal("0.01")


def money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_subtotal(items: Iterable[LineItem]) -> Decimal:
    """Sum of price x quantity using the caller-supplied live prices."""
    return money(sum((i.line_total for i in items), ZERO))


def extract_vat(subtotal: Decimal, rate: Decimal = VAT_RATE) -> Decimal:
    # 100.00 incl. 21% -> 17.36
    return money(Decimal(subtotal) / (1 + rate) * rate)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class DiscountQuote:
    code: Optional[str]
    type: Optional[str]
    amount: Decimal

    @property
    def applied(self) -> bool:
        return self.code is not None

    def echo(self) -> Optional[dict]:
        if not self.applied:
            return None
        return {"code": self.code, "type": self.type}


NO_DISCOUNT = DiscountQuote(code=None, type=None, amount=ZERO)


class DiscountService:
    def __init__(self, db: Session):
        self.repo = DiscountRepo(db)

    def evaluate(self, code: Optional[str], subtotal: Decimal, now: Optional[datetime] = None) -> DiscountQuote:
        """
        Resolve ``code`` against ``subtotal`` (before shipping).

        An empty code means no discount was requested and yields a zero quote.
        Every unmet condition raises InvalidDiscount with a customer-facing
        message.
        """
        if code is None or not code.strip():
            return NO_DISCOUNT

        normalized = code.strip().upper()
        subtotal = money(subtotal)
        now = now or datetime.now(timezone.utc)

        dc = self.repo.get_by_code(normalized)
        if not dc:
            raise InvalidDiscount("Invalid discount code")

        if not dc.is_active:
            raise InvalidDiscount("This discount code is no longer available")

        if dc.valid_from is not None and now < _aware(dc.valid_from):
            raise InvalidDiscount("This discount code is not yet valid")

        if dc.valid_until is not None:
            # the last day counts in full
            end_of_day = datetime.combine(_aware(dc.valid_until).date(), time.max, tzinfo=timezone.utc)
            if now > end_of_day:
                raise InvalidDiscount("This discount code has expired")

        if dc.usage_limit is not None and dc.used_count >= dc.usage_limit:
            raise InvalidDiscount("This discount code has reached its usage limit")

        if dc.min_purchase is not None and subtotal < dc.min_purchase:
            raise InvalidDiscount(f"Minimum purchase of €{money(dc.min_purchase)} required")

        value = Decimal(dc.value)
        if dc.type == DiscountType.PERCENTAGE.value:
            amount = subtotal * value / 100
            if dc.max_discount is not None:
                amount = min(amount, Decimal(dc.max_discount))
        elif dc.type == DiscountType.FIXED.value:
            amount = min(value, subtotal)
        else:
            raise InvalidDiscount("Invalid discount code")

        quote = DiscountQuote(code=dc.code, type=dc.type, amount=money(amount))
        logger.info(f"Discount {quote.code} resolved to {quote.amount} on subtotal {subtotal}")
        return quote

    def validate(self, code: Optional[str], subtotal: Optional[Decimal]) -> dict:
        """Shape used by the discount validation endpoint: unusable codes are not errors."""
        if not code or not code.strip():
            raise ValidationError("Discount code is required")
        if subtotal is None:
            raise ValidationError("Subtotal is required")

        subtotal = money(subtotal)
        try:
            quote = self.evaluate(code, subtotal)
        except InvalidDiscount as e:
            return {"valid": False, "error": e.message}

        return {
            "valid": True,
            "code": quote.code,
            "type": quote.type,
            "discount_amount": quote.amount,
            "original_subtotal": subtotal,
            "discounted_subtotal": subtotal - quote.amount,
        }
