# orderflow/services/quote_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from orderflow.domain.schemas import QuoteIn
from orderflow.services.cart_mapping import line_items
from orderflow.services.pricing_service import DiscountService, compute_subtotal, extract_vat
from orderflow.services.shipping_service import resolve_shipping, zone_for_country


class QuoteService:
    """Pre-payment price of a cart: subtotal, discount, shipping, VAT and total."""

    def __init__(self, db: Session):
        self.discounts = DiscountService(db)

    def quote(self, payload: QuoteIn) -> Dict[str, Any]:
        items = line_items(payload.items)
        subtotal = compute_subtotal(items)
        discount = self.discounts.evaluate(payload.discount_code, subtotal)

        zone = payload.zone or (zone_for_country(payload.country) if payload.country else None)
        shipping = resolve_shipping(zone, [(i.category or "", i.quantity) for i in items])

        return {
            "subtotal": subtotal,
            "discount": discount.amount,
            "discount_code": discount.echo(),
            "shipping": {
                "cost": shipping.cost,
                "method": shipping.method,
                "estimated_days": shipping.estimated_days,
            },
            "tax": extract_vat(subtotal),
            "total": subtotal - discount.amount + shipping.cost,
        }
