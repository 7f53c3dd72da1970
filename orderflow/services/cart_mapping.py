# orderflow/services/cart_mapping.py
"""Storefront cart payloads -> domain values, with the storefront's error messages."""
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from orderflow.domain.errors import ValidationError
from orderflow.domain.events import LineItem, ShippingAddress
from orderflow.domain.schemas import CartItemIn, ShippingAddressIn

_ADDRESS_FIELDS = ("email", "name", "address", "city", "zip", "country")


def line_items(items: Optional[Iterable[CartItemIn]]) -> Tuple[LineItem, ...]:
    items = list(items or [])
    if not items:
        raise ValidationError("Order must contain at least one item")
    return tuple(
        LineItem(
            product_id=i.id,
            name=i.name or i.id,
            price=Decimal(i.price),
            quantity=i.quantity,
            size=i.size or None,
            color=i.color or None,
            category=i.category,
        )
        for i in items
    )


def line_items_from_metadata(raw: List[Mapping[str, Any]]) -> Tuple[LineItem, ...]:
    try:
        return line_items(CartItemIn.model_validate(i) for i in raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid item data: {e}") from e


def shipping_address(addr: Optional[ShippingAddressIn], require_phone: bool = False) -> ShippingAddress:
    if addr is None:
        raise ValidationError("Missing shipping address")

    required = _ADDRESS_FIELDS + (("phone",) if require_phone else ())
    if any(not (getattr(addr, f) or "").strip() for f in required):
        hint = " (including phone number)" if require_phone else ""
        raise ValidationError(
            f"Shipping address is incomplete. Please fill in all required fields{hint}."
        )

    return ShippingAddress(
        email=addr.email.strip(),
        name=addr.name.strip(),
        street=addr.address.strip(),
        city=addr.city.strip(),
        postal_code=addr.zip.strip(),
        country=addr.country.strip(),
        apartment=addr.apartment or None,
        province=addr.province or None,
        phone=addr.phone or None,
    )
