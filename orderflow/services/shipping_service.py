# orderflow/services/shipping_service.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from orderflow.utils.logging import get_logger

logger = get_logger(__name__)

CLOTHING = frozenset({"tops", "bottoms", "accessories"})
FOOTWEAR = "footwear"

EU_COUNTRIES = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR",
    "DE", "GR", "HU", "IE", "IT", "LV", "LT", "LU", "MT", "NL",
    "PL", "PT", "RO", "SK", "SI", "ES", "SE",
})
ASIA_COUNTRIES = frozenset({
    "CN", "HK", "ID", "IN", "JP", "KR", "MY", "PH", "SG", "TH", "TW", "VN",
})
COUNTRY_NAMES = {
    "netherlands": "NL", "belgium": "BE", "germany": "DE", "france": "FR",
    "united kingdom": "GB", "united states": "US", "italy": "IT", "spain": "ES",
    "austria": "AT", "poland": "PL", "sweden": "SE", "denmark": "DK",
    "finland": "FI", "ireland": "IE", "portugal": "PT", "greece": "GR",
    "czech republic": "CZ", "hungary": "HU", "romania": "RO", "slovakia": "SK",
    "slovenia": "SI", "croatia": "HR", "bulgaria": "BG", "cyprus": "CY",
    "estonia": "EE", "latvia": "LV", "lithuania": "LT", "luxembourg": "LU",
    "malta": "MT", "canada": "CA", "australia": "AU", "japan": "JP",
}

EU_DAYS = "2-7 business days"
US_DAYS = "2-7 business days"
FAR_DAYS = "5-14 business days"


@dataclass(frozen=True)
class ShippingQuote:
    cost: Decimal
    method: str
    estimated_days: Optional[str] = None


UNKNOWN_SHIPPING = ShippingQuote(cost=Decimal("0.00"), method="Unknown")


def zone_for_country(country: Optional[str]) -> str:
    """Map an ISO code (or a known country name) to a shipping zone."""
    if not country:
        return "INTL"
    raw = country.strip()
    code = COUNTRY_NAMES.get(raw.lower(), raw.upper())
    if code in EU_COUNTRIES:
        return "EU"
    if code in ("US", "CA", "AU"):
        return code
    if code in ASIA_COUNTRIES:
        return "ASIA"
    return "INTL"


def _mix(items: Iterable[Tuple[str, int]]):
    clothing_qty = 0
    footwear = False
    for category, quantity in items:
        c = (category or "").lower()
        if c in CLOTHING:
            clothing_qty += quantity
        elif c == FOOTWEAR:
            footwear = True
    return clothing_qty, footwear


def calculate_shipping(zone: str, items: Iterable[Tuple[str, int]]) -> ShippingQuote:
    """Rate table of the store; ``items`` are (category, quantity) pairs."""
    clothing_qty, footwear = _mix(items)
    clothing = clothing_qty > 0
    z = (zone or "").upper()

    if z == "EU":
        return ShippingQuote(Decimal("10.00") if footwear else Decimal("0.00"), "EU Shipping", EU_DAYS)

    if z in ("CA", "AU", "ASIA") and (clothing or footwear):
        method = f"{z} Shipping"
        if clothing and footwear:
            return ShippingQuote(Decimal("75.00"), method, FAR_DAYS)
        if footwear:
            return ShippingQuote(Decimal("63.00"), method, FAR_DAYS)
        cost = Decimal("63.00") if clothing_qty >= 3 else Decimal("53.00")
        return ShippingQuote(cost, method, FAR_DAYS)

    if z == "US":
        method, days = "US Shipping", US_DAYS
    else:
        method, days = "International Shipping", FAR_DAYS

    if clothing and footwear:
        return ShippingQuote(Decimal("55.00"), method, days)
    if footwear:
        return ShippingQuote(Decimal("44.03"), method, days)
    return ShippingQuote(Decimal("30.00"), method, days)


def resolve_shipping(zone: Optional[str], items: Iterable[Tuple[str, int]]) -> ShippingQuote:
    """calculate_shipping that never blocks checkout: failures give a zero-cost line."""
    try:
        if not zone:
            raise ValueError("no shipping zone")
        return calculate_shipping(zone, list(items))
    except Exception as e:
        logger.warning(f"Shipping resolution failed for zone {zone!r}, using zero-cost line: {e}")
        return UNKNOWN_SHIPPING
