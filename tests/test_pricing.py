from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from orderflow.data.models import DiscountCodeModel
from orderflow.domain.errors import InvalidDiscount
from orderflow.domain.events import LineItem
from orderflow.services.pricing_service import DiscountService, compute_subtotal, extract_vat


def add_code(db, **kwargs):
    fields = {"type": "percentage", "value": Decimal("10"), "is_active": True}
    fields.update(kwargs)
    dc = DiscountCodeModel(**fields)
    db.add(dc)
    db.commit()
    return dc


def test_subtotal_uses_caller_prices():
    items = [LineItem(product_id="p1", name="Tee", price=Decimal("50"), quantity=2)]
    assert compute_subtotal(items) == Decimal("100.00")


def test_save10_on_hundred(db, catalog):
    quote = DiscountService(db).evaluate("SAVE10", Decimal("100"))
    assert quote.amount == Decimal("10.00")
    assert quote.echo() == {"code": "SAVE10", "type": "percentage"}


def test_code_is_case_insensitive(db, catalog):
    assert DiscountService(db).evaluate("  save10 ", Decimal("100")).amount == Decimal("10.00")


def test_missing_code_means_no_discount(db):
    quote = DiscountService(db).evaluate(None, Decimal("100"))
    assert quote.amount == Decimal("0.00")
    assert not quote.applied
    assert DiscountService(db).evaluate("", Decimal("100")).echo() is None


def test_percentage_is_capped_by_max_discount(db):
    add_code(db, code="BIG20", value=Decimal("20"), max_discount=Decimal("25"))
    assert DiscountService(db).evaluate("BIG20", Decimal("200")).amount == Decimal("25.00")


def test_fixed_discount_never_exceeds_subtotal(db):
    add_code(db, code="FLAT80", type="fixed", value=Decimal("80"))
    assert DiscountService(db).evaluate("FLAT80", Decimal("50")).amount == Decimal("50.00")
    assert DiscountService(db).evaluate("FLAT80", Decimal("120")).amount == Decimal("80.00")


def test_unknown_code(db):
    with pytest.raises(InvalidDiscount, match="Invalid discount code"):
        DiscountService(db).evaluate("NOPE", Decimal("100"))


def test_inactive_code(db):
    add_code(db, code="OLD", is_active=False)
    with pytest.raises(InvalidDiscount, match="no longer available"):
        DiscountService(db).evaluate("OLD", Decimal("100"))


def test_minimum_purchase(db, catalog):
    with pytest.raises(InvalidDiscount, match="Minimum purchase of €50.00 required"):
        DiscountService(db).evaluate("SAVE10", Decimal("40"))


def test_usage_limit_reached(db):
    add_code(db, code="ONCE", usage_limit=1, used_count=1)
    with pytest.raises(InvalidDiscount, match="usage limit"):
        DiscountService(db).evaluate("ONCE", Decimal("100"))


def test_valid_until_covers_the_whole_last_day(db):
    add_code(db, code="MAYDAY", valid_until=datetime(2026, 5, 1, tzinfo=timezone.utc))
    svc = DiscountService(db)

    evening = datetime(2026, 5, 1, 22, 30, tzinfo=timezone.utc)
    assert svc.evaluate("MAYDAY", Decimal("100"), now=evening).amount == Decimal("10.00")

    with pytest.raises(InvalidDiscount, match="expired"):
        svc.evaluate("MAYDAY", Decimal("100"), now=evening + timedelta(hours=2))


def test_not_yet_valid(db):
    add_code(db, code="SOON", valid_from=datetime(2026, 6, 1, tzinfo=timezone.utc))
    with pytest.raises(InvalidDiscount, match="not yet valid"):
        DiscountService(db).evaluate("SOON", Decimal("100"), now=datetime(2026, 5, 31, tzinfo=timezone.utc))


def test_vat_is_extracted_from_inclusive_prices():
    assert extract_vat(Decimal("100")) == Decimal("17.36")
    assert extract_vat(Decimal("0")) == Decimal("0.00")


def test_validate_endpoint(client, catalog):
    resp = client.post("/discounts/validate", json={"code": "save10", "subtotal": 100})
    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is True
    assert body["code"] == "SAVE10"
    assert body["discountAmount"] == 10.0
    assert body["discountedSubtotal"] == 90.0


def test_validate_endpoint_unusable_code_is_not_an_http_error(client, catalog):
    resp = client.post("/discounts/validate", json={"code": "SAVE10", "subtotal": 20})
    assert resp.status_code == 200
    assert resp.json() == {"valid": False, "error": "Minimum purchase of €50.00 required"}


def test_validate_endpoint_requires_code(client):
    resp = client.post("/discounts/validate", json={"subtotal": 100})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Discount code is required"
