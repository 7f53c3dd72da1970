from decimal import Decimal

import pytest

from orderflow.data.models import ProductModel, ProductVariantModel
from orderflow.domain.errors import ValidationError
from orderflow.domain.events import LineItem
from orderflow.services.inventory_service import InventoryService


def item(product_id, quantity, size=None, color=None):
    return LineItem(product_id=product_id, name=product_id, price=Decimal("10"), quantity=quantity, size=size, color=color)


def test_stock_never_goes_negative(db):
    db.add(ProductModel(id="short", name="Short", price=Decimal("10"), quantity=3, in_stock=True))
    db.commit()

    failures = InventoryService(db).adjust_for_order("FV-T-0001", [item("short", 5)])

    product = db.get(ProductModel, "short")
    assert failures == []
    assert product.quantity == 0
    assert product.in_stock is False


def test_matching_variant_is_decremented_with_product(db, catalog):
    InventoryService(db).adjust_for_order("FV-T-0002", [item("p1", 2, size="M", color="black")])

    db.expire_all()
    product = db.get(ProductModel, "p1")
    variants = {(v.size, v.color): v.quantity for v in product.variants}
    assert product.quantity == 8
    assert variants == {("M", "black"): 3, ("L", "black"): 5}


def test_empty_selector_matches_variant_without_that_field(db):
    p = ProductModel(id="cap", name="Cap", price=Decimal("35"), quantity=4, in_stock=True)
    p.variants = [ProductVariantModel(size="OS", color=None, quantity=2, in_stock=True)]
    db.add(p)
    db.commit()

    InventoryService(db).adjust_for_order("FV-T-0003", [item("cap", 2, size="OS", color="")])

    db.expire_all()
    variant = db.get(ProductModel, "cap").variants[0]
    assert variant.quantity == 0
    assert variant.in_stock is False


def test_missing_product_is_skipped(db):
    assert InventoryService(db).adjust_for_order("FV-T-0004", [item("ghost", 1)]) == []


def test_one_failing_item_does_not_block_the_rest(db, catalog, monkeypatch):
    svc = InventoryService(db)
    original = svc.adjust_item

    def flaky(line):
        if line.product_id == "shoe1":
            raise RuntimeError("row locked")
        return original(line)

    monkeypatch.setattr(svc, "adjust_item", flaky)
    failures = svc.adjust_for_order("FV-T-0005", [item("shoe1", 1), item("p1", 1)])

    db.expire_all()
    assert len(failures) == 1
    assert failures[0].step == "inventory[shoe1]"
    assert db.get(ProductModel, "p1").quantity == 9
    assert db.get(ProductModel, "shoe1").quantity == 3


def test_availability_check(db, catalog):
    svc = InventoryService(db)
    svc.check_availability([item("p1", 10)])

    with pytest.raises(ValidationError, match="Insufficient stock for Void Runner"):
        svc.check_availability([item("shoe1", 4)])
    with pytest.raises(ValidationError, match="not found"):
        svc.check_availability([item("ghost", 1)])
