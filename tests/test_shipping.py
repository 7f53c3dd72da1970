from decimal import Decimal

import pytest

from orderflow.services.shipping_service import calculate_shipping, resolve_shipping, zone_for_country

TEE = ("tops", 1)
SHOE = ("footwear", 1)


@pytest.mark.parametrize(
    "zone,items,cost,method",
    [
        ("EU", [TEE], "0.00", "EU Shipping"),
        ("eu", [TEE, SHOE], "10.00", "EU Shipping"),
        ("US", [TEE], "30.00", "US Shipping"),
        ("US", [SHOE], "44.03", "US Shipping"),
        ("US", [TEE, SHOE], "55.00", "US Shipping"),
        ("CA", [("bottoms", 2)], "53.00", "CA Shipping"),
        ("AU", [("tops", 2), ("accessories", 1)], "63.00", "AU Shipping"),
        ("ASIA", [SHOE], "63.00", "ASIA Shipping"),
        ("ASIA", [TEE, SHOE], "75.00", "ASIA Shipping"),
        ("INTL", [SHOE], "44.03", "International Shipping"),
    ],
)
def test_rate_table(zone, items, cost, method):
    quote = calculate_shipping(zone, items)
    assert quote.cost == Decimal(cost)
    assert quote.method == method


def test_far_zones_estimate():
    assert calculate_shipping("CA", [TEE]).estimated_days == "5-14 business days"
    assert calculate_shipping("EU", [TEE]).estimated_days == "2-7 business days"


@pytest.mark.parametrize(
    "country,zone",
    [("NL", "EU"), ("de", "EU"), ("Germany", "EU"), ("US", "US"), ("CA", "CA"),
     ("JP", "ASIA"), ("BR", "INTL"), ("GB", "INTL"), (None, "INTL")],
)
def test_zone_for_country(country, zone):
    assert zone_for_country(country) == zone


def test_resolution_failure_degrades_to_zero_cost():
    quote = resolve_shipping(None, [TEE])
    assert quote.cost == Decimal("0.00")
    assert quote.method == "Unknown"


def test_calculate_endpoint(client):
    resp = client.post("/shipping/calculate", json={"items": [{"category": "footwear", "quantity": 1}], "zone": "EU"})
    assert resp.status_code == 200
    assert resp.json() == {"cost": 10.0, "method": "EU Shipping", "estimatedDays": "2-7 business days"}


def test_calculate_endpoint_requires_zone(client):
    resp = client.post("/shipping/calculate", json={"items": [{"category": "tops", "quantity": 1}]})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Shipping zone is required"
