from decimal import Decimal

import pytest

from orderflow.domain.errors import ConfigurationError, ValidationError
from orderflow.services import payments
from orderflow.services.notification_service import send_order_confirmation_task, send_shipping_update_task
from orderflow.services.payments import paypal_gateway
from orderflow.services.payments.fake_gateway import FakeGateway
from orderflow.services.payments.port import AmountBreakdown
from orderflow.services.payments.paypal_gateway import PayPalGateway


class FakeResponse:
    def __init__(self, status_code, data=None, text=None):
        self.status_code = status_code
        self._data = data
        self.text = text if text is not None else str(data)

    def json(self):
        if self._data is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._data


@pytest.fixture
def paypal_http(monkeypatch):
    sent = []
    replies = {}

    def post(url, **kwargs):
        sent.append(("POST", url, kwargs))
        if url.endswith("/v1/oauth2/token"):
            return FakeResponse(200, {"access_token": "tok"})
        return replies[url]

    def get(url, **kwargs):
        sent.append(("GET", url, kwargs))
        return replies[url]

    monkeypatch.setattr(paypal_gateway.requests, "post", post)
    monkeypatch.setattr(paypal_gateway.requests, "get", get)
    return sent, replies


BASE = "https://api.sandbox.test"


def captured(order_id):
    return {
        "id": order_id,
        "status": "COMPLETED",
        "payer": {"email_address": "jane@example.com"},
        "purchase_units": [{"payments": {"captures": [{"amount": {"value": "100.00", "currency_code": "EUR"}}]}}],
    }


def test_paypal_create_sends_breakdown(paypal_http):
    sent, replies = paypal_http
    replies[f"{BASE}/v2/checkout/orders"] = FakeResponse(
        201, {"id": "PP-1", "status": "CREATED", "links": [{"rel": "approve", "href": "https://paypal.test/a"}]}
    )
    gw = PayPalGateway(client_id="id", secret="s", base_url=BASE)
    amount = AmountBreakdown("EUR", Decimal("82.64"), Decimal("0"), Decimal("17.36"), Decimal("0"), Decimal("100"))

    order = gw.create_order(amount, reference="FV-ABC123-XY9Z", return_url="r", cancel_url="c")

    assert order.id == "PP-1"
    assert order.approval_url == "https://paypal.test/a"
    body = sent[-1][2]["json"]
    unit = body["purchase_units"][0]
    assert unit["amount"]["value"] == "100.00"
    assert unit["amount"]["breakdown"]["item_total"]["value"] == "82.64"
    assert unit["reference_id"] == "FV-ABC123-XY9Z"
    assert sent[-1][2]["headers"]["PayPal-Request-Id"] == "FV-ABC123-XY9Z"


def test_paypal_capture(paypal_http):
    _, replies = paypal_http
    replies[f"{BASE}/v2/checkout/orders/PP-1/capture"] = FakeResponse(201, captured("PP-1"))

    result = PayPalGateway(client_id="id", secret="s", base_url=BASE).capture_order("PP-1")

    assert result.completed
    assert result.amount == Decimal("100.00")
    assert result.payer_email == "jane@example.com"


def test_paypal_already_captured_reads_the_order(paypal_http):
    _, replies = paypal_http
    replies[f"{BASE}/v2/checkout/orders/PP-1/capture"] = FakeResponse(
        422, {"details": [{"issue": "ORDER_ALREADY_CAPTURED"}]}
    )
    replies[f"{BASE}/v2/checkout/orders/PP-1"] = FakeResponse(200, captured("PP-1"))

    assert PayPalGateway(client_id="id", secret="s", base_url=BASE).capture_order("PP-1").completed


def test_paypal_unknown_order(paypal_http):
    _, replies = paypal_http
    replies[f"{BASE}/v2/checkout/orders/NOPE/capture"] = FakeResponse(404)
    with pytest.raises(ValidationError):
        PayPalGateway(client_id="id", secret="s", base_url=BASE).capture_order("NOPE")


def test_paypal_without_credentials():
    with pytest.raises(ConfigurationError):
        PayPalGateway(client_id="", secret="", base_url=BASE).capture_order("PP-1")


def test_fake_gateway_capture_is_repeatable():
    gw = FakeGateway()
    amount = AmountBreakdown("EUR", Decimal("82.64"), Decimal("0"), Decimal("17.36"), Decimal("0"), Decimal("100"))
    order = gw.create_order(amount, None, "r", "c")

    first = gw.capture_order(order.id)
    assert gw.capture_order(order.id) == first


def test_registry_override_and_reset():
    gw = FakeGateway()
    payments.set_gateway(gw)
    try:
        assert payments.get_hosted_gateway() is gw
        assert payments.get_two_step_gateway() is gw
    finally:
        payments.reset_gateway()
    assert isinstance(payments.get_hosted_gateway(), FakeGateway)
    assert payments.get_hosted_gateway() is payments.get_two_step_gateway()


def test_notification_tasks_log_without_smtp():
    payload = {
        "order_number": "FV-ABC123-XY9Z",
        "email": "jane@example.com",
        "name": "Jane Doe",
        "status": "shipped",
        "total": "100.00",
        "currency": "EUR",
        "tracking_number": "3SABC123",
        "shipping_method": "PostNL",
        "items": [{"name": "Void Tee", "quantity": 2, "price": "50.00", "size": "M", "color": "black"}],
    }
    assert send_order_confirmation_task(payload) == {"order_number": "FV-ABC123-XY9Z", "status": "logged"}
    assert send_shipping_update_task(dict(payload, email=None))["status"] == "skipped"


@pytest.mark.parametrize(
    "reply",
    [
        FakeResponse(422, {"name": "UNPROCESSABLE_ENTITY", "details": []}),
        FakeResponse(422, text="<html>gateway error</html>"),
    ],
)
def test_paypal_unprocessable_capture_without_details(paypal_http, reply):
    _, replies = paypal_http
    replies[f"{BASE}/v2/checkout/orders/PP-1/capture"] = reply

    with pytest.raises(ValidationError, match="UNPROCESSABLE_ENTITY"):
        PayPalGateway(client_id="id", secret="s", base_url=BASE).capture_order("PP-1")
