from orderflow.data.models import OrderModel, ProductModel
from orderflow.utils.settings import PLACEHOLDER_PRODUCT_ID


def test_simulated_payment_creates_a_pending_order(client, cart, db, catalog, notifier):
    resp = client.post("/payments/test", json=cart())

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Test payment successful. Order created."
    assert body["paymentIntentId"].startswith("test_")
    assert body["order"]["status"] == "pending"
    assert body["order"]["total"] == 100.0

    order = db.query(OrderModel).filter_by(order_number=body["order"]["orderNumber"]).one()
    assert order.payment_method == "test"
    assert order.paid_at is None
    assert db.get(ProductModel, "p1").quantity == 8
    assert notifier.confirmations == [order.order_number]


def test_unknown_products_point_at_the_placeholder(client, cart, db, catalog):
    items = [{"id": "ghost", "name": "Demo Hoodie", "price": 40, "quantity": 1}]
    resp = client.post("/payments/test", json=cart(items=items, subtotal=40))

    assert resp.status_code == 200
    order = db.query(OrderModel).one()
    assert order.items[0].product_id == PLACEHOLDER_PRODUCT_ID
    assert order.items[0].name == "Demo Hoodie"
    assert db.get(ProductModel, PLACEHOLDER_PRODUCT_ID) is not None


def test_phone_is_required(client, cart, catalog, count_orders):
    address = {k: v for k, v in cart()["shippingAddress"].items() if k != "phone"}
    resp = client.post("/payments/test", json=cart(shippingAddress=address))

    assert resp.status_code == 400
    assert "phone" in resp.json()["detail"]
    assert count_orders() == 0


def test_negative_total_is_rejected(client, cart, catalog, count_orders):
    resp = client.post("/payments/test", json=cart(total=-5))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid total amount"
    assert count_orders() == 0


def test_empty_cart(client, cart):
    resp = client.post("/payments/test", json=cart(items=[]))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Order must contain at least one item"


def test_direct_order_requires_fields(client, cart, count_orders):
    resp = client.post("/orders/create", json=cart())
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required fields"
    assert count_orders() == 0


def test_direct_order_keeps_declared_method(client, cart, db, catalog):
    resp = client.post(
        "/orders/create",
        json=cart(paymentMethod="bank_transfer", total=100, paymentIntentId="bt_42"),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["order"]["status"] == "pending"
    order = db.query(OrderModel).one()
    assert order.payment_method == "bank_transfer"
    assert order.payment_reference == "bt_42"


def test_direct_order_is_idempotent_on_order_number(client, cart, catalog, count_orders):
    payload = cart(paymentMethod="test", total=100, orderNumber="FV-ABC123-XY9Z")
    first = client.post("/orders/create", json=payload).json()
    second = client.post("/orders/create", json=payload).json()

    assert first["order"]["id"] == second["order"]["id"]
    assert count_orders() == 1
