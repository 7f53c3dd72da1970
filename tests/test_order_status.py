import pytest

from orderflow.data.models import OrderModel
from orderflow.repos.order_repo import OrderRepo

ADMIN = {"X-User-Id": "999", "X-User-Email": "admin@example.com", "X-User-Role": "admin"}
OWNER = {"X-User-Email": "jane@example.com"}
STRANGER = {"X-User-Email": "mallory@example.com"}


@pytest.fixture
def order_id(client, cart, catalog):
    return client.post("/payments/test", json=cart()).json()["order"]["id"]


def test_update_requires_admin(client, order_id):
    assert client.patch(f"/orders/{order_id}", json={"status": "shipped"}).status_code == 401
    assert client.patch(f"/orders/{order_id}", json={"status": "shipped"}, headers=OWNER).status_code == 403


def test_invalid_status(client, order_id):
    resp = client.patch(f"/orders/{order_id}", json={"status": "teleported"}, headers=ADMIN)
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid status")


def test_unknown_order(client, db):
    resp = client.patch("/orders/4242", json={"status": "shipped"}, headers=ADMIN)
    assert resp.status_code == 404


def test_shipping_notifies_once(client, order_id, notifier):
    first = client.patch(
        f"/orders/{order_id}", json={"status": "shipped", "trackingNumber": "3SABC123"}, headers=ADMIN
    )
    second = client.patch(f"/orders/{order_id}", json={"status": "shipped"}, headers=ADMIN)

    assert first.status_code == 200
    assert first.json()["trackingNumber"] == "3SABC123"
    assert second.status_code == 200
    assert len(notifier.shipping_updates) == 1


def test_paid_at_is_stamped_once(client, db, order_id):
    client.patch(f"/orders/{order_id}", json={"status": "processing"}, headers=ADMIN)
    db.expire_all()
    paid_at = db.get(OrderModel, order_id).paid_at
    assert paid_at is not None

    client.patch(f"/orders/{order_id}", json={"status": "shipped"}, headers=ADMIN)
    db.expire_all()
    assert db.get(OrderModel, order_id).paid_at == paid_at


def test_tracking_only_update_keeps_status(client, order_id):
    resp = client.patch(f"/orders/{order_id}", json={"trackingNumber": "TRK1"}, headers=ADMIN)
    assert resp.json()["status"] == "pending"
    assert resp.json()["trackingNumber"] == "TRK1"


def test_cancelled_orders_are_final(client, order_id):
    client.patch(f"/orders/{order_id}", json={"status": "cancelled"}, headers=ADMIN)
    resp = client.patch(f"/orders/{order_id}", json={"status": "shipped"}, headers=ADMIN)
    assert resp.status_code == 400


def test_lost_update_is_a_conflict(client, order_id, monkeypatch):
    monkeypatch.setattr(OrderRepo, "update_status", lambda self, order_id, expected, values: 0)
    resp = client.patch(f"/orders/{order_id}", json={"status": "shipped"}, headers=ADMIN)
    assert resp.status_code == 409


def test_order_visibility(client, order_id):
    assert client.get(f"/orders/{order_id}").status_code == 401
    assert client.get(f"/orders/{order_id}", headers=STRANGER).status_code == 403

    mine = client.get(f"/orders/{order_id}", headers=OWNER)
    assert mine.status_code == 200
    body = mine.json()
    assert body["total"] == 100.0
    assert body["items"][0]["name"] == "Void Tee"
    assert body["shippingAddress"]["city"] == "Amsterdam"

    assert client.get(f"/orders/{order_id}", headers=ADMIN).status_code == 200
