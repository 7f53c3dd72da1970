import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PAYMENT_GATEWAY", "fake")

import json
from contextlib import contextmanager
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orderflow.api.deps import get_hosted_gateway, get_lock_service, get_notifier, get_two_step_gateway
from orderflow.data.database import Base, get_db
from orderflow.data.models import DiscountCodeModel, OrderModel, ProductModel, ProductVariantModel
from orderflow.main import app
from orderflow.services.payments.fake_gateway import FakeGateway

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

ADDRESS = {
    "email": "jane@example.com",
    "name": "Jane Doe",
    "address": "Damrak 1",
    "city": "Amsterdam",
    "zip": "1012LG",
    "country": "NL",
    "phone": "+31 600000000",
}


class RecordingNotifier:
    def __init__(self):
        self.confirmations = []
        self.shipping_updates = []

    def send_order_confirmation(self, order):
        self.confirmations.append(order.order_number)

    def send_shipping_update(self, order):
        self.shipping_updates.append(order.order_number)


class FailingNotifier(RecordingNotifier):
    def send_order_confirmation(self, order):
        raise ConnectionError("broker down")


class InMemoryLock:
    def __init__(self):
        self.held = []

    @contextmanager
    def hold(self, order_number, wait=0):
        self.held.append(order_number)
        yield True


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    return TestingSession


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
def lock():
    return InMemoryLock()


@pytest.fixture
def gateway():
    return FakeGateway(webhook_secret="whsec_test")


@pytest.fixture
def client(db, notifier, lock, gateway):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_lock_service] = lambda: lock
    app.dependency_overrides[get_hosted_gateway] = lambda: gateway
    app.dependency_overrides[get_two_step_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def catalog(db):
    tee = ProductModel(id="p1", name="Void Tee", price=Decimal("50.00"), category="tops", quantity=10, in_stock=True)
    tee.variants = [
        ProductVariantModel(size="M", color="black", quantity=5, in_stock=True),
        ProductVariantModel(size="L", color="black", quantity=5, in_stock=True),
    ]
    runner = ProductModel(
        id="shoe1", name="Void Runner", price=Decimal("180.00"), category="footwear", quantity=3, in_stock=True
    )
    save10 = DiscountCodeModel(
        code="SAVE10", type="percentage", value=Decimal("10"), min_purchase=Decimal("50"), usage_limit=100
    )
    db.add_all([tee, runner, save10])
    db.commit()
    return {"tee": tee, "runner": runner, "save10": save10}


@pytest.fixture
def cart():
    def make(**overrides):
        payload = {
            "items": [
                {"id": "p1", "name": "Void Tee", "price": 50, "quantity": 2,
                 "size": "M", "color": "black", "category": "tops"},
            ],
            "shippingAddress": dict(ADDRESS),
            "subtotal": 100,
            "shipping": 0,
            "tax": 17.36,
            "discount": 0,
        }
        payload.update(overrides)
        return payload

    return make


@pytest.fixture
def completed_event():
    def make(order_number="FV-ABC123-XY9Z", items=None, metadata=None, amount_total=10000):
        items = items or [{"id": "p1", "name": "Void Tee", "price": "50.00", "quantity": 2,
                           "size": "M", "color": "black"}]
        meta = {
            "orderNumber": order_number,
            "userId": "",
            "shippingAddress": json.dumps(ADDRESS),
            "items": json.dumps(items),
            "subtotal": "100.00",
            "shipping": "0",
            "tax": "17.36",
            "discount": "0",
            "discountCode": "",
        }
        meta.update(metadata or {})
        return {
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_test_1",
                    "amount_total": amount_total,
                    "currency": "eur",
                    "payment_intent": "pi_123",
                    "metadata": meta,
                }
            },
        }

    return make


@pytest.fixture
def post_webhook(client, gateway):
    def post(event, signature=None):
        body = json.dumps(event).encode()
        headers = {"stripe-signature": signature if signature is not None else gateway.sign(body)}
        return client.post("/stripe/webhook", content=body, headers=headers)

    return post


@pytest.fixture
def count_orders(db):
    def count():
        db.expire_all()
        return db.query(OrderModel).count()

    return count
