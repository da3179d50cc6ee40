import hashlib
import hmac
import json
import os
import time
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Pas de Redis en tests: le lifespan désactive proprement le rate limiting
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from motoshop.app import app as fastapi_app
from motoshop.utils.security import get_optional_customer

WEBHOOK_SECRET = "whsec_test_secret"
ADMIN_SECRET = "admin-test-secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

class FakeDB:
    """
    Base en mémoire pour 'orders', 'order_items' et 'customers'.
    transition_order applique la même garde que l'UPDATE ... WHERE status IN (...).
    """

    def __init__(self):
        self.orders: Dict[int, Dict[str, Any]] = {}
        self.items: List[Dict[str, Any]] = []
        self.customers: Dict[str, Dict[str, Any]] = {}
        self.fail_items_insert = False
        self._seq = 0

    def _next_id(self) -> int:
        self._seq += 1
        return self._seq

    # orders.repository
    def insert_order(self, row):
        order = {
            "id": self._next_id(),
            "created_at": "2026-01-01T12:00:00+00:00",
            "paid_at": None,
            "stripe_session_id": None,
            "stripe_payment_intent_id": None,
            **row,
        }
        self.orders[order["id"]] = order
        return dict(order)

    def insert_order_items(self, rows):
        from motoshop.orders.repository import OrderPersistenceError
        if self.fail_items_insert:
            raise OrderPersistenceError("insert_order_items")
        created = [{"id": self._next_id(), **r} for r in rows]
        self.items.extend(created)
        return [dict(r) for r in created]

    def delete_order(self, order_id):
        self.orders.pop(order_id, None)
        self.items = [i for i in self.items if i["order_id"] != order_id]

    def get_order(self, order_id):
        order = self.orders.get(order_id)
        return dict(order) if order else None

    def get_order_by_payment_intent(self, payment_intent_id):
        for order in self.orders.values():
            if order.get("stripe_payment_intent_id") == payment_intent_id:
                return dict(order)
        return None

    def get_order_items(self, order_id):
        return [dict(i) for i in self.items if i["order_id"] == order_id]

    def list_orders(self, limit=100):
        return [dict(o) for o in sorted(self.orders.values(), key=lambda o: o["id"], reverse=True)][:limit]

    def list_customer_orders(self, customer_id, limit=50):
        return [dict(o) for o in self.list_orders(limit) if o.get("customer_id") == customer_id]

    def set_payment_session(self, order_id, session_id):
        self.orders[order_id]["stripe_session_id"] = session_id

    def transition_order(self, order_id, changes, from_statuses):
        order = self.orders.get(order_id)
        if not order or order["status"] not in set(from_statuses):
            return None
        order.update(changes)
        return dict(order)

    # customers.repository
    def get_customer(self, customer_id):
        c = self.customers.get(customer_id)
        return dict(c) if c else None

    def get_customer_by_phone(self, phone):
        return next((dict(c) for c in self.customers.values() if c["phone"] == phone), None)

    def get_customer_by_email(self, email):
        return next((dict(c) for c in self.customers.values() if c.get("email") == email), None)

    def create_customer(self, data):
        customer = {"id": f"cust-{self._next_id()}", **data}
        self.customers[customer["id"]] = customer
        return dict(customer)

    def update_customer(self, customer_id, data):
        self.customers[customer_id].update(data)
        return dict(self.customers[customer_id])

    def seed_order(self, **overrides) -> Dict[str, Any]:
        row = {
            "customer_id": None,
            "status": "awaiting_payment",
            "total": 50.0,
            "customer_name": "Ana Souza",
            "customer_phone": "11999999999",
            "customer_email": "ana@example.com",
            "delivery_address": None,
            "payment_method": "card",
            "payment_status": "awaiting_payment",
        }
        row.update(overrides)
        order = self.insert_order(row)
        self.insert_order_items([{
            "order_id": order["id"],
            "product_id": 1,
            "product_name": "Capacete",
            "product_price": 25.0,
            "quantity": 2,
        }])
        return order

ORDER_FUNCS = [
    "insert_order", "insert_order_items", "delete_order", "get_order",
    "get_order_by_payment_intent", "get_order_items", "list_orders",
    "list_customer_orders", "set_payment_session", "transition_order",
]
CUSTOMER_FUNCS = [
    "get_customer", "get_customer_by_phone", "get_customer_by_email",
    "create_customer", "update_customer",
]

@pytest.fixture(autouse=True)
def fake_db(request, monkeypatch) -> FakeDB:
    """
    Remplace l'accès Supabase des repositories par une base en mémoire.
    Les tests marqués real_repository gardent les vraies fonctions (client Supabase mocké).
    """
    db = FakeDB()
    monkeypatch.setattr("motoshop.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("motoshop.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    if request.node.get_closest_marker("real_repository"):
        return db
    for name in ORDER_FUNCS:
        monkeypatch.setattr(f"motoshop.orders.repository.{name}", getattr(db, name))
    for name in CUSTOMER_FUNCS:
        monkeypatch.setattr(f"motoshop.customers.repository.{name}", getattr(db, name))
    monkeypatch.setattr("motoshop.checkout.repository.get_whatsapp_number", lambda: "5511988887777")
    return db

@pytest.fixture(autouse=True)
def stripe_keys(monkeypatch):
    monkeypatch.setattr("motoshop.payments.stripe_client.STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setattr("motoshop.payments.stripe_client.STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr("motoshop.payments.views.STRIPE_PUBLIC_KEY", "pk_test_123")
    monkeypatch.setattr("motoshop.utils.security.ADMIN_JWT_SECRET", ADMIN_SECRET)

class FakeStripeSession:
    def __init__(self, id="cs_test_1", url="https://checkout.stripe.test/cs_test_1",
                 payment_status="unpaid", status="open", payment_intent=None):
        self.id = id
        self.url = url
        self.payment_status = payment_status
        self.status = status
        self.payment_intent = payment_intent

@pytest.fixture
def stripe_calls(monkeypatch):
    """
    Fake du SDK Stripe au niveau de l'adaptateur.
    - calls["create"]: kwargs des créations de session
    - calls["session"]: session renvoyée par get_session (modifiable par le test)
    """
    calls: Dict[str, Any] = {"create": [], "session": FakeStripeSession(), "refunds": [], "make_session": FakeStripeSession}

    def _create_session(**kwargs):
        calls["create"].append(kwargs)
        return FakeStripeSession()

    def _get_session(session_id):
        return calls["session"]

    def _create_refund(payment_intent_id, amount=None):
        calls["refunds"].append((payment_intent_id, amount))
        refund = MagicMock()
        refund.id = "re_test_1"
        refund.status = "succeeded"
        return refund

    monkeypatch.setattr("motoshop.payments.stripe_client.create_session", _create_session)
    monkeypatch.setattr("motoshop.payments.stripe_client.get_session", _get_session)
    monkeypatch.setattr("motoshop.payments.stripe_client.create_refund", _create_refund)
    return calls

def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature: t=<ts>,v1=HMAC-SHA256(secret, "<ts>.<payload>")."""
    ts = int(timestamp if timestamp is not None else time.time())
    digest = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"

@pytest.fixture
def signed_event():
    """Construit (body, headers) signés pour un événement Stripe."""
    def _make(event: Dict[str, Any], secret: str = WEBHOOK_SECRET):
        body = json.dumps(event)
        return body, {"stripe-signature": sign_payload(body, secret), "content-type": "application/json"}
    return _make

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def as_customer(app, fake_db):
    """Client authentifié (la couche auth externe est simulée par un override)."""
    customer = fake_db.create_customer({
        "name": "Bruno Lima",
        "phone": "11977776666",
        "email": "bruno@example.com",
        "nickname": None,
        "delivery_address": "Rua A, 10",
        "is_registered": True,
    })
    app.dependency_overrides[get_optional_customer] = lambda: customer
    yield customer
    app.dependency_overrides.pop(get_optional_customer, None)

@pytest.fixture
def admin_headers() -> Dict[str, str]:
    import jwt
    token = jwt.encode({"sub": "admin-1", "role": "admin"}, ADMIN_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def stripe_signature():
    return sign_payload
