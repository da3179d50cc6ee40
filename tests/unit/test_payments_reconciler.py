import pytest

from motoshop.orders.service import OrderNotFound
from motoshop.payments import stripe_client
from motoshop.payments.reconciler import refresh_payment_status

def test_paid_session_marks_order_paid(fake_db, stripe_calls):
    order = fake_db.seed_order(stripe_session_id="cs_test_1")
    stripe_calls["session"] = stripe_calls["make_session"](payment_status="paid", status="complete", payment_intent="pi_5")
    res = refresh_payment_status(order["id"])
    assert res == {"order_id": order["id"], "status": "paid", "payment_status": "paid", "stripe_status": "paid"}
    assert fake_db.get_order(order["id"])["stripe_payment_intent_id"] == "pi_5"

def test_expired_session_marks_payment_failed(fake_db, stripe_calls):
    order = fake_db.seed_order(stripe_session_id="cs_test_1")
    stripe_calls["session"] = stripe_calls["make_session"](payment_status="unpaid", status="expired")
    res = refresh_payment_status(order["id"])
    assert res["status"] == "payment_failed"
    assert res["stripe_status"] == "unpaid"

def test_open_session_leaves_order_waiting(fake_db, stripe_calls):
    order = fake_db.seed_order(stripe_session_id="cs_test_1")
    res = refresh_payment_status(order["id"])
    assert res["payment_status"] == "awaiting_payment"
    assert res["stripe_status"] == "unpaid"

def test_provider_error_returns_db_state(fake_db, monkeypatch):
    order = fake_db.seed_order(stripe_session_id="cs_test_1")

    def boom(session_id):
        raise stripe_client.PaymentProviderError("get_session")

    monkeypatch.setattr("motoshop.payments.stripe_client.get_session", boom)
    res = refresh_payment_status(order["id"])
    assert res["payment_status"] == "awaiting_payment"
    assert res["stripe_status"] is None

def test_order_without_session_not_sent_to_stripe(fake_db, stripe_calls, monkeypatch):
    order = fake_db.seed_order(status="pending", payment_status="pending", payment_method="whatsapp")
    monkeypatch.setattr("motoshop.payments.stripe_client.get_session", lambda sid: pytest.fail("appel Stripe inattendu"))
    res = refresh_payment_status(order["id"])
    assert res["status"] == "pending"
    assert res["stripe_status"] is None

def test_unknown_order(fake_db):
    with pytest.raises(OrderNotFound):
        refresh_payment_status(123)
