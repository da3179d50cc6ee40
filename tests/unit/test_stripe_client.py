import json
import time
from unittest.mock import MagicMock

import pytest
import stripe

from motoshop.payments import stripe_client

def test_construct_event_accepts_valid_signature(stripe_signature):
    body = json.dumps({
        "id": "evt_1",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": {"object": "checkout.session", "metadata": {"order_id": "7"}}},
    })
    event = stripe_client.construct_event(body.encode("utf-8"), stripe_signature(body))
    assert isinstance(event, dict)
    assert event["id"] == "evt_1"
    assert event["data"]["object"]["metadata"]["order_id"] == "7"

def test_construct_event_rejects_non_json_body(stripe_signature):
    body = "pas du json"
    with pytest.raises(stripe_client.WebhookSignatureError):
        stripe_client.construct_event(body.encode("utf-8"), stripe_signature(body))

def test_construct_event_delegates_to_stripe_webhook(monkeypatch):
    captured = {}

    def fake_construct(payload, sig_header, secret, tolerance=None):
        captured.update(payload=payload, sig=sig_header, secret=secret, tolerance=tolerance)
        event = MagicMock()
        event.to_dict.return_value = {"id": "evt_9", "type": "x"}
        return event

    monkeypatch.setattr(stripe.Webhook, "construct_event", fake_construct)
    event = stripe_client.construct_event(b"{}", "t=1,v1=abc")
    assert event["id"] == "evt_9"
    assert captured == {
        "payload": b"{}",
        "sig": "t=1,v1=abc",
        "secret": "whsec_test_secret",
        "tolerance": stripe_client.WEBHOOK_TOLERANCE_SECONDS,
    }

@pytest.mark.parametrize("header", [
    None,
    "",
    "t=123,v1=deadbeef",
])
def test_construct_event_rejects_missing_or_bad_header(header):
    body = json.dumps({"id": "evt_1"})
    with pytest.raises(stripe_client.WebhookSignatureError):
        stripe_client.construct_event(body.encode("utf-8"), header)

def test_construct_event_rejects_wrong_secret_and_tampered_body(stripe_signature):
    body = json.dumps({"id": "evt_1", "type": "x"})
    with pytest.raises(stripe_client.WebhookSignatureError):
        stripe_client.construct_event(body.encode("utf-8"), stripe_signature(body, secret="whsec_other"))
    header = stripe_signature(body)
    with pytest.raises(stripe_client.WebhookSignatureError):
        stripe_client.construct_event(body.replace("x", "y").encode("utf-8"), header)

def test_construct_event_rejects_old_timestamp(stripe_signature):
    body = json.dumps({"id": "evt_1"})
    header = stripe_signature(body, timestamp=int(time.time()) - 3600)
    with pytest.raises(stripe_client.WebhookSignatureError):
        stripe_client.construct_event(body.encode("utf-8"), header)

def test_construct_event_without_secret_is_configuration_error(monkeypatch):
    monkeypatch.setattr("motoshop.payments.stripe_client.STRIPE_WEBHOOK_SECRET", "")
    with pytest.raises(stripe_client.PaymentProviderError):
        stripe_client.construct_event(b"{}", "t=1,v1=x")

def test_require_stripe_without_key(monkeypatch):
    monkeypatch.setattr("motoshop.payments.stripe_client.STRIPE_SECRET_KEY", "")
    assert stripe_client.is_configured() is False
    with pytest.raises(stripe_client.PaymentProviderError):
        stripe_client.require_stripe()

def test_create_session_pix_params(monkeypatch):
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return "session"

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    res = stripe_client.create_session(
        line_items=[{"quantity": 1}],
        payment_method="pix",
        success_url="https://s",
        cancel_url="https://c",
        metadata={"order_id": "9"},
        customer_email="ana@example.com",
    )
    assert res == "session"
    assert captured["mode"] == "payment"
    assert captured["payment_method_types"] == ["pix"]
    assert captured["payment_method_options"] == {"pix": {"expires_after_seconds": 3600}}
    assert captured["payment_intent_data"] == {"metadata": {"order_id": "9"}}
    assert captured["customer_email"] == "ana@example.com"

def test_create_session_card_has_no_pix_options(monkeypatch):
    captured = {}
    monkeypatch.setattr(stripe.checkout.Session, "create", lambda **p: captured.update(p) or "s")
    stripe_client.create_session(
        line_items=[], payment_method="card", success_url="s", cancel_url="c", metadata={"order_id": "1"},
    )
    assert captured["payment_method_types"] == ["card"]
    assert "payment_method_options" not in captured
    assert "customer_email" not in captured

def test_create_session_sdk_error_becomes_provider_error(monkeypatch):
    def boom(**params):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", boom)
    with pytest.raises(stripe_client.PaymentProviderError):
        stripe_client.create_session(
            line_items=[], payment_method="card", success_url="s", cancel_url="c", metadata={"order_id": "1"},
        )
