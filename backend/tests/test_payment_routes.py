from __future__ import annotations

import pytest
import stripe

from afterhours.config import Settings, get_settings
from afterhours.main import app


def test_create_payment_intent(client, gateway):
    r = client.post("/create-payment-intent", json={"amount": 19.99, "metadata": {"service": "ac-repair"}})

    assert r.status_code == 200
    body = r.json()
    assert body["clientSecret"] == "pi_123_secret_abc"
    assert body["amount"] == 1999
    assert body["currency"] == "cad"
    assert gateway.calls[0][1]["amount"] == 1999
    assert gateway.calls[0][1]["metadata"] == {"service": "ac-repair"}


def test_create_payment_intent_rounds_half_up(client, gateway):
    r = client.post("/create-payment-intent", json={"amount": 19.995})
    assert r.status_code == 200
    assert gateway.calls[0][1]["amount"] == 2000


@pytest.mark.parametrize(
    "body",
    [{}, {"amount": 0}, {"amount": -3}, {"amount": "lots"}, {"amount": 1e300}, {"amount": 1_000_000}],
)
def test_create_payment_intent_validation(client, gateway, body):
    r = client.post("/create-payment-intent", json=body)

    assert r.status_code == 400
    assert r.json() == {"error": "Valid amount is required"}
    assert gateway.calls == []


def test_create_payment_intent_rejects_non_string_metadata(client, gateway):
    r = client.post("/create-payment-intent", json={"amount": 5, "metadata": {"qty": {"n": 1}}})
    assert r.status_code == 400
    assert "error" in r.json()
    assert gateway.calls == []


def test_create_checkout_session(client, gateway):
    r = client.post(
        "/create-checkout-session",
        json={"priceId": "price_pro", "successUrl": "https://a/ok", "cancelUrl": "https://a/no"},
    )

    assert r.status_code == 200
    assert r.json() == {"url": "https://checkout.stripe.com/c/pay/cs_123"}
    params = gateway.calls[0][1]
    assert params["mode"] == "payment"
    assert params["metadata"] == {}


def test_checkout_missing_price_id_makes_no_call(client, gateway):
    r = client.post("/create-checkout-session", json={"successUrl": "https://a/ok", "cancelUrl": "https://a/no"})

    assert r.status_code == 400
    assert r.json() == {"error": "Price ID is required"}
    assert gateway.calls == []


def test_checkout_blank_price_id(client, gateway):
    r = client.post(
        "/create-checkout-session",
        json={"priceId": "   ", "successUrl": "https://a/ok", "cancelUrl": "https://a/no"},
    )
    assert r.status_code == 400
    assert gateway.calls == []


@pytest.mark.parametrize(
    "path,body",
    [
        ("/create-payment-intent", {"amount": 10}),
        ("/create-checkout-session", {"priceId": "p", "successUrl": "https://a", "cancelUrl": "https://b"}),
    ],
)
def test_provider_failure_is_structured_and_not_retried(client, gateway, path, body):
    gateway.error = stripe.CardError("Your card was declined.", None, code="card_declined")

    r = client.post(path, json=body)

    assert r.status_code == 500
    assert r.json()["error"] == "Your card was declined."
    assert r.json()["code"] == "card_declined"
    assert len(gateway.calls) == 1


def test_timeout_is_504(client, gateway):
    gateway.error = stripe.APIConnectionError("timed out")
    r = client.post("/create-payment-intent", json={"amount": 10})
    assert r.status_code == 504
    assert r.json()["error"] == "Payment provider did not respond in time"


def test_errors_carry_support_contact(client, gateway, monkeypatch):
    monkeypatch.setenv("SUPPORT_PHONE", "403-613-6014")
    gateway.error = stripe.APIConnectionError("down")

    r = client.post("/create-payment-intent", json={"amount": 10})
    assert r.json()["support"] == {"phone": "403-613-6014"}

    r = client.post("/create-checkout-session", json={})
    assert r.status_code == 400
    assert r.json()["support"] == {"phone": "403-613-6014"}


# -------------------------------------------------
# Without the fake gateway: configuration failures
# -------------------------------------------------
@pytest.fixture
def raw_client():
    from fastapi.testclient import TestClient

    app.dependency_overrides.clear()
    return TestClient(app)


def test_billing_disabled(raw_client, monkeypatch):
    monkeypatch.setenv("BILLING_ENABLED", "false")
    r = raw_client.post("/create-payment-intent", json={"amount": 10})
    assert r.status_code == 503
    assert r.json()["error"] == "Billing disabled"


def test_missing_secret_key(raw_client, monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "")
    r = raw_client.post("/create-checkout-session", json={"priceId": "p", "successUrl": "a", "cancelUrl": "b"})
    assert r.status_code == 500
    assert "STRIPE_SECRET_KEY" in r.json()["error"]
    assert "sk_" not in r.text


def test_missing_secret_key_does_not_hide_validation_error(raw_client, monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "")
    r = raw_client.post("/create-checkout-session", json={"successUrl": "a", "cancelUrl": "b"})
    assert r.status_code == 400
    assert r.json() == {"error": "Price ID is required"}


def test_billing_disabled_does_not_hide_validation_error(raw_client, monkeypatch):
    monkeypatch.setenv("BILLING_ENABLED", "false")
    r = raw_client.post("/create-payment-intent", json={"amount": 0})
    assert r.status_code == 400
    assert r.json() == {"error": "Valid amount is required"}


def test_billing_disabled_with_fake_gateway_makes_no_call(client, gateway, monkeypatch):
    monkeypatch.setenv("BILLING_ENABLED", "false")
    r = client.post("/create-checkout-session", json={"priceId": "p", "successUrl": "a", "cancelUrl": "b"})
    assert r.status_code == 503
    assert gateway.calls == []


def test_support_contact_follows_settings_override(client, gateway):
    app.dependency_overrides[get_settings] = lambda: Settings(
        stripe_secret_key="sk_test_dummy",
        support_email="help@afterhourshvac.ca",
    )
    gateway.error = stripe.APIConnectionError("down")

    r = client.post("/create-payment-intent", json={"amount": 10})
    assert r.status_code == 504
    assert r.json()["support"] == {"email": "help@afterhourshvac.ca"}

    r = client.post("/create-payment-intent", json={})
    assert r.status_code == 400
    assert r.json()["support"] == {"email": "help@afterhourshvac.ca"}
