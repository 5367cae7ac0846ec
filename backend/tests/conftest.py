from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from afterhours.auth import create_access_token
from afterhours.main import app
from afterhours.routers import payments as payments_router

TEST_SECRET = "test-secret-key"


class FakeGateway:
    """Stands in for Stripe. Records every outbound call."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.error: Exception | None = None
        self.intent = {
            "id": "pi_123",
            "client_secret": "pi_123_secret_abc",
            "amount": None,
            "currency": "cad",
        }
        self.session = {"id": "cs_123", "url": "https://checkout.stripe.com/c/pay/cs_123"}

    def create_payment_intent(self, params: dict):
        self.calls.append(("payment_intent", params))
        if self.error:
            raise self.error
        return {**self.intent, "amount": params["amount"]}

    def create_checkout_session(self, params: dict):
        self.calls.append(("checkout_session", params))
        if self.error:
            raise self.error
        return dict(self.session)


@pytest.fixture(autouse=True)
def env(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", TEST_SECRET)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setenv("STRIPE_PUBLISHABLE_KEY", "pk_test_dummy")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    for name in (
        "BILLING_ENABLED",
        "ADMIN_EMAILS",
        "ADMIN_USERNAMES",
        "SUPPORT_PHONE",
        "SUPPORT_EMAIL",
        "API_BASE_URL",
        "PAYMENT_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(gateway: FakeGateway):
    app.dependency_overrides[payments_router.get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def token():
    def _make(subject: str = "customer1", **claims) -> str:
        return create_access_token(subject=subject, secret_key=TEST_SECRET, **claims)

    return _make


def bearer(tok: str) -> dict:
    return {"Authorization": f"Bearer {tok}"}


@pytest.fixture
def auth_headers(token):
    def _make(subject: str = "customer1", **claims) -> dict:
        return bearer(token(subject, **claims))

    return _make
