# afterhours/payments.py
"""
Payment relay: forwards one request to Stripe and relays the answer.

Holds no state between calls. No retries, no idempotency keys, no
dedupe: every call is one fresh Stripe request. Stripe is the system of
record; nothing here is persisted.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Protocol

import stripe

logger = logging.getLogger(__name__)

# Relay-side constants. Callers cannot change these.
CURRENCY = "cad"
CHECKOUT_MODE = "payment"
CHECKOUT_ALLOWED_COUNTRIES = ["CA"]
# Largest amount Stripe accepts, in cents
MAX_MINOR_UNITS = 99_999_999


# -------------------------------------------------
# Errors
# -------------------------------------------------
class PaymentRelayError(Exception):
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, type: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type

    def to_payload(self) -> dict:
        payload: dict[str, Any] = {"error": self.message}
        if self.code:
            payload["code"] = self.code
        if self.type:
            payload["type"] = self.type
        return payload


class PaymentValidationError(PaymentRelayError):
    status_code = 400


class ProviderError(PaymentRelayError):
    """Stripe rejected or failed the call. Message is the provider's, unmasked."""

    status_code = 500


class ProviderTimeout(PaymentRelayError):
    status_code = 504


class RelayNotConfigured(PaymentRelayError):
    status_code = 500


class BillingDisabled(PaymentRelayError):
    status_code = 503


# -------------------------------------------------
# Amounts
# -------------------------------------------------
def to_minor_units(amount: Any) -> int:
    """
    Major units -> integer minor units, rounded half-up.

    Floats go through str() first so 19.995 is treated as the decimal the
    caller typed (-> 2000), not its binary approximation (-> 1999).
    """
    if isinstance(amount, bool) or amount is None:
        raise PaymentValidationError("Valid amount is required")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise PaymentValidationError("Valid amount is required")

    try:
        value = Decimal(str(amount)) if isinstance(amount, float) else Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise PaymentValidationError("Valid amount is required")

    if not value.is_finite() or value <= 0:
        raise PaymentValidationError("Valid amount is required")

    try:
        minor = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # more digits than the decimal context holds
        raise PaymentValidationError("Valid amount is required")
    if minor < 1 or minor > MAX_MINOR_UNITS:
        raise PaymentValidationError("Valid amount is required")
    return minor


def _clean_metadata(metadata: Optional[Mapping[str, Any]]) -> dict[str, str]:
    if metadata is None:
        return {}
    if not isinstance(metadata, Mapping):
        raise PaymentValidationError("Metadata must be an object")
    for k, v in metadata.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise PaymentValidationError("Metadata keys and values must be strings")
    return dict(metadata)


def _required(value: Any, message: str) -> str:
    s = value.strip() if isinstance(value, str) else ""
    if not s:
        raise PaymentValidationError(message)
    return s


# -------------------------------------------------
# Stripe gateway
# -------------------------------------------------
class PaymentGateway(Protocol):
    def create_payment_intent(self, params: dict) -> Mapping[str, Any]: ...

    def create_checkout_session(self, params: dict) -> Mapping[str, Any]: ...


def configure_stripe_client(timeout_seconds: float) -> None:
    """Process-wide Stripe HTTP settings: bounded timeout, no automatic retries."""
    stripe.max_network_retries = 0
    stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)


class StripeGateway:
    """Thin adapter over the stripe SDK. The secret key never leaves this object."""

    def __init__(self, api_key: str):
        self._api_key = api_key

    def _key(self) -> str:
        # checked at call time so request validation errors win over config errors
        if not self._api_key:
            raise RelayNotConfigured("Stripe not configured (missing STRIPE_SECRET_KEY)")
        return self._api_key

    # StripeObject is not a dict on current SDKs; hand the relay plain dicts.
    def create_payment_intent(self, params: dict) -> Mapping[str, Any]:
        return stripe.PaymentIntent.create(api_key=self._key(), **params).to_dict()

    def create_checkout_session(self, params: dict) -> Mapping[str, Any]:
        return stripe.checkout.Session.create(api_key=self._key(), **params).to_dict()


# -------------------------------------------------
# Relay
# -------------------------------------------------
@dataclass(frozen=True)
class PaymentIntentResult:
    client_secret: str
    id: Optional[str] = None
    amount: Optional[int] = None
    currency: str = CURRENCY

    def to_payload(self) -> dict:
        return {
            "clientSecret": self.client_secret,
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class CheckoutSessionResult:
    url: str

    def to_payload(self) -> dict:
        return {"url": self.url}


class PaymentRelay:
    def __init__(self, gateway: PaymentGateway, *, enabled: bool = True):
        self.gateway = gateway
        self.enabled = enabled

    def create_payment_intent(
        self,
        amount: Any,
        metadata: Optional[Mapping[str, Any]] = None,
        *,
        description: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> PaymentIntentResult:
        params: dict[str, Any] = {
            "amount": to_minor_units(amount),
            "currency": CURRENCY,
            "metadata": _clean_metadata(metadata),
            "automatic_payment_methods": {"enabled": True},
        }
        if description:
            params["description"] = description
        if customer_email:
            params["receipt_email"] = customer_email

        intent = self._call("payment_intent", self.gateway.create_payment_intent, params)
        logger.info(
            "payment_intent_created",
            extra={"object_id": intent.get("id"), "amount": params["amount"], "currency": CURRENCY},
        )
        return PaymentIntentResult(
            client_secret=intent["client_secret"],
            id=intent.get("id"),
            amount=intent.get("amount", params["amount"]),
            currency=intent.get("currency", CURRENCY),
        )

    def create_checkout_session(
        self,
        price_id: Any,
        success_url: Any,
        cancel_url: Any,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> CheckoutSessionResult:
        params = {
            "payment_method_types": ["card"],
            "line_items": [{"price": _required(price_id, "Price ID is required"), "quantity": 1}],
            "mode": CHECKOUT_MODE,
            "success_url": _required(success_url, "Success URL is required"),
            "cancel_url": _required(cancel_url, "Cancel URL is required"),
            "metadata": _clean_metadata(metadata),
            "billing_address_collection": "required",
            "shipping_address_collection": {"allowed_countries": list(CHECKOUT_ALLOWED_COUNTRIES)},
        }

        session = self._call("checkout_session", self.gateway.create_checkout_session, params)
        logger.info(
            "checkout_session_created",
            extra={"object_id": session.get("id"), "price_id": params["line_items"][0]["price"]},
        )
        return CheckoutSessionResult(url=session["url"])

    def _call(self, kind: str, fn, params: dict) -> Mapping[str, Any]:
        """Exactly one outbound call. Failures are translated, never retried."""
        if not self.enabled:
            raise BillingDisabled("Billing disabled")
        try:
            return fn(params)
        except PaymentRelayError:
            raise
        except stripe.APIConnectionError as e:
            logger.warning(f"{kind}_provider_unreachable", extra={"error": e.user_message or str(e)})
            raise ProviderTimeout("Payment provider did not respond in time") from e
        except stripe.StripeError as e:
            err_type = getattr(getattr(e, "error", None), "type", None)
            logger.warning(f"{kind}_provider_error", extra={"error": e.user_message or str(e), "code": e.code})
            raise ProviderError(e.user_message or str(e), code=e.code, type=err_type) from e
        except Exception as e:
            logger.exception(f"{kind}_failed")
            raise ProviderError(str(e) or f"Failed to create {kind.replace('_', ' ')}") from e
