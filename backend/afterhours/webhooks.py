# afterhours/webhooks.py
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import stripe

from afterhours.payments import PaymentRelayError

logger = logging.getLogger(__name__)


class WebhookRejected(PaymentRelayError):
    status_code = 400


class WebhookVerifier:
    """
    Verifies Stripe-Signature before anything reads the payload.
    An unverified body is never trusted, so there is no "skip" mode.
    """

    def __init__(self, secret: str):
        self._secret = secret

    def verify(self, payload: bytes, sig_header: str | None) -> dict:
        """Returns the verified event as a plain dict."""
        if not self._secret:
            raise WebhookRejected("Webhook secret not configured")
        if not sig_header:
            raise WebhookRejected("Missing Stripe signature header")
        try:
            event = stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=self._secret)
        except ValueError as e:
            raise WebhookRejected("Invalid webhook payload") from e
        except stripe.SignatureVerificationError as e:
            raise WebhookRejected("Invalid Stripe webhook signature") from e
        # StripeObject has no .get on current SDKs
        return event.to_dict()


def _on_payment_succeeded(obj: dict) -> None:
    logger.info("payment_intent_succeeded", extra={"object_id": obj.get("id"), "amount": obj.get("amount")})


def _on_payment_failed(obj: dict) -> None:
    logger.warning("payment_intent_failed", extra={"object_id": obj.get("id")})


def _on_checkout_completed(obj: dict) -> None:
    logger.info("checkout_session_completed", extra={"object_id": obj.get("id")})


EVENT_HANDLERS: dict[str, Callable[[dict], None]] = {
    "payment_intent.succeeded": _on_payment_succeeded,
    "payment_intent.payment_failed": _on_payment_failed,
    "checkout.session.completed": _on_checkout_completed,
}


def handle_event(event: Mapping[str, Any]) -> bool:
    """Dispatch a verified event. Returns False for types nobody handles."""
    etype = (event.get("type") or "").strip()
    obj = (event.get("data") or {}).get("object") or {}

    handler = EVENT_HANDLERS.get(etype)
    if handler is None:
        logger.info("webhook_unhandled", extra={"event_type": etype, "event_id": event.get("id")})
        return False

    handler(obj)
    return True
