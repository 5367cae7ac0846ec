# afterhours/routers/payments.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from afterhours.config import Settings, get_settings
from afterhours.payments import PaymentGateway, PaymentRelay, StripeGateway
from afterhours.schemas import (
    CheckoutSessionIn,
    CheckoutSessionOut,
    ErrorOut,
    PaymentIntentIn,
    PaymentIntentOut,
)
from afterhours.webhooks import WebhookVerifier, handle_event

# Paths are unprefixed: the frontend calls `${API_BASE_URL}/create-payment-intent`.
router = APIRouter(tags=["payments"])

_ERRORS = {
    400: {"model": ErrorOut},
    500: {"model": ErrorOut},
    503: {"model": ErrorOut},
    504: {"model": ErrorOut},
}


# -----------------------------
# Dependencies
# -----------------------------
def get_gateway(settings: Settings = Depends(get_settings)) -> PaymentGateway:
    # missing key is reported by the gateway when a call is made
    return StripeGateway(settings.stripe_secret_key)


def get_relay(
    gateway: PaymentGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> PaymentRelay:
    return PaymentRelay(gateway, enabled=settings.billing_enabled)


def get_webhook_verifier(settings: Settings = Depends(get_settings)) -> WebhookVerifier:
    return WebhookVerifier(settings.stripe_webhook_secret)


# -----------------------------
# Endpoints
# -----------------------------
@router.post("/create-payment-intent", response_model=PaymentIntentOut, responses=_ERRORS)
def create_payment_intent(payload: PaymentIntentIn, relay: PaymentRelay = Depends(get_relay)):
    result = relay.create_payment_intent(
        payload.amount,
        payload.metadata,
        description=payload.description,
        customer_email=str(payload.customer_email) if payload.customer_email else None,
    )
    return result.to_payload()


@router.post("/create-checkout-session", response_model=CheckoutSessionOut, responses=_ERRORS)
def create_checkout_session(payload: CheckoutSessionIn, relay: PaymentRelay = Depends(get_relay)):
    result = relay.create_checkout_session(
        payload.price_id,
        payload.success_url,
        payload.cancel_url,
        payload.metadata,
    )
    return result.to_payload()


@router.post("/webhook", responses={400: {"model": ErrorOut}})
async def stripe_webhook(request: Request, verifier: WebhookVerifier = Depends(get_webhook_verifier)):
    """Stripe callbacks. Signature is verified before the body is looked at."""
    payload = await request.body()
    event = verifier.verify(payload, request.headers.get("stripe-signature"))
    handle_event(event)
    return {"received": True}
