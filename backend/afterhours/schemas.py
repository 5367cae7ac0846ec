# afterhours/schemas.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# -----------------------------
# PAYMENTS
# -----------------------------
class PaymentIntentIn(BaseModel):
    # major units (dollars); the relay converts to cents
    amount: float = Field(gt=0, allow_inf_nan=False)
    metadata: dict[str, str] = Field(default_factory=dict)
    description: Optional[str] = None
    customer_email: Optional[EmailStr] = None


class PaymentIntentOut(BaseModel):
    clientSecret: str
    id: Optional[str] = None
    amount: Optional[int] = None
    currency: str


class CheckoutSessionIn(BaseModel):
    price_id: str = Field(alias="priceId", min_length=1)
    success_url: str = Field(alias="successUrl", min_length=1)
    cancel_url: str = Field(alias="cancelUrl", min_length=1)
    metadata: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class CheckoutSessionOut(BaseModel):
    url: str


class ErrorOut(BaseModel):
    error: str
    code: Optional[str] = None
    type: Optional[str] = None
    support: Optional[dict[str, str]] = None


# -----------------------------
# ACCESS
# -----------------------------
class AccessStatusOut(BaseModel):
    state: str
    redirect: Optional[str] = None
    is_authenticated: bool
    is_entitled: bool
    is_admin: bool


# Field name / alias -> message the frontend shows on a 400
VALIDATION_MESSAGES = {
    "amount": "Valid amount is required",
    "priceId": "Price ID is required",
    "price_id": "Price ID is required",
    "successUrl": "Success URL is required",
    "success_url": "Success URL is required",
    "cancelUrl": "Cancel URL is required",
    "cancel_url": "Cancel URL is required",
    "metadata": "Metadata keys and values must be strings",
    "customer_email": "Valid customer email is required",
}
