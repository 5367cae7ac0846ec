# afterhours/config.py
"""
Runtime configuration, read from the environment on every call.

.env is loaded once by main.py before anything calls get_settings().
Nothing in here is secret-aware except Settings.public(), which is the
ONLY view of the config that may be returned to a browser.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_API_BASE_URL = "http://localhost:3001"
DEFAULT_TIMEOUT_SECONDS = 10.0

DEFAULT_CORS_ORIGINS: tuple[str, ...] = (
    "http://localhost:3000",
    "https://afterhourshvac.ca",
    "https://www.afterhourshvac.ca",
)


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _bool_env(name: str, default: bool) -> bool:
    v = _env(name).lower()
    if not v:
        return default
    return v in ("1", "true", "yes", "y", "on")


def _float_env(name: str, default: float) -> float:
    try:
        v = float(_env(name) or default)
    except ValueError:
        return default
    return v if v > 0 else default


def _csv_env(name: str) -> tuple[str, ...]:
    return tuple(p.strip() for p in _env(name).split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    environment: str = "development"

    # Stripe
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    stripe_webhook_secret: str = ""
    billing_enabled: bool = True
    payment_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # Frontend -> relay base URL (overridable per deployment)
    api_base_url: str = DEFAULT_API_BASE_URL
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS

    # Auth (tokens are issued elsewhere; we only verify them)
    secret_key: str = "CHANGE_ME_TO_SOMETHING_RANDOM_AND_LONG"
    admin_emails: tuple[str, ...] = field(default_factory=tuple)
    admin_usernames: tuple[str, ...] = field(default_factory=tuple)

    # Human fallback shown alongside relay errors
    support_phone: str = ""
    support_email: str = ""

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=_env("APP_ENV", "development"),
            stripe_secret_key=_env("STRIPE_SECRET_KEY"),
            stripe_publishable_key=_env("STRIPE_PUBLISHABLE_KEY"),
            stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET"),
            billing_enabled=_bool_env("BILLING_ENABLED", True),
            payment_timeout_seconds=_float_env("PAYMENT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            api_base_url=_env("API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            cors_origins=_csv_env("CORS_ORIGINS") or DEFAULT_CORS_ORIGINS,
            secret_key=_env("SECRET_KEY", "CHANGE_ME_TO_SOMETHING_RANDOM_AND_LONG"),
            admin_emails=_csv_env("ADMIN_EMAILS"),
            admin_usernames=_csv_env("ADMIN_USERNAMES"),
            support_phone=_env("SUPPORT_PHONE"),
            support_email=_env("SUPPORT_EMAIL"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_json=_bool_env("LOG_JSON", True),
        )

    def support_contact(self) -> dict | None:
        """Fallback contact channel for error payloads, or None if unset."""
        contact = {}
        if self.support_phone:
            contact["phone"] = self.support_phone
        if self.support_email:
            contact["email"] = self.support_email
        return contact or None

    def public(self) -> dict:
        return {
            "api_base_url": self.api_base_url,
            "stripe_publishable_key": self.stripe_publishable_key,
            "billing_enabled": self.billing_enabled,
        }


def get_settings() -> Settings:
    """FastAPI dependency; tests override it via app.dependency_overrides."""
    return Settings.from_env()
