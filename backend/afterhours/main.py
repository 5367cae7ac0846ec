# afterhours/main.py
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from dotenv import find_dotenv, load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# -------------------------------------------------
# LOAD .env ONCE (top of file, before any getenv use)
# -------------------------------------------------
load_dotenv(find_dotenv(usecwd=True))

from afterhours.authz_errors import http_exception_handler  # noqa: E402
from afterhours.config import Settings, get_settings  # noqa: E402
from afterhours.logging_config import configure_logging  # noqa: E402
from afterhours.payments import PaymentRelayError, configure_stripe_client  # noqa: E402
from afterhours.routers import access, payments  # noqa: E402
from afterhours.schemas import VALIDATION_MESSAGES  # noqa: E402

logger = logging.getLogger("afterhours")

_boot_settings = Settings.from_env()
configure_logging(_boot_settings)


# -------------------------------------------------
# APP SETUP
# -------------------------------------------------
app = FastAPI(title="AfterHours HVAC Backend", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_boot_settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(access.router)
app.include_router(payments.router)


@app.on_event("startup")
def configure_provider():
    settings = Settings.from_env()
    configure_stripe_client(settings.payment_timeout_seconds)
    if not settings.stripe_secret_key:
        logger.warning("stripe_not_configured")
    logger.info("startup")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "latency_ms": round((time.perf_counter() - started) * 1000, 1),
        },
    )
    return response


# -------------------------------------------------
# ERROR HANDLERS
# -------------------------------------------------
def _error_response(request: Request, status_code: int, payload: dict) -> JSONResponse:
    # handlers run outside dependency injection; honour overrides the same way
    settings_factory = request.app.dependency_overrides.get(get_settings, get_settings)
    support = settings_factory().support_contact()
    if support:
        payload = {**payload, "support": support}
    return JSONResponse(status_code=status_code, content=payload)


@app.exception_handler(PaymentRelayError)
async def payment_relay_error_handler(request: Request, exc: PaymentRelayError):
    return _error_response(request, exc.status_code, exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = "Invalid request body"
    for err in exc.errors():
        names = [p for p in err.get("loc", ()) if isinstance(p, str) and p in VALIDATION_MESSAGES]
        if names:
            message = VALIDATION_MESSAGES[names[0]]
            break
    return _error_response(request, 400, {"error": message})


app.add_exception_handler(StarletteHTTPException, http_exception_handler)


# -------------------------------------------------
# ROOT + HEALTH + PUBLIC CONFIG
# -------------------------------------------------
@app.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@app.get("/config")
def public_config(settings: Settings = Depends(get_settings)):
    """Values the frontend needs. Never includes the Stripe secret key."""
    return settings.public()
