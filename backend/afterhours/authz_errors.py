# afterhours/authz_errors.py
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from afterhours.access import AUTH_ROUTE, HOME_ROUTE, MEMBERSHIP_ROUTE

# detail code -> where a browser should land instead of seeing JSON
_FORBIDDEN_REDIRECTS = {
    "PRO_REQUIRED": MEMBERSHIP_ROUTE,
    "ADMIN_REQUIRED": HOME_ROUTE,
}


def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    # browsers usually send text/html
    return "text/html" in accept


def _detail_code(exc: StarletteHTTPException) -> str | None:
    detail = getattr(exc, "detail", None)
    if isinstance(detail, dict):
        code = detail.get("code")
        if isinstance(code, str):
            return code
    return None


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = getattr(exc, "headers", None)

    # Unauthenticated -> send to sign-in page in browser
    if exc.status_code == 401:
        if _wants_html(request):
            return RedirectResponse(url=AUTH_ROUTE, status_code=303)
        return JSONResponse(status_code=401, content={"detail": exc.detail}, headers=headers)

    # Forbidden -> membership upgrade page for PRO_REQUIRED, home for ADMIN_REQUIRED
    if exc.status_code == 403:
        target = _FORBIDDEN_REDIRECTS.get(_detail_code(exc) or "")
        if target and _wants_html(request):
            return RedirectResponse(url=target, status_code=303)
        return JSONResponse(status_code=403, content={"detail": exc.detail}, headers=headers)

    # Everything else: normal JSON
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)
