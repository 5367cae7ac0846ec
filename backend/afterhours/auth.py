# afterhours/auth.py
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from afterhours.access import GateState, decide, decide_route
from afterhours.admins import AdminAllowList
from afterhours.config import Settings, get_settings
from afterhours.viewer import Viewer, normalize_role

# -------------------------------------------------------------------
# Settings
# -------------------------------------------------------------------
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 1440

# Tokens are issued by the site's auth service; we only verify them.
# auto_error=False: a missing token is an anonymous viewer, not a 401.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth", auto_error=False)


# -------------------------------------------------------------------
# JWT create/verify
# -------------------------------------------------------------------
def create_access_token(
    *,
    subject: str,
    secret_key: str,
    email: Optional[str] = None,
    role: Optional[str] = None,
    has_pro_access: bool = False,
    has_pro: bool = False,
    is_admin: bool = False,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Token claims:
      sub: username
      eml: email
      rol: role (user/admin)
      pro: has_pro_access
      lgp: has_pro (legacy flag, do not remove)
      adm: admin flag
      exp: expiry datetime
    """
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": subject,
        "eml": email,
        "rol": normalize_role(role),
        "pro": bool(has_pro_access),
        "lgp": bool(has_pro),
        "adm": bool(is_admin),
        "exp": expire,
    }
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def decode_token(token: str, secret_key: str) -> dict:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
        if not payload.get("sub"):
            raise ValueError("Token missing required claims")
        return payload
    except (JWTError, ValueError) as e:
        raise ValueError("Invalid token") from e


def viewer_from_token(token: Optional[str], secret_key: str) -> Viewer:
    """Missing, expired or forged tokens all read as an anonymous viewer."""
    if not token:
        return Viewer.anonymous()
    try:
        claims = decode_token(token, secret_key)
    except ValueError:
        return Viewer.anonymous()
    return Viewer.from_claims(claims)


# -------------------------------------------------------------------
# Dependencies
# -------------------------------------------------------------------
def get_viewer(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> Viewer:
    return viewer_from_token(token, settings.secret_key)


def get_admin_allow_list(settings: Settings = Depends(get_settings)) -> AdminAllowList:
    return AdminAllowList.from_settings(settings)


def _sign_in_required() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "SIGN_IN_REQUIRED", "message": "You need to sign in to access professional tools."},
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_viewer(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    if not viewer.is_authenticated:
        raise _sign_in_required()
    return viewer


def require_pro(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    """
    Pro gate as a dependency:
      SIGN_IN_REQUIRED -> 401
      MEMBERSHIP_REQUIRED -> 403 PRO_REQUIRED
    """
    decision = decide(viewer)
    if decision.state is GateState.SIGN_IN_REQUIRED:
        raise _sign_in_required()
    if decision.state is not GateState.GRANTED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "PRO_REQUIRED",
                "message": "This professional tool requires an active Pro membership.",
            },
        )
    return viewer


def require_admin(
    viewer: Viewer = Depends(get_viewer),
    allow_list: AdminAllowList = Depends(get_admin_allow_list),
) -> Viewer:
    decision = decide_route(viewer, admin_only=True, allow_list=allow_list)
    if decision.allowed:
        return viewer
    if decision.reason == "sign_in_required":
        raise _sign_in_required()
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"code": "ADMIN_REQUIRED", "message": "You need administrator privileges to access this page."},
    )
