"""
Access decisions. Pure functions, no I/O.

decide(viewer) is the Pro gate: loading / sign-in / membership / granted.
decide_route(...) is route protection: the same auth check plus optional
admin, pro and customer-only predicates, always evaluated in that order.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Optional

from afterhours.admins import AdminAllowList, is_viewer_admin
from afterhours.viewer import Viewer

AUTH_ROUTE = "/auth"
MEMBERSHIP_ROUTE = "/membership"
HOME_ROUTE = "/"


class GateState(str, enum.Enum):
    LOADING = "loading"
    SIGN_IN_REQUIRED = "sign_in_required"
    MEMBERSHIP_REQUIRED = "membership_required"
    GRANTED = "granted"


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    redirect: Optional[str] = None   # call-to-action route; None when granted/loading
    content: Any = None              # only ever set when granted

    @property
    def granted(self) -> bool:
        return self.state is GateState.GRANTED


def decide(viewer: Optional[Viewer], content: Any = None) -> GateDecision:
    """
    Pro gate. Total over every input, never raises.

    - pending                      -> LOADING (no content decision yet)
    - None / not authenticated     -> SIGN_IN_REQUIRED
    - authenticated, not entitled  -> MEMBERSHIP_REQUIRED
    - authenticated and entitled   -> GRANTED (content passed through unchanged)
    """
    if viewer is not None and viewer.pending:
        return GateDecision(GateState.LOADING)

    if viewer is None or not viewer.is_authenticated:
        return GateDecision(GateState.SIGN_IN_REQUIRED, redirect=AUTH_ROUTE)

    if not viewer.is_entitled:
        return GateDecision(GateState.MEMBERSHIP_REQUIRED, redirect=MEMBERSHIP_ROUTE)

    return GateDecision(GateState.GRANTED, content=content)


# -------------------------------------------------
# Route protection
# -------------------------------------------------
class RouteOutcome(str, enum.Enum):
    LOADING = "loading"
    ALLOW = "allow"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class RouteDecision:
    outcome: RouteOutcome
    redirect: Optional[str] = None
    reason: str = ""      # which predicate failed, e.g. "admin_required"

    @property
    def allowed(self) -> bool:
        return self.outcome is RouteOutcome.ALLOW


ALLOW = RouteDecision(RouteOutcome.ALLOW)

# A predicate returns None when the viewer passes, or the decision to stop with.
RoutePredicate = Callable[[Viewer, Optional[AdminAllowList]], Optional[RouteDecision]]


def requires_auth(viewer: Viewer, allow_list: Optional[AdminAllowList] = None) -> Optional[RouteDecision]:
    if viewer.pending:
        return RouteDecision(RouteOutcome.LOADING)
    if not viewer.is_authenticated:
        return RouteDecision(RouteOutcome.REDIRECT, redirect=AUTH_ROUTE, reason="sign_in_required")
    return None


def requires_admin(viewer: Viewer, allow_list: Optional[AdminAllowList] = None) -> Optional[RouteDecision]:
    if not is_viewer_admin(viewer, allow_list):
        return RouteDecision(RouteOutcome.REDIRECT, redirect=HOME_ROUTE, reason="admin_required")
    return None


def requires_entitlement(viewer: Viewer, allow_list: Optional[AdminAllowList] = None) -> Optional[RouteDecision]:
    # Pro flags only; role is not consulted here.
    if not viewer.is_entitled:
        return RouteDecision(RouteOutcome.REDIRECT, redirect=MEMBERSHIP_ROUTE, reason="membership_required")
    return None


def requires_customer(viewer: Viewer, allow_list: Optional[AdminAllowList] = None) -> Optional[RouteDecision]:
    """Customer portal pages are for plain customers: Pro members and admins go home."""
    if viewer.is_entitled or is_viewer_admin(viewer, allow_list):
        return RouteDecision(RouteOutcome.REDIRECT, redirect=HOME_ROUTE, reason="customer_only")
    return None


def route_predicates(
    *,
    admin_only: bool = False,
    pro_only: bool = False,
    customer_only: bool = False,
) -> list[RoutePredicate]:
    """auth -> role -> entitlement -> customer. Order is fixed."""
    preds: list[RoutePredicate] = [requires_auth]
    if admin_only:
        preds.append(requires_admin)
    if pro_only:
        preds.append(requires_entitlement)
    if customer_only:
        preds.append(requires_customer)
    return preds


def decide_route(
    viewer: Optional[Viewer],
    *,
    admin_only: bool = False,
    pro_only: bool = False,
    customer_only: bool = False,
    allow_list: Optional[AdminAllowList] = None,
) -> RouteDecision:
    v = viewer if viewer is not None else Viewer.anonymous()
    for pred in route_predicates(admin_only=admin_only, pro_only=pro_only, customer_only=customer_only):
        stop = pred(v, allow_list)
        if stop is not None:
            return stop
    return ALLOW
