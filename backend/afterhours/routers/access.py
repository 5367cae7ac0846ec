# afterhours/routers/access.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from afterhours import auth
from afterhours.access import decide
from afterhours.admins import AdminAllowList, is_viewer_admin
from afterhours.schemas import AccessStatusOut
from afterhours.viewer import Viewer

router = APIRouter(tags=["access"])

# What a Pro membership unlocks. Served only behind require_pro.
PRO_TOOLS = (
    {"slug": "material-calculator", "title": "Advanced material calculator with real supplier pricing"},
    {"slug": "commercial-load", "title": "Commercial load calculation tools"},
    {"slug": "pdf-export", "title": "Professional PDF export and templates"},
    {"slug": "priority-support", "title": "Priority customer support"},
)


@router.get("/access/status", response_model=AccessStatusOut)
def access_status(
    viewer: Viewer = Depends(auth.get_viewer),
    allow_list: AdminAllowList = Depends(auth.get_admin_allow_list),
):
    """
    Frontend guard calls this to decide which screen to render.
    Never fails: a missing/bad token is just "sign_in_required".
    """
    decision = decide(viewer)
    return {
        "state": decision.state.value,
        "redirect": decision.redirect,
        "is_authenticated": viewer.is_authenticated,
        "is_entitled": viewer.is_entitled,
        "is_admin": is_viewer_admin(viewer, allow_list),
    }


@router.get("/pro/tools")
def pro_tools(viewer: Viewer = Depends(auth.require_pro)):
    return {"ok": True, "tools": list(PRO_TOOLS)}


@router.get("/admin/ping")
def admin_ping(admin: Viewer = Depends(auth.require_admin)):
    return {"ok": True, "username": admin.username, "email": admin.email}
