# afterhours/admins.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from afterhours.config import Settings
from afterhours.viewer import ROLE_ADMIN, Viewer


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().lower()


@dataclass(frozen=True)
class AdminAllowList:
    """
    Admin identities injected at startup (ADMIN_EMAILS / ADMIN_USERNAMES).
    Matching is case-insensitive; blanks never match.
    """

    emails: frozenset[str] = frozenset()
    usernames: frozenset[str] = frozenset()

    @classmethod
    def build(cls, emails: Iterable[str] = (), usernames: Iterable[str] = ()) -> "AdminAllowList":
        return cls(
            emails=frozenset(e for e in (_norm(x) for x in emails) if e),
            usernames=frozenset(u for u in (_norm(x) for x in usernames) if u),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdminAllowList":
        return cls.build(settings.admin_emails, settings.admin_usernames)

    def contains(self, viewer: Viewer) -> bool:
        email = _norm(viewer.email)
        if email and email in self.emails:
            return True
        username = _norm(viewer.username)
        return bool(username) and username in self.usernames


def is_viewer_admin(viewer: Optional[Viewer], allow_list: Optional[AdminAllowList] = None) -> bool:
    """
    Admin if any of:
      - issuer set the is_admin flag
      - role == admin
      - identity is on the configured allow-list
    Unauthenticated viewers are never admins.
    """
    if viewer is None or not viewer.is_authenticated:
        return False
    if viewer.is_admin or viewer.role == ROLE_ADMIN:
        return True
    return allow_list is not None and allow_list.contains(viewer)
