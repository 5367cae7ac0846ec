"""
Viewer snapshot: who is looking at the page, as told by the auth issuer.

The two entitlement flags (has_pro_access, has_pro) only exist at this
boundary. Everything downstream reads `is_entitled`.
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

ROLE_USER = "user"
ROLE_ADMIN = "admin"
VALID_ROLES = {ROLE_USER, ROLE_ADMIN}

Role = Literal["user", "admin"]


def normalize_role(value: Any) -> str:
    r = str(value or "").strip().lower()
    return r if r in VALID_ROLES else ROLE_USER


class Viewer(BaseModel):
    """Read-only snapshot for one decision. Accepts camelCase or snake_case keys."""

    is_authenticated: bool = Field(
        False, validation_alias=AliasChoices("is_authenticated", "isAuthenticated")
    )
    has_pro_access: bool = Field(
        False, validation_alias=AliasChoices("has_pro_access", "hasProAccess")
    )
    # legacy flag, same meaning as has_pro_access
    has_pro: bool = Field(False, validation_alias=AliasChoices("has_pro", "hasPro"))
    role: Role = ROLE_USER
    is_admin: bool = Field(False, validation_alias=AliasChoices("is_admin", "isAdmin"))
    email: Optional[str] = None
    username: Optional[str] = None
    # auth resolution still in flight
    pending: bool = Field(False, validation_alias=AliasChoices("pending", "isLoading"))

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, v: Any) -> str:
        return normalize_role(v)

    @property
    def is_entitled(self) -> bool:
        return self.has_pro_access or self.has_pro

    @classmethod
    def anonymous(cls) -> "Viewer":
        return cls()

    @classmethod
    def loading(cls) -> "Viewer":
        return cls(pending=True)

    @classmethod
    def from_claims(cls, claims: dict) -> "Viewer":
        """
        Token claims (see auth.create_access_token):
          sub: username
          eml: email
          rol: role
          pro: has_pro_access
          lgp: has_pro (legacy)
          adm: is_admin
        """
        return cls(
            is_authenticated=True,
            username=claims.get("sub"),
            email=claims.get("eml"),
            role=claims.get("rol"),
            has_pro_access=bool(claims.get("pro", False)),
            has_pro=bool(claims.get("lgp", False)),
            is_admin=bool(claims.get("adm", False)),
        )
