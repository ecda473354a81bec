"""
Actor identity passed from the HTTP layer into services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from slangdict.errors import AuthenticationRequired
from slangdict.models import MODERATION_ROLES, UserRole


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[str] = None
    username: Optional[str] = None
    role: UserRole = UserRole.user

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_moderator(self) -> bool:
        return self.is_authenticated and self.role in MODERATION_ROLES

    @staticmethod
    def from_values(
        user_id: Optional[str],
        username: Optional[str] = None,
        role: Optional[str] = None,
    ) -> "AuthContext":
        try:
            resolved_role = UserRole(role) if role else UserRole.user
        except ValueError:
            resolved_role = UserRole.user
        return AuthContext(user_id=user_id, username=username, role=resolved_role)


ANONYMOUS = AuthContext()


def require_actor_id(actor_id: Optional[str]) -> str:
    if not isinstance(actor_id, str) or not actor_id.strip():
        raise AuthenticationRequired(
            "An authenticated user is required for this operation",
            field="actor_id",
            error_type="required",
        )
    return actor_id


__all__ = [
    "AuthContext",
    "ANONYMOUS",
    "require_actor_id",
]
