"""
Local mirror of users owned by the external auth provider.

Votes, comments and bookmarks reference users.id, so an authenticated actor
must have a row here before it can write. Rows are keyed by the provider's
stable user id; this module never issues identities.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError

from slangdict.context import require_actor_id
from slangdict.db import new_session
from slangdict.errors import Conflict, InvalidArgument
from slangdict.models import User, UserRole
from slangdict.services.shared import (
    _isoformat,
    _validate_required_text,
    MAX_USERNAME_LENGTH,
    service_op,
)


def _serialize_user(record: User) -> dict:
    return {
        "id": record.id,
        "username": record.username,
        "role": record.role.value if record.role else UserRole.user.value,
        "created_at": _isoformat(record.created_at),
    }


def _coerce_role(role) -> UserRole:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError as exc:
        raise InvalidArgument(
            "role must be one of: user|moderator|admin",
            field="role",
            error_type="invalid_value",
        ) from exc


@service_op
def ensure_user(user_id: Optional[str], username: str, role: str = "user") -> dict:
    """Insert or refresh the local row for an externally authenticated user."""
    user_id = require_actor_id(user_id)
    _validate_required_text(username, "username", MAX_USERNAME_LENGTH)
    resolved_role = _coerce_role(role)

    db = new_session()
    try:
        user = db.get(User, user_id)
        if user is None:
            user = User(id=user_id, username=username.strip(), role=resolved_role)
            db.add(user)
        else:
            user.username = username.strip()
            user.role = resolved_role
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            user = db.get(User, user_id)
            if user is None or user.username != username.strip():
                raise Conflict("username is already taken", field="username") from exc
        return _serialize_user(user)
    finally:
        db.close()


@service_op
def get_user(user_id: str) -> Optional[dict]:
    db = new_session()
    try:
        user = db.get(User, user_id)
        return _serialize_user(user) if user else None
    finally:
        db.close()


__all__ = [
    "ensure_user",
    "get_user",
]
