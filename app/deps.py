"""
Dependency helpers for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends

import slangdict.config as config
from slangdict.context import ANONYMOUS, AuthContext, require_actor_id
from slangdict.errors import Conflict
from slangdict.services import users as users_service
from app.auth import SessionUser, get_current_user


def _mirror_user(auth: AuthContext) -> None:
    username = (auth.username or "").strip()[: config.MAX_USERNAME_LENGTH]
    username = username or auth.user_id[: config.MAX_USERNAME_LENGTH]
    try:
        users_service.ensure_user(auth.user_id, username, auth.role)
    except Conflict:
        # Display names are not unique upstream; disambiguate with the id.
        suffix = f"-{auth.user_id[:8]}"
        users_service.ensure_user(
            auth.user_id,
            username[: config.MAX_USERNAME_LENGTH - len(suffix)] + suffix,
            auth.role,
        )


def get_auth_context(
    user: Optional[SessionUser] = Depends(get_current_user),
) -> AuthContext:
    if user is None:
        return ANONYMOUS
    auth = AuthContext.from_values(user.id, user.name, user.role)
    _mirror_user(auth)
    return auth


def require_auth(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    require_actor_id(auth.user_id)
    return auth
