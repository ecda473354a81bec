"""
Bookmark endpoints (authenticated).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from slangdict.context import AuthContext
from slangdict.services import bookmarks as bookmark_service
from app.deps import require_auth


router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


@router.get("")
def list_bookmarks(auth: AuthContext = Depends(require_auth)):
    return bookmark_service.list_bookmarks(auth.user_id)


@router.post("/{term_id}")
def add_bookmark(term_id: int, auth: AuthContext = Depends(require_auth)):
    return bookmark_service.add_bookmark(auth.user_id, term_id)


@router.delete("/{term_id}")
def remove_bookmark(term_id: int, auth: AuthContext = Depends(require_auth)):
    return bookmark_service.remove_bookmark(auth.user_id, term_id)
