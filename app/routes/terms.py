"""
Read-only term endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from slangdict.context import AuthContext
from slangdict.services import terms as term_service
from app.deps import get_auth_context


router = APIRouter(prefix="/api/terms", tags=["terms"])


@router.get("")
def list_terms(limit: int = 20, offset: int = 0):
    return term_service.list_terms(limit=limit, offset=offset)


@router.get("/recent")
def list_recent_terms(limit: int = 20):
    return term_service.list_recent_terms(limit=limit)


@router.get("/{slug}")
def get_term(slug: str, auth: AuthContext = Depends(get_auth_context)):
    return term_service.get_term(slug, actor_id=auth.user_id)
