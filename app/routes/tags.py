"""
Tag listing endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter

from slangdict.services import tags as tag_service


router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("")
def list_tags():
    return tag_service.list_tags()


@router.get("/{slug}")
def list_terms_for_tag(slug: str):
    return tag_service.list_terms_for_tag(slug)
