"""
Comment thread endpoints.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from slangdict.context import AuthContext
from slangdict.services import comments as comment_service
from app.deps import require_auth


router = APIRouter(prefix="/api", tags=["comments"])


class CommentCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: Optional[Any] = None
    parent_id: Optional[Any] = Field(default=None, alias="parentId")


@router.get("/terms/{term_id}/comments")
def get_thread(term_id: int):
    return comment_service.get_comment_thread(term_id)


@router.post("/terms/{term_id}/comments", status_code=201)
def create_comment(
    term_id: int,
    body: CommentCreateRequest,
    auth: AuthContext = Depends(require_auth),
):
    return comment_service.add_comment(auth.user_id, term_id, body.content, body.parent_id)


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: int,
    auth: AuthContext = Depends(require_auth),
):
    return comment_service.soft_delete_comment(comment_id, auth)
