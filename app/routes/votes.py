"""
Vote endpoints for definitions and comments.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from slangdict.context import AuthContext
from slangdict.services import votes as vote_service
from app.deps import require_auth


router = APIRouter(prefix="/api", tags=["votes"])


class DefinitionVoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    definition_id: Optional[Any] = Field(default=None, alias="definitionId")
    vote_type: Optional[Any] = Field(default=None, alias="voteType")


class CommentVoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vote_type: Optional[Any] = Field(default=None, alias="voteType")


@router.post("/vote")
def vote_on_definition(
    body: DefinitionVoteRequest,
    auth: AuthContext = Depends(require_auth),
):
    result = vote_service.cast_definition_vote(auth.user_id, body.definition_id, body.vote_type)
    return {"success": True, **result}


@router.post("/comments/{comment_id}/vote")
def vote_on_comment(
    comment_id: int,
    body: CommentVoteRequest,
    auth: AuthContext = Depends(require_auth),
):
    result = vote_service.cast_comment_vote(auth.user_id, comment_id, body.vote_type)
    return {"success": True, **result}
