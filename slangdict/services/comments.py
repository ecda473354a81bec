"""
Threaded comments on terms.

Comments form a tree over a flat table via parent_id. Deleting is a soft
delete: the row (and every reply under it) stays addressable and only the
content is hidden when serialized.
"""

from __future__ import annotations

from typing import Iterable, Optional

from slangdict.context import AuthContext, require_actor_id
from slangdict.db import new_session
from slangdict.errors import AuthenticationRequired, InvalidArgument, NotFound, PermissionDenied
from slangdict.models import Comment, Term, User
from slangdict.services.shared import (
    _isoformat,
    _validate_id,
    _validate_optional_id,
    _validate_required_text,
    MAX_COMMENT_LENGTH,
    service_op,
    logger,
)


def _serialize_comment(record: Comment) -> dict:
    return {
        "id": record.id,
        "term_id": record.term_id,
        "parent_id": record.parent_id,
        "user_id": record.user_id,
        "content": None if record.is_deleted else record.content,
        "is_deleted": bool(record.is_deleted),
        "upvotes": record.upvotes,
        "downvotes": record.downvotes,
        "created_at": _isoformat(record.created_at),
    }


def build_comment_tree(comments: Iterable[dict]) -> list[dict]:
    """
    Nest serialized comments under their parents.

    Returns the root comments, each with a "replies" list, in input order.
    A comment whose parent is missing from the input is treated as a root.
    """
    nodes: dict[int, dict] = {}
    ordered: list[dict] = []
    for comment in comments:
        node = dict(comment)
        node["replies"] = []
        nodes[node["id"]] = node
        ordered.append(node)

    roots: list[dict] = []
    for node in ordered:
        parent = nodes.get(node.get("parent_id"))
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent["replies"].append(node)
    return roots


@service_op
def add_comment(
    actor_id: Optional[str],
    term_id: int,
    content: str,
    parent_id: Optional[int] = None,
) -> dict:
    """Add a comment (or a reply when parent_id is given) to a term."""
    actor_id = require_actor_id(actor_id)
    term_id = _validate_id(term_id, "term_id")
    parent_id = _validate_optional_id(parent_id, "parent_id")
    _validate_required_text(content, "content", MAX_COMMENT_LENGTH)

    db = new_session()
    try:
        if db.get(User, actor_id) is None:
            raise AuthenticationRequired("Unknown user", field="actor_id", error_type="unknown_user")
        if db.get(Term, term_id) is None:
            raise NotFound("Term not found", field="term_id")

        if parent_id is not None:
            parent = db.get(Comment, parent_id)
            if parent is None or parent.term_id != term_id:
                raise InvalidArgument(
                    "parent_id must reference a comment on the same term",
                    field="parent_id",
                    error_type="invalid_parent",
                )

        comment = Comment(
            term_id=term_id,
            user_id=actor_id,
            parent_id=parent_id,
            content=content.strip(),
            upvotes=0,
            downvotes=0,
            is_deleted=False,
        )
        db.add(comment)
        db.commit()
        return _serialize_comment(comment)
    finally:
        db.close()


@service_op
def soft_delete_comment(comment_id: int, actor: Optional[AuthContext]) -> dict:
    """Hide a comment's content; allowed for its author and for moderators."""
    if actor is None or not actor.is_authenticated:
        raise AuthenticationRequired(
            "An authenticated user is required for this operation",
            field="actor_id",
            error_type="required",
        )
    comment_id = _validate_id(comment_id, "comment_id")

    db = new_session()
    try:
        comment = db.query(Comment).filter(Comment.id == comment_id).with_for_update().first()
        if comment is None:
            raise NotFound("Comment not found", field="comment_id")
        if comment.user_id != actor.user_id and not actor.is_moderator:
            raise PermissionDenied(
                "Only the author or a moderator can delete this comment",
                field="comment_id",
            )

        already_deleted = bool(comment.is_deleted)
        if not already_deleted:
            comment.is_deleted = True
            db.commit()
            logger.info(
                "comment_soft_deleted",
                extra={
                    "comment_id": comment_id,
                    "by_moderator": comment.user_id != actor.user_id,
                },
            )
        return {
            "status": "already_deleted" if already_deleted else "deleted",
            "comment": _serialize_comment(comment),
        }
    finally:
        db.close()


@service_op
def list_comments(term_id: int) -> list[dict]:
    """All comments for a term, oldest first, as a flat list."""
    term_id = _validate_id(term_id, "term_id")
    db = new_session()
    try:
        if db.get(Term, term_id) is None:
            raise NotFound("Term not found", field="term_id")
        rows = (
            db.query(Comment)
            .filter(Comment.term_id == term_id)
            .order_by(Comment.created_at, Comment.id)
            .all()
        )
        return [_serialize_comment(row) for row in rows]
    finally:
        db.close()


def get_comment_thread(term_id: int) -> dict:
    comments = list_comments(term_id)
    return {
        "status": "ok",
        "term_id": term_id,
        "count": len(comments),
        "comments": build_comment_tree(comments),
    }


__all__ = [
    "add_comment",
    "soft_delete_comment",
    "list_comments",
    "build_comment_tree",
    "get_comment_thread",
]
