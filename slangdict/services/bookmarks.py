"""
Per-user term bookmarks.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError

from slangdict.context import require_actor_id
from slangdict.db import new_session
from slangdict.errors import AuthenticationRequired, NotFound
from slangdict.models import Bookmark, Term, User
from slangdict.services.shared import (
    _isoformat,
    _validate_id,
    service_op,
)


def _find_bookmark(db, actor_id: str, term_id: int) -> Optional[Bookmark]:
    return (
        db.query(Bookmark)
        .filter(Bookmark.user_id == actor_id)
        .filter(Bookmark.term_id == term_id)
        .first()
    )


@service_op
def add_bookmark(actor_id: Optional[str], term_id: int) -> dict:
    """Bookmark a term; bookmarking twice is a no-op."""
    actor_id = require_actor_id(actor_id)
    term_id = _validate_id(term_id, "term_id")

    db = new_session()
    try:
        if db.get(User, actor_id) is None:
            raise AuthenticationRequired("Unknown user", field="actor_id", error_type="unknown_user")
        if db.get(Term, term_id) is None:
            raise NotFound("Term not found", field="term_id")

        if _find_bookmark(db, actor_id, term_id):
            return {"status": "exists", "term_id": term_id}

        db.add(Bookmark(user_id=actor_id, term_id=term_id))
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request created the same pair first.
            db.rollback()
            return {"status": "exists", "term_id": term_id}
        return {"status": "created", "term_id": term_id}
    finally:
        db.close()


@service_op
def remove_bookmark(actor_id: Optional[str], term_id: int) -> dict:
    actor_id = require_actor_id(actor_id)
    term_id = _validate_id(term_id, "term_id")

    db = new_session()
    try:
        bookmark = _find_bookmark(db, actor_id, term_id)
        if bookmark is None:
            return {"status": "not_bookmarked", "term_id": term_id}
        db.delete(bookmark)
        db.commit()
        return {"status": "removed", "term_id": term_id}
    finally:
        db.close()


@service_op
def list_bookmarks(actor_id: Optional[str]) -> dict:
    actor_id = require_actor_id(actor_id)

    db = new_session()
    try:
        rows = (
            db.query(Bookmark, Term)
            .join(Term, Term.id == Bookmark.term_id)
            .filter(Bookmark.user_id == actor_id)
            .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
            .all()
        )
        return {
            "status": "ok",
            "count": len(rows),
            "bookmarks": [
                {
                    "term_id": term.id,
                    "term": term.term,
                    "slug": term.slug,
                    "bookmarked_at": _isoformat(bookmark.created_at),
                }
                for bookmark, term in rows
            ],
        }
    finally:
        db.close()
