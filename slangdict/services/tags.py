"""
Tag services: create tags and attach them to terms.
"""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from slangdict.db import new_session
from slangdict.errors import Conflict, InvalidArgument, NotFound
from slangdict.ingest.text import slugify
from slangdict.models import Tag, Term, TermTag
from slangdict.services.shared import (
    _isoformat,
    _validate_id,
    _validate_required_text,
    MAX_TAG_NAME_LENGTH,
    service_op,
)


def _serialize_tag(record: Tag, term_count: int | None = None) -> dict:
    payload = {
        "id": record.id,
        "name": record.name,
        "slug": record.slug,
        "created_at": _isoformat(record.created_at),
    }
    if term_count is not None:
        payload["term_count"] = term_count
    return payload


@service_op
def create_tag(name: str) -> dict:
    _validate_required_text(name, "name", MAX_TAG_NAME_LENGTH)
    name = name.strip()
    slug = slugify(name)
    if not slug:
        raise InvalidArgument(
            "name must contain at least one letter or digit",
            field="name",
            error_type="invalid_value",
        )

    db = new_session()
    try:
        tag = Tag(name=name, slug=slug)
        db.add(tag)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise Conflict("A tag with this name or slug already exists", field="name") from exc
        return {"status": "created", "tag": _serialize_tag(tag)}
    finally:
        db.close()


@service_op
def tag_term(term_id: int, tag_id: int) -> dict:
    """Attach a tag to a term; attaching twice is a no-op."""
    term_id = _validate_id(term_id, "term_id")
    tag_id = _validate_id(tag_id, "tag_id")

    db = new_session()
    try:
        if db.get(Term, term_id) is None:
            raise NotFound("Term not found", field="term_id")
        if db.get(Tag, tag_id) is None:
            raise NotFound("Tag not found", field="tag_id")
        if db.get(TermTag, (term_id, tag_id)) is not None:
            return {"status": "exists", "term_id": term_id, "tag_id": tag_id}

        db.add(TermTag(term_id=term_id, tag_id=tag_id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return {"status": "exists", "term_id": term_id, "tag_id": tag_id}
        return {"status": "created", "term_id": term_id, "tag_id": tag_id}
    finally:
        db.close()


@service_op
def untag_term(term_id: int, tag_id: int) -> dict:
    term_id = _validate_id(term_id, "term_id")
    tag_id = _validate_id(tag_id, "tag_id")

    db = new_session()
    try:
        link = db.get(TermTag, (term_id, tag_id))
        if link is None:
            return {"status": "not_tagged", "term_id": term_id, "tag_id": tag_id}
        db.delete(link)
        db.commit()
        return {"status": "removed", "term_id": term_id, "tag_id": tag_id}
    finally:
        db.close()


@service_op
def list_tags() -> dict:
    db = new_session()
    try:
        rows = (
            db.query(Tag, func.count(TermTag.term_id))
            .outerjoin(TermTag, TermTag.tag_id == Tag.id)
            .group_by(Tag.id)
            .order_by(Tag.name)
            .all()
        )
        return {
            "status": "ok",
            "count": len(rows),
            "tags": [_serialize_tag(tag, count) for tag, count in rows],
        }
    finally:
        db.close()


@service_op
def list_terms_for_tag(slug: str) -> dict:
    _validate_required_text(slug, "slug", MAX_TAG_NAME_LENGTH)

    db = new_session()
    try:
        tag = db.query(Tag).filter(Tag.slug == slug.strip()).first()
        if tag is None:
            raise NotFound("Tag not found", field="slug")
        terms = (
            db.query(Term)
            .join(TermTag, TermTag.term_id == Term.id)
            .filter(TermTag.tag_id == tag.id)
            .order_by(Term.term, Term.id)
            .all()
        )
        return {
            "status": "ok",
            "tag": _serialize_tag(tag, len(terms)),
            "terms": [{"id": term.id, "term": term.term, "slug": term.slug} for term in terms],
        }
    finally:
        db.close()
