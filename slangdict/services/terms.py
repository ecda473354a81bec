"""
Read-side services for terms and their definitions.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func

from slangdict.db import new_session
from slangdict.errors import NotFound
from slangdict.models import (
    Definition,
    DefinitionReference,
    DefinitionVote,
    Tag,
    Term,
    TermTag,
)
from slangdict.services.shared import (
    _isoformat,
    _validate_limit,
    _validate_offset,
    _validate_required_text,
    MAX_RESULT_LIMIT,
    MAX_SHORT_TEXT_LENGTH,
    service_op,
)


def _serialize_term_summary(record: Term, definition_count: int = 0) -> dict:
    return {
        "id": record.id,
        "term": record.term,
        "slug": record.slug,
        "source_url": record.source_url,
        "is_archive": record.is_archive,
        "definition_count": definition_count,
        "created_at": _isoformat(record.created_at),
    }


def _serialize_definition(
    record: Definition,
    references: list[dict],
    user_vote: Optional[str],
) -> dict:
    return {
        "id": record.id,
        "term_id": record.term_id,
        "text": record.text,
        "example": record.example,
        "upvotes": record.upvotes,
        "downvotes": record.downvotes,
        "score": record.upvotes - record.downvotes,
        "user_vote": user_vote,
        "references": references,
        "created_at": _isoformat(record.created_at),
    }


def _references_by_definition(db, definition_ids: list[int]) -> dict[int, list[dict]]:
    if not definition_ids:
        return {}
    rows = (
        db.query(DefinitionReference.definition_id, Term.id, Term.term, Term.slug)
        .join(Term, Term.id == DefinitionReference.referenced_term_id)
        .filter(DefinitionReference.definition_id.in_(definition_ids))
        .order_by(DefinitionReference.definition_id, Term.term)
        .all()
    )
    grouped: dict[int, list[dict]] = {}
    for definition_id, term_id, term_text, slug in rows:
        grouped.setdefault(definition_id, []).append(
            {"term_id": term_id, "term": term_text, "slug": slug}
        )
    return grouped


def _actor_votes(db, actor_id: Optional[str], definition_ids: list[int]) -> dict[int, str]:
    if not actor_id or not definition_ids:
        return {}
    rows = (
        db.query(DefinitionVote.definition_id, DefinitionVote.vote_type)
        .filter(DefinitionVote.user_id == actor_id)
        .filter(DefinitionVote.definition_id.in_(definition_ids))
        .all()
    )
    return {definition_id: vote_type.value for definition_id, vote_type in rows}


@service_op
def get_term(slug: str, actor_id: Optional[str] = None) -> dict:
    """Term detail: definitions (best first), references, tags, actor's votes."""
    _validate_required_text(slug, "slug", MAX_SHORT_TEXT_LENGTH)

    db = new_session()
    try:
        term = db.query(Term).filter(Term.slug == slug.strip()).first()
        if term is None:
            raise NotFound("Term not found", field="slug")

        definitions = (
            db.query(Definition)
            .filter(Definition.term_id == term.id)
            .order_by((Definition.upvotes - Definition.downvotes).desc(), Definition.id)
            .all()
        )
        definition_ids = [record.id for record in definitions]
        references = _references_by_definition(db, definition_ids)
        votes = _actor_votes(db, actor_id, definition_ids)
        tags = (
            db.query(Tag)
            .join(TermTag, TermTag.tag_id == Tag.id)
            .filter(TermTag.term_id == term.id)
            .order_by(Tag.name)
            .all()
        )

        result = _serialize_term_summary(term, len(definitions))
        result["definitions"] = [
            _serialize_definition(record, references.get(record.id, []), votes.get(record.id))
            for record in definitions
        ]
        result["tags"] = [{"name": tag.name, "slug": tag.slug} for tag in tags]
        return {"status": "found", "term": result}
    finally:
        db.close()


@service_op
def list_terms(limit: int = 20, offset: int = 0) -> dict:
    """Terms ordered alphabetically, with their definition counts."""
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)
    _validate_offset(offset)

    db = new_session()
    try:
        total = db.query(func.count(Term.id)).scalar() or 0
        rows = (
            db.query(Term, func.count(Definition.id))
            .outerjoin(Definition, Definition.term_id == Term.id)
            .group_by(Term.id)
            .order_by(Term.term, Term.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return {
            "status": "ok",
            "total": total,
            "count": len(rows),
            "terms": [_serialize_term_summary(term, count) for term, count in rows],
        }
    finally:
        db.close()


@service_op
def list_recent_terms(limit: int = 20) -> dict:
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)

    db = new_session()
    try:
        rows = (
            db.query(Term, func.count(Definition.id))
            .outerjoin(Definition, Definition.term_id == Term.id)
            .group_by(Term.id)
            .order_by(Term.created_at.desc(), Term.id.desc())
            .limit(limit)
            .all()
        )
        return {
            "status": "ok",
            "count": len(rows),
            "terms": [_serialize_term_summary(term, count) for term, count in rows],
        }
    finally:
        db.close()
