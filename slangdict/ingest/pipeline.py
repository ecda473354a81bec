"""
Seeding pipeline: source JSON files -> terms, definitions, references.

Phases run strictly in order:
1. clear existing references, definitions and terms (destructive)
2. load records and merge those sharing a transliteration key
3. insert terms and definitions in batches (slug = running counter)
4. scan definitions for words matching other terms and insert references

Per-record and per-batch failures are logged, counted and skipped. Missing
configuration or an unreachable database aborts the run before any write.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence

from sqlalchemy import insert as generic_insert, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DataError, IntegrityError, OperationalError, SQLAlchemyError

import slangdict.config as config
from slangdict.db import DB
from slangdict.errors import IngestConfigError
from slangdict.ingest.reader import SourceDefinition, SourceRecord, read_records
from slangdict.ingest.text import extract_words, format_dialogue, transliterate
from slangdict.models import Definition, DefinitionReference, Term

logger = config.logger

# Errors confined to one record or batch (bad data, statement timeouts) once
# the database is known reachable; anything else is treated as fatal.
RECORD_ERRORS = (IntegrityError, DataError, OperationalError)


@dataclass
class MergedTerm:
    key: str
    term: str
    source_urls: list[str] = field(default_factory=list)
    definitions: list[SourceDefinition] = field(default_factory=list)


@dataclass(frozen=True)
class InsertedDefinition:
    id: int
    term_key: str
    text: str
    example: Optional[str]


@dataclass
class IngestReport:
    files_read: int = 0
    records_loaded: int = 0
    records_skipped: int = 0
    duplicates_merged: int = 0
    unique_terms: int = 0
    terms_inserted: int = 0
    terms_failed: int = 0
    definitions_inserted: int = 0
    references_found: int = 0
    references_inserted: int = 0
    reference_batches_failed: int = 0
    errors: list[dict] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return self.records_skipped + self.terms_failed + self.reference_batches_failed

    def as_dict(self) -> dict:
        payload = asdict(self)
        payload["error_count"] = self.error_count
        return payload


def _chunks(items: Sequence, size: int) -> Iterable[Sequence]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


# =============================================================================
# Phase 2: merge by transliteration key
# =============================================================================

def merge_records(records: Iterable[SourceRecord], report: Optional[IngestReport] = None) -> dict[str, MergedTerm]:
    """
    Group records by transliteration key, keeping first-seen order.

    The first record's term text is canonical; URLs and definitions of later
    duplicates are appended.
    """
    merged: dict[str, MergedTerm] = {}
    for record in records:
        key = transliterate(record.term)
        if not key:
            if report is not None:
                report.records_skipped += 1
                report.errors.append({"source": record.source, "message": "term has an empty transliteration key"})
            continue
        existing = merged.get(key)
        if existing is None:
            merged[key] = MergedTerm(
                key=key,
                term=record.term,
                source_urls=[record.url] if record.url else [],
                definitions=list(record.definitions),
            )
            continue
        if record.url:
            existing.source_urls.append(record.url)
        existing.definitions.extend(record.definitions)
        if report is not None:
            report.duplicates_merged += 1
        logger.debug(
            "seed_merged_duplicate",
            extra={"term": record.term, "canonical": existing.term, "key": key},
        )
    return merged


# =============================================================================
# Phase 4: reference extraction
# =============================================================================

def find_references(
    definitions: Iterable[InsertedDefinition],
    term_ids_by_key: dict[str, int],
    exclude_self: bool = False,
) -> list[tuple[int, int]]:
    """
    (definition_id, referenced_term_id) pairs for words that name a term.

    With exclude_self, a definition mentioning its own term is not linked to it.
    """
    pairs: list[tuple[int, int]] = []
    for definition in definitions:
        combined = " ".join([definition.text, definition.example or ""])
        matched: set[int] = set()
        for word in extract_words(combined):
            key = transliterate(word)
            term_id = term_ids_by_key.get(key)
            if term_id is None:
                continue
            if exclude_self and key == definition.term_key:
                continue
            matched.add(term_id)
        pairs.extend((definition.id, term_id) for term_id in sorted(matched))
    return pairs


# =============================================================================
# Database phases
# =============================================================================

def clear_existing(db) -> None:
    db.query(DefinitionReference).delete(synchronize_session=False)
    db.query(Definition).delete(synchronize_session=False)
    db.query(Term).delete(synchronize_session=False)
    db.commit()


def _build_term(merged: MergedTerm, slug: str) -> Term:
    term = Term(
        term=merged.term,
        slug=slug,
        source_url=merged.source_urls[0] if merged.source_urls else None,
        submitted_by=None,
    )
    term.definitions = [
        Definition(
            text=format_dialogue(item.text),
            example=format_dialogue(item.example) if item.example else None,
            upvotes=0,
            downvotes=0,
        )
        for item in merged.definitions
    ]
    return term


def _collect_inserted(pending: list[tuple[MergedTerm, Term]]) -> tuple[dict[str, int], list[InsertedDefinition]]:
    term_ids: dict[str, int] = {}
    inserted: list[InsertedDefinition] = []
    for merged, term in pending:
        term_ids[merged.key] = term.id
        for definition in term.definitions:
            inserted.append(
                InsertedDefinition(
                    id=definition.id,
                    term_key=merged.key,
                    text=definition.text,
                    example=definition.example,
                )
            )
    return term_ids, inserted


def _insert_one_by_one(
    db,
    batch: Sequence[MergedTerm],
    next_slug: int,
    report: IngestReport,
) -> tuple[int, dict[str, int], list[InsertedDefinition]]:
    term_ids: dict[str, int] = {}
    inserted: list[InsertedDefinition] = []
    for merged in batch:
        term = _build_term(merged, str(next_slug))
        db.add(term)
        try:
            db.flush()
            ids, definitions = _collect_inserted([(merged, term)])
            db.commit()
        except RECORD_ERRORS as exc:
            db.rollback()
            report.terms_failed += 1
            report.errors.append({"term": merged.term, "message": str(exc.orig or exc)})
            logger.error("seed_term_failed", extra={"term": merged.term, "error_type": type(exc).__name__})
            continue
        next_slug += 1
        term_ids.update(ids)
        inserted.extend(definitions)
    return next_slug, term_ids, inserted


def insert_terms(
    db,
    merged_terms: Sequence[MergedTerm],
    report: IngestReport,
    batch_size: int,
) -> tuple[dict[str, int], list[InsertedDefinition]]:
    """Insert terms with their definitions; returns key->term id and the inserted definitions."""
    term_ids: dict[str, int] = {}
    inserted: list[InsertedDefinition] = []
    next_slug = 1

    for batch in _chunks(merged_terms, batch_size):
        pending = []
        for offset, merged in enumerate(batch):
            term = _build_term(merged, str(next_slug + offset))
            db.add(term)
            pending.append((merged, term))
        try:
            db.flush()
            ids, definitions = _collect_inserted(pending)
            db.commit()
            next_slug += len(batch)
        except RECORD_ERRORS as exc:
            db.rollback()
            logger.warning(
                "seed_batch_failed_retrying_per_record",
                extra={"batch_size": len(batch), "error_type": type(exc).__name__},
            )
            next_slug, ids, definitions = _insert_one_by_one(db, batch, next_slug, report)

        term_ids.update(ids)
        inserted.extend(definitions)
        before = report.terms_inserted
        report.terms_inserted = len(term_ids)
        report.definitions_inserted = len(inserted)
        every = max(1, config.SEED_PROGRESS_EVERY)
        if report.terms_inserted // every != before // every:
            logger.info(
                f"Inserted {report.terms_inserted}/{report.unique_terms} terms",
            )

    return term_ids, inserted


def _insert_ignoring_duplicates(db, rows: list[dict]) -> int:
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(DefinitionReference).values(rows).on_conflict_do_nothing(
            index_elements=["definition_id", "referenced_term_id"]
        )
    elif dialect == "sqlite":
        stmt = sqlite_insert(DefinitionReference).values(rows).on_conflict_do_nothing(
            index_elements=["definition_id", "referenced_term_id"]
        )
    else:
        stmt = generic_insert(DefinitionReference).values(rows)
    result = db.execute(stmt)
    return max(result.rowcount or 0, 0)


def insert_references(
    db,
    pairs: Sequence[tuple[int, int]],
    report: IngestReport,
    batch_size: int,
) -> None:
    for index, batch in enumerate(_chunks(pairs, batch_size)):
        rows = [
            {"definition_id": definition_id, "referenced_term_id": term_id}
            for definition_id, term_id in batch
        ]
        try:
            report.references_inserted += _insert_ignoring_duplicates(db, rows)
            db.commit()
        except RECORD_ERRORS as exc:
            db.rollback()
            report.reference_batches_failed += 1
            report.errors.append({"reference_batch": index, "message": str(exc.orig or exc)})
            logger.error(
                "seed_reference_batch_failed",
                extra={"batch_index": index, "error_type": type(exc).__name__},
            )


# =============================================================================
# Entry point
# =============================================================================

def _check_connectivity(db) -> None:
    try:
        db.execute(text("SELECT 1"))
        db.rollback()
    except SQLAlchemyError as exc:
        raise IngestConfigError(f"Cannot reach the database: {type(exc).__name__}") from exc


def run_ingest(
    source_dir,
    *,
    batch_size: Optional[int] = None,
    reference_batch_size: Optional[int] = None,
    exclude_self_references: Optional[bool] = None,
) -> IngestReport:
    """Run every seeding phase against the database bound in DB."""
    batch_size = batch_size or config.SEED_BATCH_SIZE
    reference_batch_size = reference_batch_size or config.SEED_REFERENCE_BATCH_SIZE
    if exclude_self_references is None:
        exclude_self_references = config.SEED_EXCLUDE_SELF_REFERENCES
    if batch_size <= 0 or reference_batch_size <= 0:
        raise IngestConfigError("batch sizes must be positive")

    source = Path(source_dir)
    if not source.is_dir():
        raise IngestConfigError(f"Source directory not found: {source}")
    if DB.SessionLocal is None:
        raise IngestConfigError("Database not initialized")

    report = IngestReport()
    db = DB.SessionLocal()
    try:
        _check_connectivity(db)

        logger.info("Clearing existing terms, definitions and references...")
        clear_existing(db)

        logger.info("Loading and deduplicating terms...", extra={"source": str(source)})
        read = read_records(source)
        report.files_read = read.files
        report.records_loaded = len(read.records)
        report.records_skipped = len(read.errors)
        report.errors.extend(read.errors)
        for error in read.errors:
            logger.error("seed_record_skipped", extra={"source": error["source"], "reason": error["message"]})

        merged = merge_records(read.records, report)
        report.unique_terms = len(merged)
        logger.info(f"Deduplicated {read.files} files into {report.unique_terms} unique terms")

        logger.info("Inserting terms and definitions...")
        term_ids, definitions = insert_terms(db, list(merged.values()), report, batch_size)

        logger.info("Extracting term references from definitions...")
        pairs = find_references(definitions, term_ids, exclude_self=exclude_self_references)
        report.references_found = len(pairs)
        insert_references(db, pairs, report, reference_batch_size)

        logger.info("Seeding completed", extra={k: v for k, v in report.as_dict().items() if k != "errors"})
        return report
    finally:
        db.close()


__all__ = [
    "IngestReport",
    "InsertedDefinition",
    "MergedTerm",
    "merge_records",
    "find_references",
    "clear_existing",
    "insert_terms",
    "insert_references",
    "run_ingest",
]
