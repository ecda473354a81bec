import json

import pytest
from sqlalchemy.exc import OperationalError

from slangdict.db import DB, bind_engine, build_engine
from slangdict.errors import IngestConfigError
from slangdict.ingest import pipeline
from slangdict.ingest.pipeline import InsertedDefinition, find_references, merge_records, run_ingest
from slangdict.ingest.reader import SourceDefinition, SourceRecord
from slangdict.models import Definition, DefinitionReference, Term


def _write(directory, name, payload):
    path = directory / name
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def source_dir(tmp_path):
    directory = tmp_path / "terms"
    directory.mkdir()
    _write(directory, "001.json", {
        "term": "μπρο",
        "url": "https://example.com/mpro",
        "definitions": [{"text": "Φίλος, κολλητός.", "example": "- Έλα μπρο - Τι λέει;"}],
    })
    _write(directory, "002.json", {
        "term": "μπρό",
        "url": "https://example.com/mpro-2",
        "definitions": [{"text": "Το ίδιο με μπρο."}],
    })
    _write(directory, "003.json", {
        "term": "γαμάτο",
        "definitions": [{"text": "Πολύ καλό, όπως λέει ο μπρο."}],
    })
    _write(directory, "004.json", "{broken")
    return directory


def _record(term, *texts, url=None):
    return SourceRecord(term=term, url=url, definitions=[SourceDefinition(text=text) for text in texts])


def test_merge_records_keeps_first_term_and_all_definitions():
    merged = merge_records([
        _record("μπρο", "πρώτος", url="u1"),
        _record("γαμάτο", "τέλειο"),
        _record("μπρό", "δεύτερος", url="u2"),
    ])

    assert list(merged) == ["mpro", "gamato"]
    assert merged["mpro"].term == "μπρο"
    assert merged["mpro"].source_urls == ["u1", "u2"]
    assert [item.text for item in merged["mpro"].definitions] == ["πρώτος", "δεύτερος"]


def test_merge_records_skips_empty_keys():
    report = pipeline.IngestReport()
    merged = merge_records([_record("!!!", "κάτι"), _record("μπρο", "φίλος")], report)
    assert list(merged) == ["mpro"]
    assert report.records_skipped == 1


def test_find_references_keeps_self_mentions_by_default():
    definitions = [
        InsertedDefinition(id=10, term_key="mpro", text="Ο μπρο είναι φίλος", example=None),
        InsertedDefinition(id=20, term_key="gamato", text="Λέει ο μπρο", example="γαμάτο πράγμα, μπρο!"),
    ]
    term_ids = {"mpro": 1, "gamato": 2}

    assert find_references(definitions, term_ids) == [(10, 1), (20, 1), (20, 2)]
    assert find_references(definitions, term_ids, exclude_self=True) == [(20, 1)]


def test_run_ingest_links_definition_to_its_own_term(server_db, tmp_path, db_session):
    directory = tmp_path / "terms"
    directory.mkdir()
    _write(directory, "001.json", {"term": "γαμάτο", "definitions": [{"text": "Κάτι γαμάτο, πολύ καλό."}]})

    report = run_ingest(directory)

    assert report.references_inserted == 1
    reference = db_session.query(DefinitionReference).one()
    term_id = db_session.query(Term.id).scalar()
    assert reference.referenced_term_id == term_id
    assert reference.definition.term_id == term_id


def test_run_ingest_end_to_end(server_db, source_dir, db_session):
    report = run_ingest(source_dir)

    assert report.files_read == 4
    assert report.records_loaded == 3
    assert report.records_skipped == 1
    assert report.duplicates_merged == 1
    assert report.unique_terms == 2
    assert report.terms_inserted == 2
    assert report.definitions_inserted == 3
    assert report.references_found == 3
    assert report.references_inserted == 3
    assert report.error_count == 1

    terms = {term.slug: term for term in db_session.query(Term).all()}
    assert set(terms) == {"1", "2"}
    assert terms["1"].term == "μπρο"
    assert terms["1"].source_url == "https://example.com/mpro"
    assert terms["1"].is_archive
    assert terms["2"].term == "γαμάτο"

    example = (
        db_session.query(Definition.example)
        .filter(Definition.term_id == terms["1"].id)
        .filter(Definition.example.isnot(None))
        .scalar()
    )
    assert example == "- Έλα μπρο\n- Τι λέει;"

    rows = (
        db_session.query(Definition.term_id, DefinitionReference.referenced_term_id)
        .join(DefinitionReference, DefinitionReference.definition_id == Definition.id)
        .all()
    )
    links = sorted(tuple(row) for row in rows)
    mpro, gamato = terms["1"].id, terms["2"].id
    assert links == sorted([(mpro, mpro), (mpro, mpro), (gamato, mpro)])


def test_run_ingest_excluding_self_references(server_db, source_dir, db_session):
    report = run_ingest(source_dir, exclude_self_references=True, reference_batch_size=1)
    assert report.references_found == 1
    assert report.references_inserted == 1

    reference = db_session.query(DefinitionReference).one()
    assert reference.referenced_term_id != reference.definition.term_id


def test_reference_batch_timeout_skips_only_that_batch(server_db, source_dir, monkeypatch):
    original_insert = pipeline._insert_ignoring_duplicates
    calls = []

    def _insert(db, rows):
        calls.append(rows)
        if len(calls) == 1:
            raise OperationalError("INSERT INTO definition_references", {}, Exception("statement timeout"))
        return original_insert(db, rows)

    monkeypatch.setattr(pipeline, "_insert_ignoring_duplicates", _insert)

    report = run_ingest(source_dir, reference_batch_size=1)

    assert report.references_found == 3
    assert report.reference_batches_failed == 1
    assert report.references_inserted == 2
    assert report.errors[-1]["reference_batch"] == 0


def test_run_ingest_replaces_previous_seed(server_db, source_dir, db_session):
    run_ingest(source_dir)
    report = run_ingest(source_dir, batch_size=1)

    assert report.terms_inserted == 2
    assert db_session.query(Term).count() == 2
    assert sorted(slug for (slug,) in db_session.query(Term.slug)) == ["1", "2"]
    assert db_session.query(DefinitionReference).count() == 3


def test_failed_batch_falls_back_to_single_records(server_db, tmp_path, monkeypatch, db_session):
    directory = tmp_path / "terms"
    directory.mkdir()
    for idx, term in enumerate(["μπρο", "κακό", "γαμάτο"]):
        _write(directory, f"{idx}.json", {"term": term, "definitions": [{"text": "ορισμός"}]})

    original_build = pipeline._build_term

    def _build_term(merged, slug):
        term = original_build(merged, slug)
        if merged.key == "kako":
            term.term = None  # violates NOT NULL
        return term

    monkeypatch.setattr(pipeline, "_build_term", _build_term)

    report = run_ingest(directory, batch_size=10)

    assert report.terms_inserted == 2
    assert report.terms_failed == 1
    assert report.errors[-1]["term"] == "κακό"
    rows = dict(db_session.query(Term.term, Term.slug).all())
    assert rows == {"μπρο": "1", "γαμάτο": "2"}


def test_run_ingest_missing_source_dir(server_db, tmp_path):
    with pytest.raises(IngestConfigError):
        run_ingest(tmp_path / "nope")


def test_run_ingest_without_database(tmp_path, source_dir, monkeypatch):
    monkeypatch.setattr(DB, "SessionLocal", None)
    with pytest.raises(IngestConfigError):
        run_ingest(source_dir)


def test_run_ingest_unreachable_database(tmp_path, source_dir, monkeypatch):
    engine = build_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'db.sqlite'}")
    monkeypatch.setattr(DB, "engine", DB.engine)
    monkeypatch.setattr(DB, "SessionLocal", DB.SessionLocal)
    bind_engine(engine)
    try:
        with pytest.raises(IngestConfigError):
            run_ingest(source_dir)
    finally:
        engine.dispose()
