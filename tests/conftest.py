import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./slangdict-test.sqlite")

import pytest

from slangdict.db import DB, bind_engine, build_engine
from slangdict.models import Base, Comment, Definition, Term, User, UserRole


@pytest.fixture
def server_db(tmp_path):
    """Point DB at a fresh SQLite file for the duration of one test."""
    db_path = tmp_path / "slangdict.sqlite"
    engine = build_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    bind_engine(engine)
    try:
        yield engine
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    # SQLite writers hold the file lock for the whole transaction, so only
    # read through this session after the service calls under test.
    db = DB.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _commit_and_collect(record, collect):
    db = DB.SessionLocal()
    try:
        db.add(record)
        db.flush()
        result = collect(record)
        db.commit()
        return result
    finally:
        db.close()


@pytest.fixture
def make_user(server_db):
    def _make_user(user_id="user-1", username=None, role=UserRole.user):
        user = User(id=user_id, username=username or user_id, role=role)
        return _commit_and_collect(user, lambda record: record.id)

    return _make_user


@pytest.fixture
def make_term(server_db):
    def _make_term(term="μπρο", slug=None, definitions=("φίλος",)):
        record = Term(term=term, slug=slug or term)
        record.definitions = [Definition(text=text, upvotes=0, downvotes=0) for text in definitions]
        return _commit_and_collect(
            record,
            lambda saved: (saved.id, [definition.id for definition in saved.definitions]),
        )

    return _make_term


@pytest.fixture
def make_comment(server_db):
    def _make_comment(term_id, user_id, content="σχόλιο", parent_id=None):
        comment = Comment(term_id=term_id, user_id=user_id, content=content, parent_id=parent_id)
        return _commit_and_collect(comment, lambda record: record.id)

    return _make_comment
