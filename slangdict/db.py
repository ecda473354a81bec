"""
Database initialization and migration helpers.
"""

from __future__ import annotations

import os
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

import slangdict.config as config


class DB:
    """Database state holder (avoids global scoping issues)."""

    engine = None
    SessionLocal = None


def _enable_sqlite_write_locking(engine) -> None:
    # pysqlite defers BEGIN until the first write, which lets two vote
    # transactions read the same ledger state. Emit BEGIN IMMEDIATE ourselves
    # so writers on the same file serialize.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str):
    """Create an engine for ``database_url`` with backend-specific settings."""
    engine_kwargs = {"pool_pre_ping": True}
    is_sqlite = database_url.strip().lower().startswith("sqlite")
    if is_sqlite:
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": config.SQLITE_BUSY_TIMEOUT_SECONDS,
        }
    engine = create_engine(database_url, **engine_kwargs)
    if is_sqlite:
        _enable_sqlite_write_locking(engine)
    return engine


def bind_engine(engine) -> None:
    DB.engine = engine
    DB.SessionLocal = sessionmaker(bind=engine)


def new_session():
    if DB.SessionLocal is None:
        raise RuntimeError("Database not initialized - SessionLocal is None")
    return DB.SessionLocal()


def _get_alembic_config():
    try:
        from alembic.config import Config
    except ImportError as exc:
        raise RuntimeError("Alembic is required for migrations") from exc

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    alembic_cfg = Config(os.path.join(base_dir, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(base_dir, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", config.DATABASE_URL)
    return alembic_cfg


def _get_schema_revisions(engine) -> tuple[Optional[str], Optional[str]]:
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    alembic_cfg = _get_alembic_config()
    script = ScriptDirectory.from_config(alembic_cfg)
    head_revision = script.get_current_head()
    with engine.connect() as conn:
        context = MigrationContext.configure(conn)
        current_revision = context.get_current_revision()
    return current_revision, head_revision


def _ensure_schema_up_to_date(engine) -> None:
    from alembic import command

    current_rev, head_rev = _get_schema_revisions(engine)
    if current_rev == head_rev:
        return

    if config.AUTO_MIGRATE_ON_STARTUP:
        alembic_cfg = _get_alembic_config()
        command.upgrade(alembic_cfg, "head")
        new_current, _ = _get_schema_revisions(engine)
        if new_current != head_rev:
            raise RuntimeError("Database migration did not reach expected revision")
    else:
        raise RuntimeError(
            f"Database schema out of date (current={current_rev}, expected={head_rev}). "
            "Run 'alembic upgrade head' or set AUTO_MIGRATE_ON_STARTUP=true for dev."
        )


def init_db(check_schema: bool = True) -> None:
    """Initialize the database connection; fails fast when DATABASE_URL is unset."""
    config.validate_and_prepare_config()

    config.logger.info("Connecting to database...")
    bind_engine(build_engine(config.DATABASE_URL))

    if check_schema:
        _ensure_schema_up_to_date(DB.engine)

    config.logger.info("Database initialized")
