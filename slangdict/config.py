"""
Shared configuration for SlangDict.
"""

from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("slangdict")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(env_name: str, default: float) -> float:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _derive_backend(database_url: str | None) -> str:
    if database_url and database_url.strip().lower().startswith("sqlite"):
        return "sqlite"
    return "postgres"


# Database settings
DATABASE_URL = os.environ.get("DATABASE_URL")
DB_BACKEND = _derive_backend(DATABASE_URL)
SQLITE_BUSY_TIMEOUT_SECONDS = _get_float("SQLITE_BUSY_TIMEOUT_SECONDS", 30.0)

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", False)

# External auth provider (session lookup)
AUTH_SESSION_URL = os.environ.get("AUTH_SESSION_URL")
AUTH_SESSION_COOKIE = os.environ.get("AUTH_SESSION_COOKIE", "better-auth.session_token")
AUTH_TIMEOUT_SECONDS = _get_float("AUTH_TIMEOUT_SECONDS", 5.0)

# Vote engine
VOTE_CONFLICT_RETRIES = _get_int("SLANGDICT_VOTE_CONFLICT_RETRIES", 2)

# Request/input limits
MAX_RESULT_LIMIT = _get_int("SLANGDICT_MAX_RESULT_LIMIT", 100)
MAX_COMMENT_LENGTH = _get_int("SLANGDICT_MAX_COMMENT_LENGTH", 5000)
MAX_SHORT_TEXT_LENGTH = _get_int("SLANGDICT_MAX_SHORT_TEXT_LENGTH", 255)
MAX_TAG_NAME_LENGTH = _get_int("SLANGDICT_MAX_TAG_NAME_LENGTH", 100)
MAX_USERNAME_LENGTH = _get_int("SLANGDICT_MAX_USERNAME_LENGTH", 50)

# Seeding
SEED_BATCH_SIZE = _get_int("SEED_BATCH_SIZE", 200)
SEED_REFERENCE_BATCH_SIZE = _get_int("SEED_REFERENCE_BATCH_SIZE", 500)
SEED_EXCLUDE_SELF_REFERENCES = _get_bool("SEED_EXCLUDE_SELF_REFERENCES", False)
SEED_PROGRESS_EVERY = _get_int("SEED_PROGRESS_EVERY", 50)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL, DB_BACKEND

    errors = []
    if not DATABASE_URL:
        DATABASE_URL = os.environ.get("DATABASE_URL")
    if not DATABASE_URL:
        errors.append("DATABASE_URL environment variable is required")
    DB_BACKEND = _derive_backend(DATABASE_URL)

    if SEED_BATCH_SIZE <= 0:
        errors.append("SEED_BATCH_SIZE must be positive")
    if SEED_REFERENCE_BATCH_SIZE <= 0:
        errors.append("SEED_REFERENCE_BATCH_SIZE must be positive")
    if VOTE_CONFLICT_RETRIES < 0:
        errors.append("SLANGDICT_VOTE_CONFLICT_RETRIES must not be negative")

    if AUTH_SESSION_URL is None:
        logger.warning("AUTH_SESSION_URL is not set; all requests will be anonymous.")

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
