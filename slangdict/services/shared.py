"""
Shared helpers and configuration for SlangDict services.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

import slangdict.config as config
from slangdict.errors import Conflict, InternalFailure, ServiceError
from slangdict.validators import (
    validate_required_text as _validate_required_text,
    validate_id as _validate_id,
    validate_optional_id as _validate_optional_id,
    validate_limit as _validate_limit,
    validate_offset as _validate_offset,
)

# =============================================================================
# Configuration
# =============================================================================

logger = config.logger

MAX_RESULT_LIMIT = config.MAX_RESULT_LIMIT
MAX_COMMENT_LENGTH = config.MAX_COMMENT_LENGTH
MAX_SHORT_TEXT_LENGTH = config.MAX_SHORT_TEXT_LENGTH
MAX_TAG_NAME_LENGTH = config.MAX_TAG_NAME_LENGTH
MAX_USERNAME_LENGTH = config.MAX_USERNAME_LENGTH


# =============================================================================
# Helper Functions
# =============================================================================

def _log_service_error(op_name: str, exc: ServiceError, warn: bool = False) -> None:
    payload = {
        "op": op_name,
        "error_kind": exc.kind,
        "field": exc.field,
        "error_type": exc.error_type,
        "detail": str(exc),
    }
    if warn:
        logger.warning("service_error", extra=payload)
    else:
        logger.info("service_error", extra=payload)


def _service_error_handler(fn: Callable) -> Callable:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ServiceError as exc:
            _log_service_error(fn.__name__, exc, warn=isinstance(exc, (Conflict, InternalFailure)))
            raise
        except SQLAlchemyError as exc:
            logger.error(
                "service_storage_error",
                extra={"op": fn.__name__, "error_type": type(exc).__name__},
            )
            raise InternalFailure("Unexpected storage error", error_type="storage") from exc
    return wrapper


def service_op(fn: Callable) -> Callable:
    """Log typed errors and surface storage failures as InternalFailure."""
    return _service_error_handler(fn)


def _isoformat(value) -> str | None:
    return value.isoformat() if value else None


__all__ = [
    "logger",
    "service_op",
    "_isoformat",
    "_validate_required_text",
    "_validate_id",
    "_validate_optional_id",
    "_validate_limit",
    "_validate_offset",
    "MAX_RESULT_LIMIT",
    "MAX_COMMENT_LENGTH",
    "MAX_SHORT_TEXT_LENGTH",
    "MAX_TAG_NAME_LENGTH",
    "MAX_USERNAME_LENGTH",
]
