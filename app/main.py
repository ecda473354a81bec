"""
FastAPI app wiring for SlangDict.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import slangdict.config as config
from slangdict.db import DB, init_db
from slangdict.errors import (
    AuthenticationRequired,
    Conflict,
    InvalidArgument,
    NotFound,
    PermissionDenied,
    ServiceError,
)
from app import auth
from app.middleware import configure_middleware
from app.routes.bookmarks import router as bookmarks_router
from app.routes.comments import router as comments_router
from app.routes.health import router as health_router
from app.routes.root import router as root_router
from app.routes.tags import router as tags_router
from app.routes.terms import router as terms_router
from app.routes.votes import router as votes_router


# Most specific first; PermissionDenied is an AuthenticationRequired.
ERROR_STATUS_CODES = (
    (PermissionDenied, 403),
    (AuthenticationRequired, 401),
    (NotFound, 404),
    (InvalidArgument, 400),
    (Conflict, 409),
)


def status_code_for(exc: ServiceError) -> int:
    for error_cls, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_cls):
            return status_code
    return 500


def error_body(kind: str, message: str, field: str | None = None) -> dict:
    return {"error": kind, "message": message, "field": field}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        config.logger.error(
            "request_failed",
            extra={"path": request.url.path, "error_kind": exc.kind, "error_type": exc.error_type},
        )
        message = "Internal Server Error"
    else:
        message = str(exc)
    return JSONResponse(status_code=status_code, content=error_body(exc.kind, message, exc.field))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    field = None
    if errors:
        loc = [str(part) for part in errors[0].get("loc", ()) if part not in ("body", "path", "query")]
        field = ".".join(loc) or None
    return JSONResponse(
        status_code=400,
        content=error_body(InvalidArgument.kind, "Invalid input", field),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    init_db()
    auth.init_http_client()
    try:
        yield
    finally:
        auth.cleanup_http_client()
        if DB.engine:
            DB.engine.dispose()


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="SlangDict",
        redirect_slashes=False,
        lifespan=lifespan if use_lifespan else None,
    )
    configure_middleware(app)

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health_router)
    app.include_router(root_router)
    app.include_router(terms_router)
    app.include_router(comments_router)
    app.include_router(votes_router)
    app.include_router(bookmarks_router)
    app.include_router(tags_router)
    return app


app = create_app()


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8080")))
