"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter


router = APIRouter()


@router.get("/")
def root():
    """Root endpoint with service info."""
    return {
        "service": "SlangDict",
        "version": "0.1.0",
        "description": "Greek slang dictionary API",
        "endpoints": {
            "health": "/health",
            "terms": "/api/terms",
            "term": "/api/terms/{slug}",
            "comments": "/api/terms/{term_id}/comments",
            "vote": "/api/vote",
            "comment_vote": "/api/comments/{comment_id}/vote",
            "bookmarks": "/api/bookmarks",
            "tags": "/api/tags",
        },
    }
