"""
Session lookup against the external auth provider.

The provider owns identities; this app only forwards the caller's session
token to AUTH_SESSION_URL and reads back {"user": {"id", "name", "role"}}.
Any failure leaves the request anonymous.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

import slangdict.config as config

logger = config.logger

http_client = None  # Reusable HTTP client for session lookups


@dataclass(frozen=True)
class SessionUser:
    id: str
    name: str
    role: str = "user"


def init_http_client():
    """Initialize HTTP client for auth provider calls."""
    global http_client
    http_client = httpx.Client(
        timeout=httpx.Timeout(config.AUTH_TIMEOUT_SECONDS),
        limits=httpx.Limits(max_keepalive_connections=10, max_connections=100),
        headers={"Accept": "application/json"},
    )
    logger.info("HTTP client initialized")


def cleanup_http_client():
    """Clean up HTTP client on shutdown."""
    global http_client
    if http_client:
        http_client.close()
        http_client = None
        logger.info("HTTP client closed")


def extract_session_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    cookie = request.cookies.get(config.AUTH_SESSION_COOKIE)
    return cookie or None


def _parse_session_payload(payload) -> Optional[SessionUser]:
    if not isinstance(payload, dict):
        return None
    user = payload.get("user")
    if not isinstance(user, dict):
        return None
    user_id = user.get("id")
    if not isinstance(user_id, str) or not user_id.strip():
        return None
    name = user.get("name") or user.get("email") or user_id
    role = user.get("role") or "user"
    return SessionUser(id=user_id, name=str(name), role=str(role))


def lookup_session(token: str) -> Optional[SessionUser]:
    """Resolve a session token to the provider's user, or None."""
    if not config.AUTH_SESSION_URL or not token:
        return None
    global http_client
    if http_client is None:
        init_http_client()
    try:
        response = http_client.get(
            config.AUTH_SESSION_URL,
            headers={
                "Authorization": f"Bearer {token}",
                "Cookie": f"{config.AUTH_SESSION_COOKIE}={token}",
            },
        )
    except httpx.RequestError as exc:
        logger.warning("auth_lookup_failed", extra={"error_type": type(exc).__name__})
        return None
    if response.status_code != 200:
        logger.info("auth_session_rejected", extra={"status_code": response.status_code})
        return None
    try:
        payload = response.json()
    except ValueError:
        logger.warning("auth_session_invalid_json")
        return None
    return _parse_session_payload(payload)


def get_current_user(request: Request) -> Optional[SessionUser]:
    token = extract_session_token(request)
    if not token:
        return None
    return lookup_session(token)
