from __future__ import annotations

import json
import logging

from fastapi import Request
from pydantic import ValidationError

from stockwatch.cache import get_client
from stockwatch.config.settings import settings
from stockwatch.schemas.auth import Identity

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def session_key(token: str) -> str:
    return f"session:{token}"


def extract_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith(_BEARER_PREFIX):
        token = authorization[len(_BEARER_PREFIX):].strip()
        if token:
            return token
    token = request.cookies.get(settings.session_cookie_name, "").strip()
    return token or None


def lookup_identity(token: str) -> Identity | None:
    """Resolve a session token written by the session issuer."""
    try:
        raw = get_client().get(session_key(token))
    except Exception:
        logger.warning("Session store unavailable", exc_info=True)
        return None
    if not raw:
        return None
    try:
        return Identity(**json.loads(raw))
    except (json.JSONDecodeError, TypeError, ValidationError):
        logger.warning("Discarding malformed session record")
        return None


def get_current_identity(request: Request) -> Identity | None:
    """FastAPI dependency returning the caller's identity, or None when anonymous."""
    token = extract_token(request)
    if token is None:
        return None
    return lookup_identity(token)
