from __future__ import annotations

import json
import logging
import socket
from collections.abc import Callable
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from stockwatch.cache import get_snapshot, set_snapshot
from stockwatch.config.settings import settings
from stockwatch.schemas.provider import MarketDataSnapshot, SnapshotKind

logger = logging.getLogger(__name__)

_QUOTE_PATH = "/api/v1/quote"
_PROFILE_PATH = "/api/v1/stock/profile2"
_SEARCH_PATH = "/api/v1/search"


def _build_url(path: str, params: dict[str, str]) -> str:
    return f"{settings.providers.finnhub_base_url}{path}?{urlencode(params)}"


def _quote_has_values(payload: dict) -> bool:
    # Unknown or delisted symbols come back as c == 0 with no change figures.
    return bool(payload.get("c"))


def _profile_has_values(payload: dict) -> bool:
    return bool(payload)


def _search_has_values(payload: dict) -> bool:
    return bool(payload.get("result"))


def _snapshot(
    kind: SnapshotKind, symbol: str, cache_key: str, status: str, payload: dict | None = None
) -> MarketDataSnapshot:
    snapshot = MarketDataSnapshot(
        provider="finnhub",
        symbol=symbol,
        kind=kind,
        cache_key=cache_key,
        payload=payload or {},
        status=status,
    )
    set_snapshot(snapshot)
    return snapshot


def _fetch(
    kind: SnapshotKind,
    path: str,
    symbol: str,
    params: dict[str, str],
    has_values: Callable[[dict], bool],
) -> MarketDataSnapshot:
    cache_key = f"finnhub:{kind}:{symbol}"
    cached = get_snapshot(cache_key)
    if cached:
        return cached

    api_key = settings.providers.finnhub_api_key
    if not api_key:
        logger.warning("FINNHUB_API_KEY is not configured; %s for %s unavailable", kind, symbol)
        return _snapshot(kind, symbol, cache_key, "missing_key")

    url = _build_url(path, {**params, "token": api_key})
    request = Request(url)
    try:
        with urlopen(request, timeout=settings.providers.timeout_seconds) as response:
            body = response.read().decode("utf-8")
        payload = json.loads(body)
    except HTTPError as exc:
        status = "rate_limited" if exc.code == 429 else "error"
        logger.warning("Finnhub %s for %s failed with HTTP %s", kind, symbol, exc.code)
        return _snapshot(kind, symbol, cache_key, status)
    except (URLError, json.JSONDecodeError, TimeoutError, socket.timeout) as exc:
        logger.warning("Finnhub %s for %s failed: %s", kind, symbol, exc)
        return _snapshot(kind, symbol, cache_key, "error")

    if not isinstance(payload, dict):
        return _snapshot(kind, symbol, cache_key, "error")

    if not has_values(payload):
        return _snapshot(kind, symbol, cache_key, "empty", payload)

    return _snapshot(kind, symbol, cache_key, "ok", payload)


def fetch_quote(symbol: str) -> MarketDataSnapshot:
    """Current price (``c``) and percent change (``dp``) for a symbol."""
    return _fetch("quote", _QUOTE_PATH, symbol, {"symbol": symbol}, _quote_has_values)


def fetch_profile(symbol: str) -> MarketDataSnapshot:
    """Company profile, including ``marketCapitalization`` in millions."""
    return _fetch("profile", _PROFILE_PATH, symbol, {"symbol": symbol}, _profile_has_values)


def search_symbols(query: str) -> MarketDataSnapshot:
    cleaned = query.strip()
    return _fetch("search", _SEARCH_PATH, cleaned.upper(), {"q": cleaned}, _search_has_values)
