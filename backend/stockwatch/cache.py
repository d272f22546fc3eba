from __future__ import annotations

import json
import logging

from redis import Redis

from stockwatch.config.settings import settings
from stockwatch.schemas.provider import MarketDataSnapshot, SnapshotKind

logger = logging.getLogger(__name__)


def get_client() -> Redis:
    return Redis.from_url(settings.redis_url)


def ttl_for(kind: SnapshotKind, status: str = "ok") -> int:
    """Seconds a snapshot of the given kind stays fresh.

    Quotes move fast and profiles barely change, so each resource kind has
    its own lifetime. Anything that did not come back ``ok``/``empty`` is only
    kept for the short error TTL so the next request retries upstream.
    """
    if status not in ("ok", "empty"):
        return settings.cache.error_ttl_seconds
    ttls = {
        "quote": settings.cache.quote_ttl_seconds,
        "profile": settings.cache.profile_ttl_seconds,
        "search": settings.cache.search_ttl_seconds,
    }
    return ttls[kind]


def get_snapshot(cache_key: str) -> MarketDataSnapshot | None:
    try:
        client = get_client()
        raw = client.get(cache_key)
    except Exception:
        logger.debug("Cache read failed for %s", cache_key, exc_info=True)
        return None

    if not raw:
        return None

    try:
        payload = json.loads(raw)
        return MarketDataSnapshot(**payload)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None


def set_snapshot(snapshot: MarketDataSnapshot) -> None:
    ttl_seconds = ttl_for(snapshot.kind, snapshot.status)
    try:
        client = get_client()
        client.setex(snapshot.cache_key, ttl_seconds, snapshot.model_dump_json())
    except Exception:
        logger.debug("Cache write failed for %s", snapshot.cache_key, exc_info=True)
        return None
