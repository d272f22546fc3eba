from __future__ import annotations

import logging

from stockwatch.cache import get_client
from stockwatch.config.settings import settings

logger = logging.getLogger(__name__)

WATCHLIST_PATH = "/watchlist"


def stock_path(symbol: str) -> str:
    return f"/stocks/{symbol}"


def invalidate_path(path: str) -> None:
    """Tell view caches that ``path`` is stale."""
    try:
        client = get_client()
        client.publish(settings.view_invalidation_channel, path)
    except Exception:
        logger.warning("Could not invalidate %s", path, exc_info=True)
        return None


def invalidate_watchlist_views(symbol: str) -> None:
    invalidate_path(WATCHLIST_PATH)
    invalidate_path(stock_path(symbol))
