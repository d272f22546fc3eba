"""Live market data for a user's saved watchlist.

Every saved entry is returned, in most-recently-added order. Quotes and
profiles for all entries are fetched concurrently; a symbol whose data cannot
be fetched is still listed, with its derived fields set to ``"N/A"``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from stockwatch.config.settings import settings
from stockwatch.db.models import WatchlistEntry
from stockwatch.errors import UpstreamUnavailable
from stockwatch.providers import finnhub
from stockwatch.schemas.auth import Identity
from stockwatch.schemas.provider import MarketDataSnapshot
from stockwatch.schemas.watchlist import EnrichedStock
from stockwatch.watchlist.formatting import format_change, format_market_cap, format_price
from stockwatch.watchlist.service import PERSISTENCE_ERRORS, load_entries

logger = logging.getLogger(__name__)


def _as_number(value) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"expected a number, got {value!r}")
    return float(value)


def _usable_payload(snapshot: MarketDataSnapshot) -> dict:
    if not snapshot.usable:
        raise UpstreamUnavailable(snapshot.symbol, snapshot.status)
    return snapshot.payload


def _unavailable(entry: WatchlistEntry) -> EnrichedStock:
    return EnrichedStock(
        user_id=entry.user_id,
        symbol=entry.symbol,
        company=entry.company,
        added_at=entry.added_at,
    )


def build_enriched_stock(
    entry: WatchlistEntry, quote: MarketDataSnapshot, profile: MarketDataSnapshot
) -> EnrichedStock:
    quote_payload = _usable_payload(quote)
    profile_payload = _usable_payload(profile)

    current_price = _as_number(quote_payload.get("c"))
    change_percent = _as_number(quote_payload.get("dp"))
    market_cap = _as_number(profile_payload.get("marketCapitalization"))

    return EnrichedStock(
        user_id=entry.user_id,
        symbol=entry.symbol,
        company=entry.company,
        added_at=entry.added_at,
        current_price=current_price,
        change_percent=change_percent,
        price_formatted=format_price(current_price),
        change_formatted=format_change(change_percent),
        market_cap=format_market_cap(market_cap),
    )


async def _fetch(
    fetcher: Callable[[str], MarketDataSnapshot], symbol: str, semaphore: asyncio.Semaphore
) -> MarketDataSnapshot:
    async with semaphore:
        return await asyncio.to_thread(fetcher, symbol)


async def _enrich_entry(entry: WatchlistEntry, semaphore: asyncio.Semaphore) -> EnrichedStock:
    outcomes = await asyncio.gather(
        _fetch(finnhub.fetch_quote, entry.symbol, semaphore),
        _fetch(finnhub.fetch_profile, entry.symbol, semaphore),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    quote, profile = outcomes
    return build_enriched_stock(entry, quote, profile)


async def enrich_entries(entries: list[WatchlistEntry]) -> list[EnrichedStock]:
    if not entries:
        return []

    semaphore = asyncio.Semaphore(max(settings.provider_max_concurrency, 1))
    outcomes = await asyncio.gather(
        *(_enrich_entry(entry, semaphore) for entry in entries),
        return_exceptions=True,
    )

    stocks: list[EnrichedStock] = []
    for entry, outcome in zip(entries, outcomes):
        if isinstance(outcome, Exception):
            logger.warning("Error fetching data for %s: %s", entry.symbol, outcome)
            stocks.append(_unavailable(entry))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            stocks.append(outcome)
    return stocks


async def get_watchlist_with_data(
    db: AsyncSession, identity: Identity | None
) -> list[EnrichedStock]:
    if identity is None or not identity.user_id:
        return []

    try:
        entries = await load_entries(db, identity.user_id)
    except PERSISTENCE_ERRORS:
        logger.exception("Loading watchlist failed for %s", identity.user_id)
        return []

    return await enrich_entries(entries)
