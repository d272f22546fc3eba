from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from stockwatch.config.settings import settings
from stockwatch.providers import finnhub
from stockwatch.schemas.auth import Identity
from stockwatch.schemas.stocks import StockSearchResult
from stockwatch.watchlist.service import get_watchlist_symbols

logger = logging.getLogger(__name__)


def _search_results(query: str) -> list[StockSearchResult]:
    snapshot = finnhub.search_symbols(query)
    if not snapshot.usable:
        logger.warning("Stock search for %r unavailable (%s)", query, snapshot.status)
        return []

    raw_results = snapshot.payload.get("result") or []
    results: list[StockSearchResult] = []
    for item in raw_results:
        if not isinstance(item, dict):
            continue
        symbol = str(item.get("symbol") or "").strip().upper()
        if not symbol:
            continue
        results.append(
            StockSearchResult(
                symbol=symbol,
                name=str(item.get("description") or symbol),
                exchange=str(item.get("displaySymbol") or "US"),
                type=str(item.get("type") or "Stock"),
            )
        )
        if len(results) >= settings.search_result_limit:
            break
    return results


def _popular_result(symbol: str) -> StockSearchResult | None:
    snapshot = finnhub.fetch_profile(symbol)
    if not snapshot.usable or not snapshot.payload:
        return None
    profile = snapshot.payload
    return StockSearchResult(
        symbol=symbol,
        name=str(profile.get("name") or symbol),
        exchange=str(profile.get("exchange") or "US"),
        type="Common Stock",
    )


async def _popular_results() -> list[StockSearchResult]:
    symbols = settings.popular_symbols[: settings.popular_result_limit]
    outcomes = await asyncio.gather(
        *(asyncio.to_thread(_popular_result, symbol) for symbol in symbols),
        return_exceptions=True,
    )
    results: list[StockSearchResult] = []
    for symbol, outcome in zip(symbols, outcomes):
        if isinstance(outcome, Exception):
            logger.warning("Error fetching profile for %s: %s", symbol, outcome)
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is not None:
            results.append(outcome)
    return results


async def search_stocks(
    db: AsyncSession, identity: Identity | None, query: str | None
) -> list[StockSearchResult]:
    """Search results, or popular stocks for a blank query, flagged by watchlist membership."""
    cleaned = (query or "").strip()
    if cleaned:
        results = await asyncio.to_thread(_search_results, cleaned)
    else:
        results = await _popular_results()

    if identity is None or not results:
        return results

    watched = set(await get_watchlist_symbols(db, identity.user_id))
    for result in results:
        result.is_in_watchlist = result.symbol in watched
    return results
