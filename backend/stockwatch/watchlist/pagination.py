from __future__ import annotations

import math

from stockwatch.schemas.watchlist import EnrichedStock, WatchlistPage

_WINDOW_SIZE = 5


def filter_stocks(stocks: list[EnrichedStock], query: str) -> list[EnrichedStock]:
    needle = query.strip().lower()
    if not needle:
        return list(stocks)
    return [
        stock
        for stock in stocks
        if needle in stock.symbol.lower() or needle in stock.company.lower()
    ]


def page_window(page: int, total_pages: int) -> list[int]:
    """Page numbers to show, at most five, keeping the current page centred."""
    count = min(total_pages, _WINDOW_SIZE)
    if total_pages <= _WINDOW_SIZE or page <= 3:
        first = 1
    elif page >= total_pages - 2:
        first = total_pages - _WINDOW_SIZE + 1
    else:
        first = page - 2
    return list(range(first, first + count))


def paginate(
    stocks: list[EnrichedStock], query: str = "", page: int = 1, per_page: int = 10
) -> WatchlistPage:
    per_page = max(per_page, 1)
    filtered = filter_stocks(stocks, query)
    total = len(filtered)
    total_pages = math.ceil(total / per_page)
    page = min(max(page, 1), max(total_pages, 1))

    start = (page - 1) * per_page
    end = start + per_page
    return WatchlistPage(
        items=filtered[start:end],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages,
        start_index=start + 1 if total else 0,
        end_index=min(end, total),
        page_window=page_window(page, total_pages),
        query=query.strip(),
    )
