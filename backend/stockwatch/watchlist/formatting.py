from __future__ import annotations

from stockwatch.schemas.watchlist import UNAVAILABLE


def format_price(value: float | None) -> str:
    # Finnhub quotes 0 for unknown or delisted symbols.
    if not value:
        return UNAVAILABLE
    return f"${value:.2f}"


def format_change(value: float | None) -> str:
    if value is None:
        return UNAVAILABLE
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


def format_market_cap(value: float | None) -> str:
    # Finnhub reports market cap in millions. Above 1000 this divides down
    # to trillions, below it the raw figure is labelled billions unchanged.
    if not value:
        return UNAVAILABLE
    if value > 1000:
        return f"${value / 1000:.1f}T"
    return f"${value:.1f}B"
