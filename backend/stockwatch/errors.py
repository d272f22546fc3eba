from __future__ import annotations


class WatchlistError(Exception):
    """Base class for failures surfaced to watchlist callers."""

    code = "watchlist_error"
    default_message = "Watchlist operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(WatchlistError):
    code = "unauthenticated"
    default_message = "User not authenticated"


class DuplicateEntry(WatchlistError):
    code = "duplicate_entry"
    default_message = "Stock already in watchlist"


class NotFound(WatchlistError):
    code = "not_found"
    default_message = "Stock not found in watchlist"


class InvalidSymbol(WatchlistError):
    code = "invalid_symbol"
    default_message = "Symbol is required"


class PersistenceUnavailable(WatchlistError):
    code = "persistence_unavailable"
    default_message = "Watchlist storage is unavailable"


class UpstreamUnavailable(WatchlistError):
    code = "upstream_unavailable"
    default_message = "Market data is unavailable"

    def __init__(self, symbol: str, status: str) -> None:
        self.symbol = symbol
        self.status = status
        super().__init__(f"Market data for {symbol} unavailable ({status})")
