from __future__ import annotations

import datetime

from pydantic import BaseModel, Field

UNAVAILABLE = "N/A"


class WatchlistRequest(BaseModel):
    symbol: str
    company: str = ""


class MutationResult(BaseModel):
    success: bool
    error: str | None = None
    code: str | None = None


class WatchlistMembership(BaseModel):
    symbol: str
    in_watchlist: bool


class EnrichedStock(BaseModel):
    user_id: str
    symbol: str
    company: str
    added_at: datetime.datetime
    current_price: float | None = None
    change_percent: float | None = None
    price_formatted: str = UNAVAILABLE
    change_formatted: str = UNAVAILABLE
    market_cap: str = UNAVAILABLE


class WatchlistPage(BaseModel):
    items: list[EnrichedStock] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 10
    total_pages: int = 0
    start_index: int = 0
    end_index: int = 0
    page_window: list[int] = Field(default_factory=list)
    query: str = ""
