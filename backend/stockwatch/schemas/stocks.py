from __future__ import annotations

from pydantic import BaseModel


class StockSearchResult(BaseModel):
    symbol: str
    name: str
    exchange: str
    type: str
    is_in_watchlist: bool = False
