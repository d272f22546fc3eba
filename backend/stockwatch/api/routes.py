from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from stockwatch.auth.session import get_current_identity
from stockwatch.config.settings import settings
from stockwatch.db.session import get_session
from stockwatch.schemas.auth import Identity
from stockwatch.schemas.stocks import StockSearchResult
from stockwatch.schemas.watchlist import (
    MutationResult,
    WatchlistMembership,
    WatchlistPage,
    WatchlistRequest,
)
from stockwatch.watchlist.enrichment import get_watchlist_with_data
from stockwatch.watchlist.pagination import paginate
from stockwatch.watchlist.search import search_stocks
from stockwatch.watchlist.service import (
    add_to_watchlist,
    is_in_watchlist,
    normalize_symbol,
    remove_from_watchlist,
)

router = APIRouter()

_STATUS_BY_CODE = {
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "duplicate_entry": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_symbol": status.HTTP_400_BAD_REQUEST,
    "persistence_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _mutation_response(result: MutationResult) -> JSONResponse:
    status_code = status.HTTP_200_OK
    if not result.success:
        status_code = _STATUS_BY_CODE.get(result.code or "", status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=status_code, content=result.model_dump())


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/watchlist", response_model=WatchlistPage)
async def list_watchlist(
    q: str = "",
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
    identity: Identity | None = Depends(get_current_identity),
) -> WatchlistPage:
    stocks = await get_watchlist_with_data(db, identity)
    return paginate(stocks, q, page, per_page or settings.watchlist_page_size)


@router.post("/watchlist", response_model=MutationResult)
async def add_watchlist_entry(
    payload: WatchlistRequest,
    db: AsyncSession = Depends(get_session),
    identity: Identity | None = Depends(get_current_identity),
) -> JSONResponse:
    result = await add_to_watchlist(db, identity, payload.symbol, payload.company)
    return _mutation_response(result)


@router.delete("/watchlist/{symbol}", response_model=MutationResult)
async def remove_watchlist_entry(
    symbol: str,
    db: AsyncSession = Depends(get_session),
    identity: Identity | None = Depends(get_current_identity),
) -> JSONResponse:
    result = await remove_from_watchlist(db, identity, symbol)
    return _mutation_response(result)


@router.get("/watchlist/{symbol}", response_model=WatchlistMembership)
async def watchlist_membership(
    symbol: str,
    db: AsyncSession = Depends(get_session),
    identity: Identity | None = Depends(get_current_identity),
) -> WatchlistMembership:
    return WatchlistMembership(
        symbol=normalize_symbol(symbol),
        in_watchlist=await is_in_watchlist(db, identity, symbol),
    )


@router.get("/stocks/search", response_model=list[StockSearchResult])
async def search_stocks_endpoint(
    q: str = "",
    db: AsyncSession = Depends(get_session),
    identity: Identity | None = Depends(get_current_identity),
) -> list[StockSearchResult]:
    return await search_stocks(db, identity, q)
