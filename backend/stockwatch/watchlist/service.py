from __future__ import annotations

import datetime
import logging
from collections.abc import Callable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockwatch.db.models import WatchlistEntry
from stockwatch.errors import (
    DuplicateEntry,
    InvalidSymbol,
    NotFound,
    PersistenceUnavailable,
    Unauthenticated,
    WatchlistError,
)
from stockwatch.invalidation import invalidate_watchlist_views
from stockwatch.schemas.auth import Identity
from stockwatch.schemas.watchlist import MutationResult

logger = logging.getLogger(__name__)

# asyncpg surfaces refused connections as OSError rather than SQLAlchemyError.
PERSISTENCE_ERRORS = (SQLAlchemyError, OSError)

Invalidator = Callable[[str], None]


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def _require_identity(identity: Identity | None) -> Identity:
    if identity is None or not identity.user_id:
        raise Unauthenticated()
    return identity


def _require_symbol(symbol: str) -> str:
    normalized = normalize_symbol(symbol)
    if not normalized:
        raise InvalidSymbol()
    return normalized


def _failure(exc: WatchlistError) -> MutationResult:
    return MutationResult(success=False, error=exc.message, code=exc.code)


async def load_entries(db: AsyncSession, user_id: str) -> list[WatchlistEntry]:
    result = await db.execute(
        select(WatchlistEntry)
        .where(WatchlistEntry.user_id == user_id)
        .order_by(WatchlistEntry.added_at.desc())
    )
    return list(result.scalars().all())


async def _find_entry(db: AsyncSession, user_id: str, symbol: str) -> WatchlistEntry | None:
    result = await db.execute(
        select(WatchlistEntry).where(
            WatchlistEntry.user_id == user_id,
            WatchlistEntry.symbol == symbol,
        )
    )
    return result.scalar_one_or_none()


async def _insert_entry(db: AsyncSession, user_id: str, symbol: str, company: str) -> None:
    if await _find_entry(db, user_id, symbol) is not None:
        raise DuplicateEntry()
    db.add(
        WatchlistEntry(
            user_id=user_id,
            symbol=symbol,
            company=company,
            added_at=datetime.datetime.now(datetime.UTC),
        )
    )
    try:
        await db.commit()
    except IntegrityError as exc:
        # A concurrent add of the same pair won the unique constraint.
        await db.rollback()
        raise DuplicateEntry() from exc


async def _delete_entry(db: AsyncSession, user_id: str, symbol: str) -> None:
    result = await db.execute(
        delete(WatchlistEntry).where(
            WatchlistEntry.user_id == user_id,
            WatchlistEntry.symbol == symbol,
        )
    )
    if not result.rowcount:
        await db.rollback()
        raise NotFound()
    await db.commit()


async def add_to_watchlist(
    db: AsyncSession,
    identity: Identity | None,
    symbol: str,
    company: str,
    invalidate: Invalidator = invalidate_watchlist_views,
) -> MutationResult:
    try:
        user = _require_identity(identity)
        normalized = _require_symbol(symbol)
        name = company.strip() or normalized
        try:
            await _insert_entry(db, user.user_id, normalized, name)
        except PERSISTENCE_ERRORS as exc:
            await _safe_rollback(db)
            raise PersistenceUnavailable("Failed to add to watchlist") from exc
    except WatchlistError as exc:
        _log_failure("add", symbol, exc)
        return _failure(exc)

    logger.info("Added %s to watchlist of %s", normalized, user.user_id)
    invalidate(normalized)
    return MutationResult(success=True)


async def remove_from_watchlist(
    db: AsyncSession,
    identity: Identity | None,
    symbol: str,
    invalidate: Invalidator = invalidate_watchlist_views,
) -> MutationResult:
    try:
        user = _require_identity(identity)
        normalized = _require_symbol(symbol)
        try:
            await _delete_entry(db, user.user_id, normalized)
        except PERSISTENCE_ERRORS as exc:
            await _safe_rollback(db)
            raise PersistenceUnavailable("Failed to remove from watchlist") from exc
    except WatchlistError as exc:
        _log_failure("remove", symbol, exc)
        return _failure(exc)

    logger.info("Removed %s from watchlist of %s", normalized, user.user_id)
    invalidate(normalized)
    return MutationResult(success=True)


async def is_in_watchlist(db: AsyncSession, identity: Identity | None, symbol: str) -> bool:
    if identity is None:
        return False
    normalized = normalize_symbol(symbol)
    if not normalized:
        return False
    try:
        return await _find_entry(db, identity.user_id, normalized) is not None
    except PERSISTENCE_ERRORS:
        logger.exception("is_in_watchlist failed for %s", normalized)
        return False


async def get_watchlist_symbols(db: AsyncSession, user_id: str) -> list[str]:
    if not user_id:
        return []
    try:
        result = await db.execute(
            select(WatchlistEntry.symbol).where(WatchlistEntry.user_id == user_id)
        )
    except PERSISTENCE_ERRORS:
        logger.exception("Loading watchlist symbols failed for %s", user_id)
        return []
    return [str(symbol) for symbol in result.scalars().all()]


async def _safe_rollback(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except PERSISTENCE_ERRORS:
        logger.debug("Rollback failed", exc_info=True)


def _log_failure(operation: str, symbol: str, exc: WatchlistError) -> None:
    if isinstance(exc, PersistenceUnavailable):
        logger.error("%s %s failed: %s", operation, symbol, exc.message, exc_info=exc.__cause__)
    else:
        logger.info("%s %s rejected: %s", operation, symbol, exc.message)
