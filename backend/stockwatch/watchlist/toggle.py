"""Optimistic watchlist button state for client code calling the HTTP API.

The server package does not import this module.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from stockwatch.schemas.watchlist import MutationResult

logger = logging.getLogger(__name__)

AddCall = Callable[[str, str], Awaitable[MutationResult]]
RemoveCall = Callable[[str], Awaitable[MutationResult]]
ChangeCallback = Callable[[str, bool], None]
NotifyCallback = Callable[[str], None]


class WatchlistToggle:
    """Client-side add/remove button state with optimistic updates.

    The new state is applied and announced before the server answers. If the
    call fails or raises, the previous state is restored and announced again.
    """

    def __init__(
        self,
        symbol: str,
        company: str,
        add: AddCall,
        remove: RemoveCall,
        added: bool = False,
        on_change: ChangeCallback | None = None,
        on_success: NotifyCallback | None = None,
        on_error: NotifyCallback | None = None,
    ) -> None:
        self.symbol = symbol
        self.company = company
        self.added = added
        self.pending = False
        self._add = add
        self._remove = remove
        self._on_change = on_change
        self._on_success = on_success
        self._on_error = on_error

    @property
    def label(self) -> str:
        if self.pending:
            return "Adding..." if self.added else "Removing..."
        return "Remove from Watchlist" if self.added else "Add to Watchlist"

    def _set(self, added: bool) -> None:
        self.added = added
        if self._on_change is not None:
            self._on_change(self.symbol, added)

    def _notify(self, callback: NotifyCallback | None, message: str) -> None:
        if callback is not None:
            callback(message)

    async def toggle(self) -> bool:
        """Flip membership; returns False when ignored or rolled back."""
        if self.pending:
            return False

        previous = self.added
        target = not previous
        self._set(target)
        self.pending = True
        try:
            if target:
                result = await self._add(self.symbol, self.company)
            else:
                result = await self._remove(self.symbol)
        except Exception:
            logger.exception("Watchlist operation error for %s", self.symbol)
            self._set(previous)
            self._notify(self._on_error, "Something went wrong. Please try again.")
            return False
        finally:
            self.pending = False

        if not result.success:
            self._set(previous)
            self._notify(self._on_error, result.error or "Operation failed")
            return False

        action = "added to" if target else "removed from"
        self._notify(self._on_success, f"{self.symbol} {action} watchlist")
        return True
