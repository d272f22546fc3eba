from typing import Literal

from pydantic import BaseModel, Field

SnapshotKind = Literal["quote", "profile", "search"]


class MarketDataSnapshot(BaseModel):
    provider: str
    symbol: str
    kind: SnapshotKind
    cache_key: str
    payload: dict = Field(default_factory=dict)
    status: str = "ok"

    @property
    def usable(self) -> bool:
        """True when the provider answered, even if it had nothing to report."""
        return self.status in ("ok", "empty")
