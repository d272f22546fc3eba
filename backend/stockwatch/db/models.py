# backend/stockwatch/db/models.py

import datetime
import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class WatchlistEntry(Base):
    __tablename__ = "watchlist_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "symbol", name="uq_watchlist_entries_user_symbol"),
        Index("ix_watchlist_entries_user_added_at", "user_id", "added_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    symbol = Column(String, nullable=False)
    company = Column(String, nullable=False)
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<WatchlistEntry(user_id='{self.user_id}', symbol='{self.symbol}')>"
