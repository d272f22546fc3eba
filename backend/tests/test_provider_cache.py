from stockwatch.cache import get_snapshot, set_snapshot, ttl_for
from stockwatch.config.settings import settings
from stockwatch.schemas.provider import MarketDataSnapshot


def test_cache_roundtrip(fake_redis) -> None:
    snapshot = MarketDataSnapshot(
        provider="finnhub",
        symbol="AAPL",
        kind="quote",
        cache_key="finnhub:quote:AAPL",
        payload={"c": 189.5, "dp": 1.25},
        status="ok",
    )

    set_snapshot(snapshot)
    cached = get_snapshot(snapshot.cache_key)

    assert cached is not None
    assert cached.cache_key == snapshot.cache_key
    assert cached.kind == "quote"
    assert cached.payload == snapshot.payload
    assert fake_redis.expirations[snapshot.cache_key] == settings.cache.quote_ttl_seconds


def test_profile_and_quote_expire_independently(fake_redis) -> None:
    quote = MarketDataSnapshot(
        provider="finnhub", symbol="MSFT", kind="quote", cache_key="finnhub:quote:MSFT"
    )
    profile = MarketDataSnapshot(
        provider="finnhub", symbol="MSFT", kind="profile", cache_key="finnhub:profile:MSFT"
    )

    set_snapshot(quote)
    set_snapshot(profile)

    assert fake_redis.expirations["finnhub:quote:MSFT"] == 300
    assert fake_redis.expirations["finnhub:profile:MSFT"] == 1800


def test_failed_snapshots_use_error_ttl() -> None:
    assert ttl_for("profile", "rate_limited") == settings.cache.error_ttl_seconds
    assert ttl_for("quote", "error") == settings.cache.error_ttl_seconds
    assert ttl_for("search", "empty") == settings.cache.search_ttl_seconds


def test_corrupt_cache_entry_is_a_miss(fake_redis) -> None:
    fake_redis.store["finnhub:quote:BAD"] = "{not json"

    assert get_snapshot("finnhub:quote:BAD") is None


def test_unreachable_cache_is_a_miss(monkeypatch) -> None:
    def _broken():
        raise ConnectionError("redis down")

    monkeypatch.setattr("stockwatch.cache.get_client", _broken)

    assert get_snapshot("finnhub:quote:AAPL") is None
    set_snapshot(
        MarketDataSnapshot(
            provider="finnhub", symbol="AAPL", kind="quote", cache_key="finnhub:quote:AAPL"
        )
    )
