"""
Unit Tests - Price Cache
"""
import pytest
from decimal import Decimal

from tradeledger.market.price_cache import PriceCache, PriceCacheConfig, Quote


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return PriceCache(PriceCacheConfig(ttl_seconds=60, max_entries=2), clock=clock)


class TestPriceCache:

    def test_symbols_are_case_insensitive(self, cache):
        cache.put(Quote(symbol="btc", price=Decimal("3000000")))
        quote = cache.get("BTC")
        assert quote.symbol == "BTC"
        assert quote.price == Decimal("3000000")

    def test_missing_symbol_is_a_miss(self, cache):
        assert cache.get("ETH") is None
        assert cache.stats.misses == 1

    def test_quote_expires_after_ttl(self, cache, clock):
        cache.put(Quote(symbol="BTC", price=Decimal("100")))

        clock.advance(60)
        assert cache.get("BTC") is not None

        clock.advance(1)
        assert cache.get("BTC") is None
        assert cache.stats.expirations == 1
        assert len(cache) == 0

    def test_least_recently_used_entry_evicted(self, cache):
        cache.put(Quote(symbol="BTC", price=Decimal("100")))
        cache.put(Quote(symbol="ETH", price=Decimal("10")))
        cache.get("BTC")
        cache.put(Quote(symbol="SOL", price=Decimal("1")))

        assert cache.get("ETH") is None
        assert cache.get("BTC") is not None
        assert cache.get("SOL") is not None
        assert cache.stats.evictions == 1

    def test_get_many_skips_stale(self, cache, clock):
        cache.put(Quote(symbol="BTC", price=Decimal("100")))
        clock.advance(30)
        cache.put(Quote(symbol="ETH", price=Decimal("10")))
        clock.advance(31)

        assert set(cache.get_many(["btc", "eth", "doge"])) == {"ETH"}

    def test_evict_expired(self, cache, clock):
        cache.put_many([
            Quote(symbol="BTC", price=Decimal("100")),
            Quote(symbol="ETH", price=Decimal("10")),
        ])
        clock.advance(61)
        assert cache.evict_expired() == 2
        assert len(cache) == 0

    def test_stats(self, cache):
        cache.put(Quote(symbol="BTC", price=Decimal("100")))
        cache.get("BTC")
        cache.get("ETH")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["max_entries"] == 2

    def test_zero_capacity_rejected(self):
        with pytest.raises(ValueError):
            PriceCache(PriceCacheConfig(max_entries=0))
