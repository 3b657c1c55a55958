"""
Price Cache

In-process cache of the latest externally supplied quotes. The ledger
never fetches prices; a market-data feed pushes quotes in and the
portfolio read path pulls them out.

Entries expire after `ttl_seconds` and the least recently used entry is
evicted once `max_entries` is reached. One instance is created at startup
and handed to whoever needs it.
"""
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

from loguru import logger


@dataclass(frozen=True)
class Quote:
    """Latest price for a symbol."""
    symbol: str
    price: Decimal
    change_24h_percent: Optional[Decimal] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "price": str(self.price),
            "change_24h_percent": str(self.change_24h_percent) if self.change_24h_percent is not None else None,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class PriceCacheConfig:
    """Cache configuration."""
    ttl_seconds: float = 60          # quotes older than this are ignored
    max_entries: int = 1000

    @classmethod
    def from_settings(cls, settings) -> "PriceCacheConfig":
        return cls(
            ttl_seconds=settings.PRICE_CACHE_TTL_SECONDS,
            max_entries=settings.PRICE_CACHE_MAX_ENTRIES,
        )


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    expirations: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class PriceCache:
    """TTL + LRU quote cache keyed by upper-case symbol."""

    def __init__(
        self,
        config: Optional[PriceCacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or PriceCacheConfig()
        if self.config.max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Quote, float]] = OrderedDict()
        self.stats = CacheStats()

    def put(self, quote: Quote) -> None:
        """Insert or replace a quote."""
        symbol = quote.symbol.upper()
        if quote.symbol != symbol:
            quote = Quote(symbol, quote.price, quote.change_24h_percent, quote.timestamp)
        self._entries[symbol] = (quote, self._clock())
        self._entries.move_to_end(symbol)
        while len(self._entries) > self.config.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self.stats.evictions += 1
            logger.debug(f"Price cache evicted {evicted}")

    def put_many(self, quotes: Iterable[Quote]) -> int:
        count = 0
        for quote in quotes:
            self.put(quote)
            count += 1
        return count

    def get(self, symbol: str) -> Optional[Quote]:
        """Fresh quote for a symbol, or None if absent or expired."""
        symbol = symbol.upper()
        entry = self._entries.get(symbol)
        if entry is None:
            self.stats.misses += 1
            return None

        quote, stored_at = entry
        if self._clock() - stored_at > self.config.ttl_seconds:
            del self._entries[symbol]
            self.stats.expirations += 1
            self.stats.misses += 1
            return None

        self._entries.move_to_end(symbol)
        self.stats.hits += 1
        return quote

    def get_many(self, symbols: Iterable[str]) -> dict[str, Quote]:
        result = {}
        for symbol in symbols:
            quote = self.get(symbol)
            if quote is not None:
                result[quote.symbol] = quote
        return result

    def evict_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [
            symbol for symbol, (_, stored_at) in self._entries.items()
            if now - stored_at > self.config.ttl_seconds
        ]
        for symbol in expired:
            del self._entries[symbol]
        self.stats.expirations += len(expired)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "max_entries": self.config.max_entries,
            "ttl_seconds": self.config.ttl_seconds,
            "hits": self.stats.hits,
            "misses": self.stats.misses,
            "expirations": self.stats.expirations,
            "evictions": self.stats.evictions,
            "hit_rate": round(self.stats.hit_rate, 4),
        }
