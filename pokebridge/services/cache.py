"""
Cache tiers for pokemon race snapshots.

Features:
- CacheEntry envelope carrying freshness and fail-safe deadlines
- Memory-based local tier with LRU eviction
- Async-safe operations

Entries hold the JSON-ready ``PokemonRace.to_dict()`` snapshot, never the live
object, so every read hands out an independent copy.
"""

import asyncio
import json
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from pokebridge.services.errors import CacheError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """A single cache entry with metadata."""

    data: dict[str, Any]
    timestamp: datetime
    ttl: timedelta
    stale_until: datetime

    @classmethod
    def create(
        cls, data: dict[str, Any], ttl: timedelta, fail_safe: timedelta
    ) -> "CacheEntry":
        now = _utcnow()
        return cls(
            data=data,
            timestamp=now,
            ttl=ttl,
            stale_until=now + max(ttl, fail_safe),
        )

    def is_expired(self) -> bool:
        """Check if entry is past its TTL."""
        return _utcnow() > self.timestamp + self.ttl

    def is_stale(self) -> bool:
        """Check if entry is stale but still usable as a fail-safe value."""
        now = _utcnow()
        return now > self.timestamp + self.ttl and now <= self.stale_until

    def is_valid(self) -> bool:
        """Check if entry is still valid (not past stale period)."""
        return _utcnow() <= self.stale_until

    def seconds_until_gone(self) -> int:
        return max(1, int((self.stale_until - _utcnow()).total_seconds()))

    def to_json(self) -> str:
        return json.dumps(
            {
                "data": self.data,
                "timestamp": self.timestamp.isoformat(),
                "ttl": self.ttl.total_seconds(),
                "stale_until": self.stale_until.isoformat(),
            }
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CacheEntry":
        try:
            payload = json.loads(raw)
            return cls(
                data=payload["data"],
                timestamp=datetime.fromisoformat(payload["timestamp"]),
                ttl=timedelta(seconds=payload["ttl"]),
                stale_until=datetime.fromisoformat(payload["stale_until"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise CacheError(f"Malformed cache entry: {e}") from e


@runtime_checkable
class CacheTier(Protocol):
    """One level of the cache (process memory or shared store)."""

    async def get(self, key: str) -> CacheEntry | None: ...

    async def set(self, key: str, entry: CacheEntry) -> None: ...

    async def delete(self, *keys: str) -> None: ...


class LocalCacheTier:
    """
    In-process cache tier.

    Usage:
        local = LocalCacheTier(max_size=1000)

        entry = await local.get("pokemon:name:pikachu")
        if entry and not entry.is_expired():
            return PokemonRace.from_dict(entry.data)

        await local.set("pokemon:name:pikachu", CacheEntry.create(data, ttl, fail_safe))
    """

    def __init__(self, max_size: int = 1000, debug: bool = False):
        self._memory: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_size = max_size
        self._debug = debug
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    async def get(self, key: str) -> CacheEntry | None:
        """
        Get an entry from the cache.

        Returns fresh and stale entries; entries past their fail-safe window
        are dropped and reported as a miss.
        """
        async with self._lock:
            entry = self._memory.get(key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {key}")
                return None

            if not entry.is_valid():
                del self._memory[key]
                self._stats.misses += 1
                self._log(f"EXPIRED: {key}")
                return None

            self._memory.move_to_end(key)
            if entry.is_stale():
                self._stats.stale_hits += 1
                self._log(f"STALE HIT: {key}")
            else:
                self._stats.hits += 1
                self._log(f"HIT: {key}")
            return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        async with self._lock:
            if key in self._memory:
                self._memory.move_to_end(key)
            elif len(self._memory) >= self._max_size:
                self._evict_oldest()

            self._memory[key] = entry
            self._log(f"SET: {key} (TTL: {entry.ttl.total_seconds()}s)")

    async def delete(self, *keys: str) -> None:
        """Delete specific keys from the cache."""
        async with self._lock:
            for key in keys:
                if self._memory.pop(key, None) is not None:
                    self._log(f"DELETE: {key}")

    def _evict_oldest(self) -> None:
        """Evict the least recently used entry."""
        if not self._memory:
            return
        oldest_key, _ = self._memory.popitem(last=False)
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key}")

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._memory)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[LocalCache] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    stale_hits: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.stale_hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits + self.stale_hits) / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stale_hits": self.stale_hits,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
