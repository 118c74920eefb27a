"""LRU cache with optional TTL, used for image lookups."""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, TypeVar

from .hash import hash_string

T = TypeVar("T")


@dataclass
class Stats:
    """Cache statistics."""

    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class LRUCache(Generic[T]):
    """
    Least-recently-used cache keyed by arbitrary strings.

    Keys are hashed (xxhash64) so long query strings cost a fixed amount of
    memory. Entries older than ``ttl_seconds`` are treated as misses.

    Examples:
        >>> cache = LRUCache[str](max_size=2)
        >>> cache.set("a", "1")
        >>> cache.get("a")
        '1'
    """

    def __init__(self, max_size: int = 100, ttl_seconds: float | None = None):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._entries: OrderedDict[str, tuple[T, float]] = OrderedDict()
        self._stats = Stats(max_size=max_size)

    def _key(self, key: str) -> str:
        return hash_string(key, truncate=16)

    def get(self, key: str) -> T | None:
        cache_key = self._key(key)
        entry = self._entries.get(cache_key)
        if entry is None:
            self._stats.misses += 1
            return None

        value, stored_at = entry
        if self.ttl_seconds is not None and time.monotonic() - stored_at >= self.ttl_seconds:
            del self._entries[cache_key]
            self._stats.size = len(self._entries)
            self._stats.misses += 1
            return None

        self._entries.move_to_end(cache_key)
        self._stats.hits += 1
        return value

    def set(self, key: str, value: T) -> None:
        cache_key = self._key(key)
        self._entries.pop(cache_key, None)
        self._entries[cache_key] = (value, time.monotonic())
        if len(self._entries) > self.max_size:
            self._entries.popitem(last=False)
            self._stats.evictions += 1
        self._stats.size = len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._stats.size = 0

    @property
    def stats(self) -> Stats:
        return self._stats

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._key(key) in self._entries


__all__ = ["LRUCache", "Stats"]
