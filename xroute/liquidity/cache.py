"""Time-bounded price cache shared by one oracle instance."""

import threading
import time
from collections.abc import Callable, Hashable
from typing import Any

from xroute.constants import DEFAULT_PRICE_CACHE_TTL


class PriceCache:
    """TTL cache with lazy eviction.

    Entries older than ``ttl`` seconds are dropped when looked up; there is
    no background sweeper. All access goes through one lock, so the cache is
    safe to share between concurrent queries (including from worker threads).
    A ``ttl`` of 0 disables caching.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_PRICE_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        if self.ttl <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["PriceCache"]
