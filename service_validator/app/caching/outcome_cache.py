"""
Bounded in-memory cache for token validation outcomes.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from shared.errors import ConfigurationError
from shared.logging import get_logger

V = TypeVar("V")


class ExpiryMode(str, Enum):
    """What the TTL clock of an entry is anchored to."""
    WRITE = "write"
    ACCESS = "access"


@dataclass
class _Entry(Generic[V]):
    value: V
    stamped_at: float


class OutcomeCache(Generic[V]):
    """Thread-safe key/value store with per-entry TTL and a size bound.

    Entries expire ``ttl_seconds`` after they were written (``write`` mode)
    or last read (``access`` mode). Reads always compare the entry stamp
    with the clock, so an expired entry is never returned even when it has
    not been evicted yet. When the cache is full, expired entries are purged
    and then the least recently used entry is evicted.
    """

    def __init__(
        self,
        name: str,
        max_size: int,
        ttl_seconds: float,
        *,
        expiry_mode: ExpiryMode = ExpiryMode.WRITE,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size <= 0:
            raise ConfigurationError(
                "Cache size must be positive",
                details={"cache": name, "max_size": max_size}
            )
        if ttl_seconds <= 0:
            raise ConfigurationError(
                "Cache TTL must be positive",
                details={"cache": name, "ttl_seconds": ttl_seconds}
            )

        self.name = name
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.expiry_mode = ExpiryMode(expiry_mode)
        self._clock = clock
        self._entries: "OrderedDict[Hashable, _Entry[V]]" = OrderedDict()
        self._lock = threading.RLock()
        self.logger = get_logger(f"validator.cache.{name}")

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _expired(self, entry: _Entry[V], now: float) -> bool:
        return now - entry.stamped_at >= self.ttl_seconds

    def get(self, key: Hashable) -> Optional[V]:
        """Return the value for ``key`` if present and within its TTL."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            now = self._clock()
            if self._expired(entry, now):
                del self._entries[key]
                self._misses += 1
                return None

            if self.expiry_mode is ExpiryMode.ACCESS:
                entry.stamped_at = now
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def put(self, key: Hashable, value: V) -> None:
        """Insert or replace ``key``, evicting if the cache is full."""
        with self._lock:
            now = self._clock()
            if key in self._entries:
                self._entries[key] = _Entry(value, now)
                self._entries.move_to_end(key)
                return

            if len(self._entries) >= self.max_size:
                self._purge_expired(now)
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
                self._evictions += 1
                self.logger.debug("Evicted least recently used entry", cache=self.name)

            self._entries[key] = _Entry(value, now)

    def invalidate(self, key: Hashable, expected: Optional[V] = None) -> bool:
        """Remove ``key``.

        With ``expected`` set, the entry is only removed while it still holds
        that exact value; a concurrent writer's fresher value is left alone.
        Returns whether an entry was removed.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if expected is not None and entry.value is not expected:
                return False
            del self._entries[key]
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in expired:
            del self._entries[key]
        self._evictions += len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry, self._clock())

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "name": self.name,
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "expiry_mode": self.expiry_mode.value,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
