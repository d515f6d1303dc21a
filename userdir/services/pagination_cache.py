import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, NamedTuple, Optional

from userdir.schemas.user import PageResult


class PageKey(NamedTuple):
    """Cache slot for one page. Compared field by field, so (1, 23) never aliases (12, 3)."""

    page: int
    page_size: int


@dataclass(frozen=True)
class CacheOptions:
    sliding_minutes: float = 5.0
    absolute_minutes: float = 30.0
    max_entries: int = 1024

    def __post_init__(self):
        if self.sliding_minutes <= 0 or self.absolute_minutes <= 0:
            raise ValueError("cache expirations must be positive")
        if self.max_entries < 1:
            raise ValueError("cache max_entries must be at least 1")

    @classmethod
    def from_settings(cls, settings) -> "CacheOptions":
        return cls(
            sliding_minutes=settings.CACHE_SLIDING_MINUTES,
            absolute_minutes=settings.CACHE_ABSOLUTE_MINUTES,
            max_entries=settings.CACHE_MAX_ENTRIES,
        )


@dataclass
class CacheEntry:
    value: PageResult
    sliding_seconds: float
    absolute_deadline: float
    last_access: float

    def is_expired(self, now: float) -> bool:
        return now >= self.absolute_deadline or now - self.last_access >= self.sliding_seconds


class PaginationCache:
    """Bounded in-memory cache of page results with sliding and absolute expiration.

    Expiry is checked lazily on access and by `sweep()`; least recently used
    entries are evicted once `max_entries` is exceeded. `invalidate_all()` swaps
    the backing map and bumps a generation counter, so a page computed before an
    invalidation can be refused by `set` afterwards.
    """

    def __init__(self, options: Optional[CacheOptions] = None, clock: Callable[[], float] = time.monotonic):
        self.options = options if options is not None else CacheOptions()
        self._clock = clock
        self._lock = threading.Lock()
        self._store: "OrderedDict[PageKey, CacheEntry]" = OrderedDict()
        self._generation = 0
        self._hits = 0
        self._misses = 0

    @property
    def generation(self) -> int:
        """Incremented by every invalidate_all(). Capture it before reading the store."""
        with self._lock:
            return self._generation

    def get(self, key: PageKey) -> Optional[PageResult]:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                # expired
                del self._store[key]
                self._misses += 1
                return None
            entry.last_access = now
            self._store.move_to_end(key)  # LRU bump
            self._hits += 1
            return entry.value

    def set(
        self,
        key: PageKey,
        value: PageResult,
        sliding_seconds: Optional[float] = None,
        absolute_seconds: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> bool:
        """Store `value` under `key`, replacing any existing entry.

        When `generation` is given and an invalidation happened since it was read,
        the value is stale and gets dropped. Returns whether the value was stored.
        """
        now = self._clock()
        sliding = self.options.sliding_minutes * 60 if sliding_seconds is None else sliding_seconds
        absolute = self.options.absolute_minutes * 60 if absolute_seconds is None else absolute_seconds
        entry = CacheEntry(
            value=value,
            sliding_seconds=sliding,
            absolute_deadline=now + absolute,
            last_access=now,
        )
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._store[key] = entry
            self._store.move_to_end(key)
            while len(self._store) > self.options.max_entries:
                self._store.popitem(last=False)
            return True

    def invalidate_all(self) -> int:
        """Drop every entry. Returns how many entries were dropped."""
        with self._lock:
            dropped = len(self._store)
            self._store = OrderedDict()
            self._generation += 1
            return dropped

    def sweep(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
            for k in expired:
                del self._store[k]
            return len(expired)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "size": len(self._store),
                "max_entries": self.options.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "generation": self._generation,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
