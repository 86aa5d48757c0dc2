"""Thread-safe LRU store with per-entry expiry."""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

from ..logging import get_logger
from .cache_types import CacheEntry

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], float]


class LRUStore(Generic[K, V]):
    """Bounded mapping that evicts least-recently-used entries.

    The store can be bounded by entry count, by total bytes (with a
    ``sizeof`` function), or both. Entries older than ``ttl_seconds`` are
    treated as absent and removed when looked up or swept.

    Attributes:
        name: Store name used in log events.
        max_entries: Maximum number of entries, or None for no count limit.
        max_bytes: Maximum total size, or None for no size limit.
        ttl_seconds: Entry lifetime, or None for entries that never expire.
    """

    def __init__(
        self,
        name: str,
        max_entries: int | None = None,
        max_bytes: int | None = None,
        ttl_seconds: float | None = None,
        clock: Clock = time.monotonic,
        sizeof: Callable[[V], int] | None = None,
        max_item_fraction: float = 0.1,
    ) -> None:
        """Initialize the store.

        Args:
            name: Store name used in log events.
            max_entries: Maximum number of entries.
            max_bytes: Maximum total size in bytes, measured with ``sizeof``.
            ttl_seconds: Entry lifetime in seconds.
            clock: Time source, injectable for tests.
            sizeof: Size function for byte-bounded stores.
            max_item_fraction: A single value at least this fraction of
                ``max_bytes`` is refused.
        """
        self.name = name
        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sizeof = sizeof
        self._max_item_fraction = max_item_fraction

        self._data: OrderedDict[K, CacheEntry[V]] = OrderedDict()
        self._lock = threading.RLock()
        self._total_bytes = 0

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _is_expired(self, entry: CacheEntry[V], now: float) -> bool:
        return self.ttl_seconds is not None and entry.age(now) >= self.ttl_seconds

    def _drop(self, key: K) -> None:
        entry = self._data.pop(key)
        self._total_bytes -= entry.size_bytes

    def get_entry(self, key: K) -> CacheEntry[V] | None:
        """Look up an entry, counting a hit or a miss."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry, self._clock()):
                self._drop(key)
                self._evictions += 1
                self._misses += 1
                logger.debug("cache_entry_expired", store=self.name)
                return None

            self._data.move_to_end(key)
            entry.hit_count += 1
            self._hits += 1
            return entry

    def get(self, key: K) -> V | None:
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def put(self, key: K, value: V, confidence: float = 0.0) -> bool:
        """Store a value.

        Returns:
            False if the value is too large for this store, True otherwise.
        """
        size = self._sizeof(value) if self._sizeof else 0
        if self.max_bytes is not None and size >= self.max_bytes * self._max_item_fraction:
            logger.warning(
                "cache_value_too_large", store=self.name, size_bytes=size, max_bytes=self.max_bytes
            )
            return False

        with self._lock:
            if key in self._data:
                self._drop(key)

            self._data[key] = CacheEntry(
                value=value, timestamp=self._clock(), confidence=confidence, size_bytes=size
            )
            self._total_bytes += size
            self._evict_overflow()
        return True

    def _evict_overflow(self) -> None:
        while self._data and (
            (self.max_entries is not None and len(self._data) > self.max_entries)
            or (self.max_bytes is not None and self._total_bytes > self.max_bytes)
        ):
            key, entry = self._data.popitem(last=False)
            self._total_bytes -= entry.size_bytes
            self._evictions += 1

    def remove(self, key: K) -> bool:
        with self._lock:
            if key not in self._data:
                return False
            self._drop(key)
            return True

    def sweep_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed.
        """
        if self.ttl_seconds is None:
            return 0

        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._data.items() if self._is_expired(entry, now)]
            for key in expired:
                self._drop(key)
            self._evictions += len(expired)
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._total_bytes = 0

    def entries(self) -> list[CacheEntry[V]]:
        """Snapshot of the stored entries, oldest first."""
        with self._lock:
            return list(self._data.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    @property
    def size_bytes(self) -> int:
        return self._total_bytes

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    @property
    def evictions(self) -> int:
        return self._evictions
