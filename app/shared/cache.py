"""
Process-local result cache with lazy TTL expiry.

One instance is created by the application factory and injected into
the use cases that need it. There is no module-level cache state.

Entries are served while ``now - computed_at < ttl`` and replaced on the
next miss after that. There is no background sweep. An optional
``max_entries`` bound evicts the least recently used entry on insert.

Concurrent misses for the same key may both run ``compute_fn``. The last
write wins. The lock only guards map operations and is never held while
``compute_fn`` runs, so a cancelled or failed computation stores nothing.

Every key carries a generation that ``invalidate`` and ``clear`` bump. A
computation started before the bump returns its result to the caller but
does not store it, so a write made while a read is in flight is never
hidden behind a stale entry.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_SEPARATOR = "|"


@dataclass(frozen=True)
class CacheEntry:
    """A computed payload and the monotonic time it was stored."""

    key: str
    payload: Any
    computed_at: float


def _normalize(value: Any) -> str:
    if isinstance(value, Enum):
        return _normalize(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value)).normalize()
        return format(number, "f")
    return str(value).strip()


def build_cache_key(namespace: str, **params: Any) -> str:
    """Build a deterministic key from a query's semantic parameters.

    Parameter order does not matter, enums collapse to their value,
    numbers to canonical decimal form (5 and 5.0 match) and None
    parameters are dropped.

    Example:
        >>> build_cache_key("trending", window="24h", limit=20)
        'trending:limit=20|window=24h'
    """
    parts = [
        f"{name}={_normalize(value)}"
        for name, value in sorted(params.items())
        if value is not None
    ]
    return f"{namespace}:{KEY_SEPARATOR.join(parts)}"


class ResultCache:
    """Time-bounded store of computed query results.

    Args:
        ttl_seconds: Default freshness period for entries.
        max_entries: Optional LRU bound. None keeps every key.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._generations: dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "invalidations": 0,
            "evictions": 0,
        }

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def stats(self) -> dict:
        with self._lock:
            return dict(self._stats)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str, ttl: Optional[float] = None) -> Optional[CacheEntry]:
        """Return the entry for ``key`` if it is still fresh."""
        ttl = self._ttl if ttl is None else ttl
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() - entry.computed_at >= ttl:
                return None
            self._entries.move_to_end(key)
            return entry

    def put(self, key: str, payload: Any) -> CacheEntry:
        """Store ``payload`` under ``key`` stamped with the current time."""
        entry = CacheEntry(key=key, payload=payload, computed_at=self._clock())
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    self._stats["evictions"] += 1
                    logger.debug("Cache evicted key=%s", evicted)
        return entry

    async def get_or_compute(
        self,
        key: str,
        compute_fn: Callable[[], Awaitable[T]],
        ttl: Optional[float] = None,
    ) -> T:
        """Return the fresh cached payload or compute, store and return it.

        Args:
            key: Normalized query signature (see ``build_cache_key``).
            compute_fn: Coroutine factory performing fetch + computation.
            ttl: Freshness override for this lookup.

        Returns:
            The cached or freshly computed payload.
        """
        entry = self.get(key, ttl)
        if entry is not None:
            with self._lock:
                self._stats["hits"] += 1
            logger.debug("Cache hit key=%s", key)
            return entry.payload

        with self._lock:
            self._stats["misses"] += 1
        logger.debug("Cache miss key=%s", key)

        generation = self._generation(key)
        payload = await compute_fn()
        if self._generation(key) == generation:
            self.put(key, payload)
        else:
            logger.debug("Cache skipped stale result key=%s", key)
        return payload

    def _generation(self, key: str) -> tuple[int, int]:
        with self._lock:
            return self._epoch, self._generations.get(key, 0)

    def invalidate(self, key: str) -> bool:
        """Drop ``key``. Returns True if an entry was removed."""
        with self._lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            removed = self._entries.pop(key, None) is not None
            if removed:
                self._stats["invalidations"] += 1
        if removed:
            logger.debug("Cache invalidated key=%s", key)
        return removed

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1
