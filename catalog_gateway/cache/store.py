"""
Generic segmented TTL cache shared by the server and client tiers.
"""
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from .core import CacheEntry

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = logging.getLogger("cache.store")


class TTLCache(Generic[K, V]):
    """
    Keyed cache with a per-key TTL and per-segment storage.

    - segment_for(key) picks the segment a key lives in; a write only ever
      touches that segment, so keys never leak across segments
    - ttl_for(key) gives the TTL stamped on an entry when it is stored
    - each segment holds at most max_entries; on overflow the older half
      is evicted
    - get()/set() never raise: failures are logged and treated as a miss
    """

    def __init__(
        self,
        ttl_for: Callable[[K], float],
        segment_for: Optional[Callable[[K], Hashable]] = None,
        max_entries: int = 100,
        clock: Callable[[], float] = time.time,
        name: str = "cache",
    ):
        self._ttl_for = ttl_for
        self._segment_for = segment_for or (lambda key: None)
        self.max_entries = max_entries
        self._clock = clock
        self.name = name

        self._segments: Dict[Hashable, "OrderedDict[K, CacheEntry[V]]"] = {}
        self._lock = threading.RLock()

        self._stats = {
            "hits": 0,
            "misses": 0,
            "expired": 0,
            "evicted": 0,
            "errors": 0,
        }

    def ttl(self, key: K) -> float:
        """TTL in seconds applied to entries stored under this key."""
        return self._ttl_for(key)

    def now(self) -> float:
        return self._clock()

    def get(self, key: K) -> Optional[CacheEntry[V]]:
        """
        Return the fresh entry for key, or None.

        Expired entries are dropped on read.
        """
        try:
            segment = self._segment_for(key)
            now = self._clock()
            with self._lock:
                entries = self._segments.get(segment)
                entry = entries.get(key) if entries is not None else None

                if entry is None:
                    self._stats["misses"] += 1
                    return None

                if not entry.is_fresh(now):
                    del entries[key]
                    self._stats["expired"] += 1
                    self._stats["misses"] += 1
                    return None

                self._stats["hits"] += 1
                return entry
        except Exception as e:
            self._stats["errors"] += 1
            logger.warning(f"{self.name}: read failed for {key!r}, treating as miss: {e}")
            return None

    def set(self, key: K, payload: V) -> Optional[CacheEntry[V]]:
        """Store payload under key, replacing any previous entry."""
        try:
            segment = self._segment_for(key)
            entry = CacheEntry(
                key=key,
                payload=payload,
                stored_at=self._clock(),
                ttl_seconds=self._ttl_for(key),
                segment=segment,
            )
            with self._lock:
                entries = self._segments.setdefault(segment, OrderedDict())
                entries.pop(key, None)
                entries[key] = entry
                self._evict_overflow(segment, entries)
            return entry
        except Exception as e:
            self._stats["errors"] += 1
            logger.warning(f"{self.name}: write failed for {key!r}: {e}")
            return None

    def _evict_overflow(self, segment: Hashable, entries: "OrderedDict[K, CacheEntry[V]]") -> None:
        if len(entries) <= self.max_entries:
            return
        keep = max(1, self.max_entries // 2)
        while len(entries) > keep:
            entries.popitem(last=False)
            self._stats["evicted"] += 1
        logger.info(f"{self.name}: segment {segment!r} trimmed to {keep} entries")

    def invalidate(self, key: K) -> bool:
        """
        Invalidate a specific cache entry.

        Returns:
            True if entry was found and removed
        """
        with self._lock:
            entries = self._segments.get(self._segment_for(key))
            if entries is not None and key in entries:
                del entries[key]
                logger.info(f"{self.name}: invalidated {key!r}")
                return True
            return False

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = sum(len(entries) for entries in self._segments.values())
            self._segments.clear()
            logger.info(f"{self.name}: cleared {count} cache entries")
            return count

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._segments.values())

    def segment_keys(self, segment: Hashable) -> list:
        """Keys currently stored in a segment, oldest first."""
        with self._lock:
            return list(self._segments.get(segment, {}).keys())

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0
            return {
                "entries": sum(len(entries) for entries in self._segments.values()),
                "segments": {
                    str(getattr(seg, "value", seg)): len(entries)
                    for seg, entries in self._segments.items()
                },
                "hit_rate_percent": round(hit_rate, 1),
                **self._stats,
            }
