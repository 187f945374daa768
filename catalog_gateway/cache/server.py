"""
Long-TTL server-side cache, segmented by endpoint family.
"""
import copy
import logging
import time
from typing import Any, Callable, Optional

from .core import CacheEntry, EndpointFamily
from .store import TTLCache
from .ttl_policies import get_family_for_key, get_ttl_for_family

logger = logging.getLogger("cache.server")


class ServerCache(TTLCache[str, Any]):
    """
    Resolved JSON payloads shared by every caller of the process.

    Keys are resolved cache keys ("/top/anime/movie", "/schedules/monday",
    "/anime?order_by=score&sort=desc", ...). Each key lives in the segment of
    its EndpointFamily and gets that family's TTL. Payloads are copied on the
    way in and out so a stored entry is never mutated.
    """

    def __init__(self, max_entries: int = 100, clock: Callable[[], float] = time.time):
        super().__init__(
            ttl_for=self._ttl_for_key,
            segment_for=get_family_for_key,
            max_entries=max_entries,
            clock=clock,
            name="server-cache",
        )

    @staticmethod
    def _ttl_for_key(key: str) -> int:
        return get_ttl_for_family(get_family_for_key(key))

    def family(self, key: str) -> EndpointFamily:
        return get_family_for_key(key)

    def get(self, key: str) -> Optional[CacheEntry[Any]]:
        entry = super().get(key)
        if entry is None:
            logger.info(f"CACHE MISS: {key}")
            return None

        logger.debug(f"CACHE HIT: {key} [age={entry.age_seconds(self.now()):.1f}s]")
        return CacheEntry(
            key=entry.key,
            payload=copy.deepcopy(entry.payload),
            stored_at=entry.stored_at,
            ttl_seconds=entry.ttl_seconds,
            segment=entry.segment,
        )

    def set(self, key: str, payload: Any) -> Optional[CacheEntry[Any]]:
        entry = super().set(key, copy.deepcopy(payload))
        if entry is not None:
            logger.debug(f"Cached {key} in {entry.segment.value} for {entry.ttl_seconds}s")
        return entry
