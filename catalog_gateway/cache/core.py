"""
Core cache data structures.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


class EndpointFamily(Enum):
    """Logical resources, each cached in its own segment with its own TTL."""
    TOP_ANIME = "top_anime"             # 6 hours
    TOP_MOVIES = "top_movies"           # 12 hours
    CURRENT_SEASON = "current_season"   # 3 hours
    SCHEDULES = "schedules"             # 30 minutes, one entry per day
    ANIME_LISTING = "anime_listing"     # 6 hours, one entry per filter set
    ANIME_DETAILS = "anime_details"     # 24 hours, one entry per title
    GENERIC = "generic"                 # default TTL


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """
    An immutable cached value.

    Fresh while now < stored_at + ttl_seconds; after that it is logically
    absent and gets overwritten by the next fetch for the same key.
    """
    key: Hashable
    payload: V
    stored_at: float
    ttl_seconds: float
    segment: Optional[Any] = None

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds

    def age_seconds(self, now: Optional[float] = None) -> float:
        """Seconds since the value was stored."""
        return (time.time() if now is None else now) - self.stored_at

    def is_fresh(self, now: Optional[float] = None) -> bool:
        """Check if the value is still within its TTL."""
        return (time.time() if now is None else now) < self.expires_at
