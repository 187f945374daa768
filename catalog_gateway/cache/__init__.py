"""
Two-tier caching: endpoint-segmented server cache and coalescing client cache.
"""
from .core import CacheEntry, EndpointFamily
from .ttl_policies import (
    TTL_CONFIG,
    DEFAULT_TTL_SECONDS,
    SERVER_CACHED_FAMILIES,
    get_ttl_for_family,
    get_ttl_for_key,
    get_family_for_key,
)
from .keys import resolve_cache_key
from .store import TTLCache
from .server import ServerCache
from .coalescer import ClientCache, make_client_key

__all__ = [
    # Core types
    "CacheEntry",
    "EndpointFamily",
    # TTL policies
    "TTL_CONFIG",
    "DEFAULT_TTL_SECONDS",
    "SERVER_CACHED_FAMILIES",
    "get_ttl_for_family",
    "get_ttl_for_key",
    "get_family_for_key",
    # Keys
    "resolve_cache_key",
    # Stores
    "TTLCache",
    "ServerCache",
    "ClientCache",
    "make_client_key",
]
