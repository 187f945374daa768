"""
TTL configuration and key-to-family mapping.
"""
import re
from types import MappingProxyType
from typing import Mapping

from .core import EndpointFamily

HOUR = 60 * 60
MINUTE = 60

DEFAULT_TTL_SECONDS = 5 * MINUTE

# "/anime/5114" or "/anime/5114/full"
ANIME_DETAILS_KEY = re.compile(r"^/anime/\d+(?:/full)?$")

# TTL by endpoint family (in seconds). Read-only at runtime.
TTL_CONFIG: Mapping[EndpointFamily, int] = MappingProxyType({
    EndpointFamily.TOP_ANIME: 6 * HOUR,
    EndpointFamily.TOP_MOVIES: 12 * HOUR,
    EndpointFamily.CURRENT_SEASON: 3 * HOUR,
    EndpointFamily.SCHEDULES: 30 * MINUTE,
    EndpointFamily.ANIME_LISTING: 6 * HOUR,
    EndpointFamily.ANIME_DETAILS: 24 * HOUR,
    EndpointFamily.GENERIC: DEFAULT_TTL_SECONDS,
})

# Families served through the shared server-side cache
SERVER_CACHED_FAMILIES = frozenset({
    EndpointFamily.TOP_ANIME,
    EndpointFamily.TOP_MOVIES,
    EndpointFamily.CURRENT_SEASON,
    EndpointFamily.SCHEDULES,
    EndpointFamily.ANIME_LISTING,
    EndpointFamily.ANIME_DETAILS,
})


def get_ttl_for_family(family: EndpointFamily) -> int:
    """TTL in seconds for a family; unknown families get the default."""
    return TTL_CONFIG.get(family, DEFAULT_TTL_SECONDS)


def get_family_for_key(cache_key: str) -> EndpointFamily:
    """
    Determine the endpoint family of a resolved cache key.

    Args:
        cache_key: Key produced by resolve_cache_key (e.g. "/schedules/monday")

    Returns:
        EndpointFamily whose segment owns the key
    """
    if cache_key == "/top/anime/movie":
        return EndpointFamily.TOP_MOVIES

    if cache_key == "/top/anime":
        return EndpointFamily.TOP_ANIME

    if cache_key == "/seasons/now":
        return EndpointFamily.CURRENT_SEASON

    if cache_key == "/schedules" or cache_key.startswith("/schedules/"):
        return EndpointFamily.SCHEDULES

    # Plain listing or "/anime?order_by=..." filter keys, not "/anime/{id}"
    if cache_key == "/anime" or cache_key.startswith("/anime?"):
        return EndpointFamily.ANIME_LISTING

    if ANIME_DETAILS_KEY.match(cache_key):
        return EndpointFamily.ANIME_DETAILS

    return EndpointFamily.GENERIC


def get_ttl_for_key(cache_key: str) -> int:
    """TTL in seconds for a resolved cache key."""
    return get_ttl_for_family(get_family_for_key(cache_key))
