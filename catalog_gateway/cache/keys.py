"""
Cache key resolution.

Maps (endpoint, params) to a canonical cache key, or to None for requests
that must always reach upstream (searches, random picks, explicit bypass).

Only a few parameters ever enter a key. Requests that differ solely in an
unrecognized parameter (page, limit, genres, ...) collapse to the same key.
"""
from typing import Any, Mapping, Optional

from ..params import query_value

# Filters that distinguish one /anime listing from another
LISTING_KEY_PARAMS = ("order_by", "sort", "sfw", "type")

# Parameters asking for a fresh upstream read
BYPASS_PARAMS = ("bypass_cache",)


def _present(params: Mapping[str, Any], name: str) -> bool:
    value = params.get(name)
    return value is not None and value != ""


def _is_truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false", "no")
    return bool(value)


def _bypass_requested(params: Mapping[str, Any]) -> bool:
    return any(_is_truthy(params.get(name)) for name in BYPASS_PARAMS)


def resolve_cache_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    """
    Resolve the cache key for a request.

    Args:
        endpoint: API endpoint path (e.g., "/top/anime")
        params: Query parameters; key ordering is irrelevant

    Returns:
        Canonical cache key, or None if the request is uncacheable
    """
    params = params or {}

    if _bypass_requested(params):
        return None

    if endpoint == "/top/anime" and params.get("type") == "movie":
        return "/top/anime/movie"

    if endpoint == "/schedules" and _present(params, "filter"):
        return f"/schedules/{params['filter']}"

    if endpoint == "/anime":
        if _present(params, "q"):
            return None

        filters = sorted(
            (name, query_value(params[name]))
            for name in LISTING_KEY_PARAMS
            if _present(params, name)
        )
        if filters:
            return "/anime?" + "&".join(f"{k}={v}" for k, v in filters)

    if "random" in endpoint:
        return None

    return endpoint
