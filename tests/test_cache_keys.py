"""
Tests for cache key resolution and the TTL policy table.
"""
import itertools

import pytest

from catalog_gateway.cache import (
    DEFAULT_TTL_SECONDS,
    EndpointFamily,
    TTL_CONFIG,
    get_family_for_key,
    get_ttl_for_key,
    resolve_cache_key,
)


# =============================================================================
# Key resolution
# =============================================================================

def test_top_movies_get_their_own_key():
    assert resolve_cache_key("/top/anime", {"type": "movie", "limit": 7}) == "/top/anime/movie"


def test_top_anime_other_types_use_the_endpoint():
    assert resolve_cache_key("/top/anime", {"type": "tv", "filter": "bypopularity"}) == "/top/anime"


def test_schedules_keyed_by_day():
    assert resolve_cache_key("/schedules", {"filter": "monday", "page": 1}) == "/schedules/monday"
    assert resolve_cache_key("/schedules", {"filter": "tuesday"}) == "/schedules/tuesday"


def test_schedules_without_filter_use_the_endpoint():
    assert resolve_cache_key("/schedules", {"page": 1}) == "/schedules"


def test_search_is_uncacheable():
    assert resolve_cache_key("/anime", {"q": "naruto"}) is None
    assert resolve_cache_key("/anime", {"q": "naruto", "order_by": "score"}) is None


@pytest.mark.parametrize("flag", [True, "true", "1"])
def test_bypass_cache_is_uncacheable(flag):
    assert resolve_cache_key("/anime", {"bypass_cache": flag, "order_by": "score"}) is None
    assert resolve_cache_key("/seasons/now", {"bypass_cache": flag}) is None
    assert resolve_cache_key("/top/anime", {"bypass_cache": flag, "type": "movie"}) is None
    assert resolve_cache_key("/schedules", {"bypass_cache": flag, "filter": "monday"}) is None


def test_false_bypass_flag_is_ignored():
    assert resolve_cache_key("/seasons/now", {"bypass_cache": "false"}) == "/seasons/now"


def test_random_endpoints_are_uncacheable():
    assert resolve_cache_key("/random/anime") is None


def test_anime_listing_key_uses_recognized_filters():
    key = resolve_cache_key("/anime", {"order_by": "score", "sort": "desc", "sfw": True, "page": 1})
    assert key == "/anime?order_by=score&sfw=true&sort=desc"


def test_anime_listing_without_filters_uses_the_endpoint():
    assert resolve_cache_key("/anime", {"page": 1, "limit": 25}) == "/anime"


def test_other_endpoints_use_the_path():
    assert resolve_cache_key("/seasons/now", {"page": 1, "limit": 10}) == "/seasons/now"
    assert resolve_cache_key("/anime/5114/characters") == "/anime/5114/characters"


def test_key_is_independent_of_param_order():
    params = {"order_by": "score", "sort": "desc", "sfw": "true", "type": "tv", "limit": 25}
    keys = {
        resolve_cache_key("/anime", dict(ordering))
        for ordering in itertools.permutations(params.items())
    }
    assert keys == {"/anime?order_by=score&sfw=true&sort=desc&type=tv"}


def test_bool_and_string_forms_resolve_alike():
    assert resolve_cache_key("/anime", {"sfw": True}) == resolve_cache_key("/anime", {"sfw": "true"})


def test_unrecognized_params_collapse_to_one_key():
    page_one = resolve_cache_key("/top/anime", {"page": 1, "filter": "airing"})
    page_two = resolve_cache_key("/top/anime", {"page": 2, "filter": "bypopularity"})
    assert page_one == page_two == "/top/anime"

    assert resolve_cache_key("/anime", {"order_by": "score", "genres": "1"}) == \
        resolve_cache_key("/anime", {"order_by": "score", "genres": "22"})


# =============================================================================
# Families and TTLs
# =============================================================================

@pytest.mark.parametrize("key,family", [
    ("/top/anime", EndpointFamily.TOP_ANIME),
    ("/top/anime/movie", EndpointFamily.TOP_MOVIES),
    ("/seasons/now", EndpointFamily.CURRENT_SEASON),
    ("/schedules/monday", EndpointFamily.SCHEDULES),
    ("/schedules", EndpointFamily.SCHEDULES),
    ("/anime", EndpointFamily.ANIME_LISTING),
    ("/anime?order_by=score", EndpointFamily.ANIME_LISTING),
    ("/anime/5114", EndpointFamily.ANIME_DETAILS),
    ("/anime/5114/full", EndpointFamily.ANIME_DETAILS),
    ("/anime/1/characters", EndpointFamily.GENERIC),
    ("/anime/random", EndpointFamily.GENERIC),
    ("/genres/anime", EndpointFamily.GENERIC),
])
def test_family_for_key(key, family):
    assert get_family_for_key(key) == family


def test_ttls_per_family():
    assert get_ttl_for_key("/top/anime") == 6 * 3600
    assert get_ttl_for_key("/top/anime/movie") == 12 * 3600
    assert get_ttl_for_key("/seasons/now") == 3 * 3600
    assert get_ttl_for_key("/schedules/monday") == 30 * 60
    assert get_ttl_for_key("/anime?sort=desc") == 6 * 3600
    assert get_ttl_for_key("/anime/5114") == 24 * 3600
    assert get_ttl_for_key("/genres/anime") == DEFAULT_TTL_SECONDS


def test_every_family_has_exactly_one_policy():
    assert set(TTL_CONFIG) == set(EndpointFamily)


def test_policy_table_is_read_only():
    with pytest.raises(TypeError):
        TTL_CONFIG[EndpointFamily.TOP_ANIME] = 1
