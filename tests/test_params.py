"""
Tests for per-family parameter validation.
"""
import pytest

from catalog_gateway.errors import InvalidParamsError
from catalog_gateway.params import query_value, validate_params


def test_query_string_values_are_coerced():
    params = validate_params("/schedules", {"filter": "monday", "page": "1", "limit": "12", "sfw": "true"})
    assert params == {"filter": "monday", "page": 1, "limit": 12, "sfw": True}


def test_none_values_are_dropped():
    assert validate_params("/seasons/now", {"page": None, "limit": 10}) == {"limit": 10}


def test_unknown_param_rejected_for_closed_family():
    with pytest.raises(InvalidParamsError) as exc_info:
        validate_params("/top/anime", {"q": "naruto"})
    assert exc_info.value.endpoint == "/top/anime"


@pytest.mark.parametrize("params", [
    {"page": 0},
    {"limit": 100},
    {"sfw": "maybe"},
])
def test_out_of_range_values_rejected(params):
    with pytest.raises(InvalidParamsError):
        validate_params("/anime", params)


@pytest.mark.parametrize("endpoint", ["/top/anime", "/schedules", "/seasons/now", "/anime"])
def test_bypass_flag_accepted_for_every_family(endpoint):
    assert validate_params(endpoint, {"bypass_cache": "true"}) == {"bypass_cache": True}


def test_anime_listing_accepts_search_and_filters():
    params = validate_params("/anime", {"q": "bebop", "order_by": "score", "sort": "desc", "min_score": "7.5"})
    assert params == {"q": "bebop", "order_by": "score", "sort": "desc", "min_score": 7.5}


def test_other_endpoints_accept_any_primitive():
    assert validate_params("/anime/1/reviews", {"page": 2, "preliminary": True}) == {"page": 2, "preliminary": True}


def test_other_endpoints_reject_nested_values():
    with pytest.raises(InvalidParamsError):
        validate_params("/anime/1/reviews", {"filter": {"nested": 1}})


def test_empty_params():
    assert validate_params("/top/anime", None) == {}


def test_query_value():
    assert query_value(True) == "true"
    assert query_value(False) == "false"
    assert query_value(7) == "7"
    assert query_value("movie") == "movie"
