"""
Query parameter types per endpoint family.

Each cacheable family accepts a closed set of typed parameters; anything
else is rejected with InvalidParamsError. Endpoints outside those families
(details, characters, reviews, ...) accept any primitive values.
"""
from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidParamsError

Primitive = Union[str, int, float, bool]


class EndpointParams(BaseModel):
    """Base for closed parameter sets."""

    model_config = ConfigDict(extra="forbid")

    page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=25)
    sfw: Optional[bool] = None
    bypass_cache: Optional[bool] = None

    def to_query(self) -> Dict[str, Primitive]:
        """Only the parameters that were actually set."""
        return self.model_dump(exclude_none=True)


class TopAnimeParams(EndpointParams):
    """/top/anime"""
    type: Optional[str] = None
    filter: Optional[str] = None
    rating: Optional[str] = None


class ScheduleParams(EndpointParams):
    """/schedules"""
    filter: Optional[str] = None
    kids: Optional[bool] = None
    unapproved: Optional[bool] = None


class SeasonParams(EndpointParams):
    """/seasons/now"""
    filter: Optional[str] = None
    continuing: Optional[bool] = None
    unapproved: Optional[bool] = None


class AnimeListingParams(EndpointParams):
    """/anime (search and filtered listing)"""
    q: Optional[str] = None
    type: Optional[str] = None
    score: Optional[float] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    status: Optional[str] = None
    rating: Optional[str] = None
    genres: Optional[str] = None
    genres_exclude: Optional[str] = None
    producers: Optional[str] = None
    order_by: Optional[str] = None
    sort: Optional[str] = None
    letter: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    unapproved: Optional[bool] = None


PARAMS_BY_ENDPOINT: Dict[str, Type[EndpointParams]] = {
    "/top/anime": TopAnimeParams,
    "/schedules": ScheduleParams,
    "/seasons/now": SeasonParams,
    "/anime": AnimeListingParams,
}


def validate_params(endpoint: str, params: Optional[Mapping[str, Any]]) -> Dict[str, Primitive]:
    """
    Validate and normalize query parameters for an endpoint.

    Args:
        endpoint: API endpoint path (e.g., "/top/anime")
        params: Raw parameters; strings from a query string are coerced

    Returns:
        Parameters with None values dropped and types normalized

    Raises:
        InvalidParamsError: Unknown or ill-typed parameter for a closed family
    """
    params = dict(params or {})
    model = PARAMS_BY_ENDPOINT.get(endpoint)

    if model is None:
        cleaned = {}
        for key, value in params.items():
            if value is None:
                continue
            if not isinstance(value, (str, int, float, bool)):
                raise InvalidParamsError(endpoint, f"{key} must be a primitive value")
            cleaned[key] = value
        return cleaned

    try:
        return model.model_validate(params).to_query()
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidParamsError(endpoint, details) from e


def query_value(value: Primitive) -> str:
    """Render a parameter the way the upstream API expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
