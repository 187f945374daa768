"""
Upstream access layer for the anime catalog.

Serializes calls to the rate-limited Jikan API, caches responses per
endpoint family and retries rate-limited calls.
"""
from .errors import (
    CatalogGatewayError,
    InvalidParamsError,
    MalformedResponseError,
    RateLimitedError,
    RateLimitExhaustedError,
    UpstreamError,
)
from .request_queue import Priority, QueuedJob, RequestQueue
from .rate_gate import RateGate
from .facade import FetchFacade, build_fetch_facade, fetch_from_api, get_fetch_facade

__all__ = [
    "CatalogGatewayError",
    "InvalidParamsError",
    "MalformedResponseError",
    "RateLimitedError",
    "RateLimitExhaustedError",
    "UpstreamError",
    "Priority",
    "QueuedJob",
    "RequestQueue",
    "RateGate",
    "FetchFacade",
    "build_fetch_facade",
    "fetch_from_api",
    "get_fetch_facade",
]
