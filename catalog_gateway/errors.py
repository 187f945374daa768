"""
Error taxonomy for the upstream access layer.

Only UpstreamError (and its subclasses) and InvalidParamsError are meant to
reach callers. RateLimitedError is recovered inside the request queue and
only escapes wrapped in RateLimitExhaustedError once the retry cap is hit.
"""
from typing import Any, Dict, Optional


class CatalogGatewayError(Exception):
    """Base exception for the access layer."""


class InvalidParamsError(CatalogGatewayError):
    """Query parameters do not fit the endpoint family's parameter type."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(f"Invalid parameters for {endpoint}: {message}")
        self.endpoint = endpoint
        self.message = message


class UpstreamError(CatalogGatewayError):
    """
    Upstream call failed: non-2xx status, network failure or bad body.

    status_code is None when no HTTP response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "status": self.status_code,
            "endpoint": self.endpoint,
        }


class MalformedResponseError(UpstreamError):
    """Upstream answered 2xx but the body is not JSON."""


class RateLimitedError(UpstreamError):
    """Upstream answered 429."""

    def __init__(self, endpoint: Optional[str] = None, retry_after: Optional[float] = None):
        super().__init__("Upstream rate limit hit", status_code=429, endpoint=endpoint)
        self.retry_after = retry_after


class RateLimitExhaustedError(UpstreamError):
    """Still rate limited after the configured number of attempts."""

    def __init__(self, attempts: int, endpoint: Optional[str] = None):
        super().__init__(
            f"Upstream still rate limited after {attempts} attempts",
            status_code=429,
            endpoint=endpoint,
        )
        self.attempts = attempts
