"""
HTTP client for the Jikan v4 REST API.

One call per get(); no caching, queueing or retry here. Those live in the
request queue and the facade.
"""
import logging
from typing import Any, Dict, Mapping, Optional

import requests

from .errors import MalformedResponseError, RateLimitedError, UpstreamError
from .params import query_value

logger = logging.getLogger("upstream")


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class UpstreamClient:
    """Thin wrapper around a requests.Session bound to the API base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {"Accept": "application/json"}
        if user_agent:
            self._headers["User-Agent"] = user_agent

    def build_url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        GET an endpoint and decode its JSON body.

        Args:
            endpoint: API endpoint path (e.g., "/schedules")
            params: Query parameters; booleans are sent as true/false

        Returns:
            Decoded JSON body ({"data": ..., "pagination": {...}})

        Raises:
            RateLimitedError: HTTP 429
            UpstreamError: Network failure or any other non-2xx status
            MalformedResponseError: 2xx with a non-JSON body
        """
        query = {key: query_value(value) for key, value in (params or {}).items()}
        url = self.build_url(endpoint)
        logger.info(f"Fetching {url} {query}")

        try:
            response = self._session.get(
                url,
                params=query,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error fetching {endpoint}: {e}")
            raise UpstreamError(f"Network error: {e}", endpoint=endpoint) from e

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"Rate limited on {endpoint} (retry-after={retry_after})")
            raise RateLimitedError(endpoint=endpoint, retry_after=retry_after)

        if not response.ok:
            logger.warning(f"API error ({response.status_code}) on {endpoint}: {response.text[:200]}")
            raise UpstreamError(
                f"API request failed with status {response.status_code}",
                status_code=response.status_code,
                endpoint=endpoint,
            )

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            raise MalformedResponseError(
                f"Invalid response format: expected JSON, got {content_type or 'no content type'}",
                status_code=response.status_code,
                endpoint=endpoint,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid JSON body: {e}",
                status_code=response.status_code,
                endpoint=endpoint,
            ) from e

    def close(self) -> None:
        self._session.close()
