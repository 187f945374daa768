"""
Single entry point for upstream data.

Every component that needs API data calls fetch_from_api() (or a
FetchFacade directly). The facade resolves the cache key, answers from the
right cache tier when it can, and otherwise schedules the upstream call on
the shared RequestQueue.
"""
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Mapping, Optional

from config.settings import Settings, settings as default_settings

from .cache import (
    ClientCache,
    EndpointFamily,
    SERVER_CACHED_FAMILIES,
    ServerCache,
    get_family_for_key,
    make_client_key,
    resolve_cache_key,
)
from .cache.keys import BYPASS_PARAMS
from .params import Primitive, validate_params
from .rate_gate import RateGate
from .request_queue import Priority, RequestQueue
from .upstream import UpstreamClient

logger = logging.getLogger("facade")

Fetcher = Callable[[str, Mapping[str, Primitive]], Any]


def _completed(payload: Any) -> Future:
    future: Future = Future()
    future.set_result(payload)
    return future


def uses_server_cache(family: EndpointFamily, params: Mapping[str, Any]) -> bool:
    """
    Whether a request goes through the shared server cache.

    Only first pages of the server-cached families do; deeper pages and
    everything else use the short-lived client cache.
    """
    if family not in SERVER_CACHED_FAMILIES:
        return False
    page = params.get("page")
    return page is None or int(page) <= 1


class FetchFacade:
    """
    Composes key resolution, the two cache tiers and the request queue.

    Server tier: resolved key -> fresh entry returned as is; on a miss one
    upstream call is made (concurrent misses for the same key share it) and
    the payload is stored in the key's family segment before the caller sees
    it. Client tier: identical calls within the client TTL share one Future.
    Uncacheable requests (search, random, bypass) always go upstream.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        queue: RequestQueue,
        server_cache: ServerCache,
        client_cache: ClientCache,
        server_cooldown: float = 2.0,
        client_cooldown: float = 3.0,
        cache_enabled: bool = True,
    ):
        self._fetcher = fetcher
        self.queue = queue
        self.server_cache = server_cache
        self.client_cache = client_cache
        self.server_cooldown = server_cooldown
        self.client_cooldown = client_cooldown
        self.cache_enabled = cache_enabled

        self._in_flight: Dict[str, Future] = {}
        self._in_flight_lock = threading.Lock()

    def fetch(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> Any:
        """Fetch and wait for the payload. Raises whatever the call raised."""
        return self.fetch_async(endpoint, params, priority).result()

    def fetch_async(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> Future:
        """
        Fetch without blocking.

        Args:
            endpoint: API endpoint path (e.g., "/top/anime")
            params: Query parameters, validated against the endpoint's type
            priority: Queue priority if an upstream call is needed

        Returns:
            Future for the decoded JSON payload

        Raises:
            InvalidParamsError: Parameters rejected before anything is queued
        """
        return self._dispatch(endpoint, params, priority, force_server=False)

    def fetch_server(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> Any:
        """Fetch through the server tier regardless of page. Used by the HTTP endpoint."""
        return self._dispatch(endpoint, params, priority, force_server=True).result()

    def _dispatch(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]],
        priority: Priority,
        force_server: bool,
    ) -> Future:
        query = validate_params(endpoint, params)
        cooldown = self.server_cooldown if force_server else self.client_cooldown

        key = resolve_cache_key(endpoint, query) if self.cache_enabled else None
        # Bypass flags steer caching only and are not sent upstream
        query = {name: value for name, value in query.items() if name not in BYPASS_PARAMS}
        if key is None:
            logger.info(f"Uncached request for {endpoint}, fetching fresh data")
            return self._enqueue(endpoint, query, priority, cooldown)

        family = get_family_for_key(key)
        if force_server or uses_server_cache(family, query):
            return self._fetch_via_server(key, endpoint, query, priority)

        client_key = make_client_key("fetch", endpoint, params=query)
        return self.client_cache.get_or_fetch(
            client_key,
            lambda: self._enqueue(endpoint, query, priority, self.client_cooldown),
        )

    def _fetch_via_server(
        self,
        key: str,
        endpoint: str,
        query: Dict[str, Primitive],
        priority: Priority,
    ) -> Future:
        entry = self.server_cache.get(key)
        if entry is not None:
            return _completed(entry.payload)

        with self._in_flight_lock:
            future = self._in_flight.get(key)
            if future is not None and not future.done():
                logger.debug(f"Joining in-flight fetch for {key}")
                return future

            # A fetch may have stored the key since the lookup above
            entry = self.server_cache.get(key)
            if entry is not None:
                return _completed(entry.payload)

            def fetch_and_store() -> Any:
                payload = self._fetcher(endpoint, query)
                self.server_cache.set(key, payload)
                return payload

            future = self.queue.enqueue(
                fetch_and_store,
                priority=priority,
                cooldown=self.server_cooldown,
                label=key,
            )
            self._in_flight[key] = future

        future.add_done_callback(lambda done: self._clear_in_flight(key, done))
        return future

    def _clear_in_flight(self, key: str, future: Future) -> None:
        with self._in_flight_lock:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]

    def _enqueue(
        self,
        endpoint: str,
        query: Dict[str, Primitive],
        priority: Priority,
        cooldown: float,
    ) -> Future:
        return self.queue.enqueue(
            lambda: self._fetcher(endpoint, query),
            priority=priority,
            cooldown=cooldown,
            label=endpoint,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Statistics for both cache tiers and the queue."""
        with self._in_flight_lock:
            in_flight = len(self._in_flight)
        return {
            "server_cache": self.server_cache.get_stats(),
            "client_cache": self.client_cache.get_stats(),
            "queue": self.queue.get_stats(),
            "in_flight": in_flight,
        }

    def clear(self) -> None:
        """Drop every cached entry in both tiers."""
        self.server_cache.clear()
        self.client_cache.clear()


def build_fetch_facade(
    config: Settings = default_settings,
    fetcher: Optional[Fetcher] = None,
) -> FetchFacade:
    """Wire a facade, its queue, gate and caches from settings."""
    if fetcher is None:
        client = UpstreamClient(
            base_url=config.jikan_base_url,
            timeout=config.http_timeout_seconds,
            user_agent=config.user_agent,
        )
        fetcher = client.get

    gate = RateGate(interval=config.request_interval_seconds)
    queue = RequestQueue(
        gate,
        default_cooldown=config.client_retry_cooldown_seconds,
        max_cooldown=config.max_retry_cooldown_seconds,
        max_attempts=config.max_rate_limit_attempts,
    )
    return FetchFacade(
        fetcher=fetcher,
        queue=queue,
        server_cache=ServerCache(max_entries=config.cache_max_entries),
        client_cache=ClientCache(
            ttl_seconds=config.client_cache_ttl_seconds,
            max_entries=config.cache_max_entries,
        ),
        server_cooldown=config.server_retry_cooldown_seconds,
        client_cooldown=config.client_retry_cooldown_seconds,
        cache_enabled=config.cache_enabled,
    )


# Global facade instance
_fetch_facade: Optional[FetchFacade] = None
_facade_lock = threading.Lock()


def get_fetch_facade() -> FetchFacade:
    """Get or create the process-wide facade."""
    global _fetch_facade
    with _facade_lock:
        if _fetch_facade is None:
            _fetch_facade = build_fetch_facade()
        return _fetch_facade


def set_fetch_facade(facade: Optional[FetchFacade]) -> None:
    """Install a specific facade (or None to rebuild lazily). Used by tests."""
    global _fetch_facade
    with _facade_lock:
        _fetch_facade = facade


def reset_fetch_facade() -> None:
    set_fetch_facade(None)


def fetch_from_api(
    endpoint: str,
    params: Optional[Mapping[str, Any]] = None,
    priority: Priority = Priority.MEDIUM,
) -> Any:
    """Fetch an API payload through the shared facade."""
    return get_fetch_facade().fetch(endpoint, params, priority)
