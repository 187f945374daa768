"""
Short-TTL client cache that coalesces identical requests.

When several callers ask for the same thing within a couple of seconds,
only the first starts work; the others receive the same Future, whether it
is still in flight or already settled.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Tuple

from .store import TTLCache

logger = logging.getLogger("cache.coalescer")

DEFAULT_CLIENT_TTL_SECONDS = 2.0


def make_client_key(operation: str, *args: Any, params: Optional[Mapping[str, Any]] = None) -> Tuple:
    """
    Composite key of operation name and arguments.

    Keyword parameters are sorted so their order does not matter.
    """
    return (operation,) + tuple(args) + tuple(sorted((params or {}).items()))


def _failed(future: Future) -> bool:
    return future.done() and (future.cancelled() or future.exception() is not None)


class ClientCache(TTLCache[Tuple, Future]):
    """
    Shares one Future among identical calls made within ttl_seconds.

    Pattern:
    - First call for a key runs fetch_fn, which must return a Future
    - Later calls for the same key within the TTL get that same Future
    - A Future that fails is dropped so the next call starts over

    Usage:
        cache = ClientCache()
        key = make_client_key("rating", user_id, anime_id)
        future = cache.get_or_fetch(key, lambda: queue.enqueue(fetch))
        rating = future.result()
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CLIENT_TTL_SECONDS,
        max_entries: int = 100,
        max_workers: int = 4,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(
            ttl_for=lambda key: ttl_seconds,
            max_entries=max_entries,
            clock=clock,
            name="client-cache",
        )
        self.ttl_seconds = ttl_seconds
        self._fetch_lock = threading.Lock()
        self._coalesced = 0
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    def get_or_fetch(self, key: Hashable, fetch_fn: Callable[[], Future]) -> Future:
        """
        Either join a recent request for key or start a new one.

        Args:
            key: Composite key (see make_client_key)
            fetch_fn: Starts the work and returns its Future

        Returns:
            The Future shared by every caller of this key within the TTL
        """
        with self._fetch_lock:
            entry = self.get(key)
            if entry is not None and not _failed(entry.payload):
                self._coalesced += 1
                logger.debug(f"Coalescing request for {key!r}")
                return entry.payload

            logger.debug(f"Initiating fetch for {key!r}")
            future = fetch_fn()
            self.set(key, future)

        future.add_done_callback(lambda done: self._forget_failure(key, done))
        return future

    def submit(self, operation: str, fn: Callable[..., Any], *args: Any) -> Future:
        """
        Run fn(*args) in the background, coalesced on (operation, *args).

        For lookups that do not go through the upstream queue, e.g. a
        user's rating for an anime asked for by several widgets at once.
        """
        key = make_client_key(operation, *args)
        return self.get_or_fetch(key, lambda: self._get_executor().submit(fn, *args))

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="client-cache",
            )
        return self._executor

    def _forget_failure(self, key: Hashable, future: Future) -> None:
        if _failed(future):
            with self._lock:
                entries = self._segments.get(None)
                entry = entries.get(key) if entries is not None else None
                if entry is not None and entry.payload is future:
                    del entries[key]
                    logger.debug(f"Dropped failed request for {key!r}")

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats["coalesced"] = self._coalesced
        stats["ttl_seconds"] = self.ttl_seconds
        return stats
