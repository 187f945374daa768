"""Minimum-interval gate for upstream API calls."""

import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger("rate_gate")

# Configuration
DEFAULT_INTERVAL_SECONDS = 1.0  # Jikan allows ~1 request/second


class RateGate:
    """
    Spaces upstream calls at least `interval` seconds apart.

    The interval is measured between call *starts*: admit() records the
    admission time, not the completion time. Callers are serialized by a
    lock held while sleeping, so they are admitted one at a time in the
    order they arrived.

    Thread-safe. Clock and sleep are injectable for tests.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: Optional[float] = None
        self._lock = threading.Lock()
        self._admitted = 0

    def admit(self) -> float:
        """
        Block until the next upstream call may start, then record it.

        Returns:
            Seconds spent waiting.
        """
        with self._lock:
            waited = 0.0
            if self._last_request_at is not None:
                wait_for = self._last_request_at + self.interval - self._clock()
                if wait_for > 0:
                    logger.debug(f"Rate gate holding request for {wait_for:.3f}s")
                    self._sleep(wait_for)
                    waited = wait_for

            self._last_request_at = self._clock()
            self._admitted += 1
            return waited

    @property
    def last_request_at(self) -> Optional[float]:
        """Clock reading of the most recent admission."""
        return self._last_request_at

    def reset(self) -> None:
        """Forget the last admission. Useful for tests."""
        with self._lock:
            self._last_request_at = None
            self._admitted = 0

    def get_stats(self) -> Dict[str, float]:
        with self._lock:
            return {
                "interval_seconds": self.interval,
                "admitted": self._admitted,
            }
