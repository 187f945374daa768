"""
Shared fixtures: a controllable clock and a scripted upstream.

Nothing here touches the network or really sleeps; every delay advances
the fake clock instead.
"""
import threading
from collections import defaultdict, deque

import pytest

from catalog_gateway.cache import ClientCache, ServerCache
from catalog_gateway.facade import FetchFacade, reset_fetch_facade
from catalog_gateway.rate_gate import RateGate
from catalog_gateway.request_queue import RequestQueue


class FakeClock:
    """Clock whose sleep() just moves time forward."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []
        self._lock = threading.Lock()

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self.now += seconds

    def advance(self, seconds: float) -> None:
        with self._lock:
            self.now += seconds


class FakeUpstream:
    """
    Records every call and replays scripted outcomes per endpoint.

    An outcome is a payload or an exception instance to raise. Endpoints
    with nothing scripted answer {"data": {"endpoint": ..., "call": n}}.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls = []
        self.max_concurrent = 0
        self._active = 0
        self._script = defaultdict(deque)
        self._lock = threading.Lock()

    def script(self, endpoint: str, *outcomes) -> None:
        self._script[endpoint].extend(outcomes)

    def __call__(self, endpoint, params):
        with self._lock:
            self._active += 1
            self.max_concurrent = max(self.max_concurrent, self._active)
            self.calls.append((self.clock(), endpoint, dict(params)))
            call_number = len(self.calls)
            outcome = (
                self._script[endpoint].popleft()
                if self._script[endpoint]
                else {"data": {"endpoint": endpoint, "call": call_number}}
            )
        try:
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            with self._lock:
                self._active -= 1

    @property
    def call_times(self):
        return [t for t, _, _ in self.calls]

    def calls_to(self, endpoint: str) -> int:
        return sum(1 for _, ep, _ in self.calls if ep == endpoint)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream(clock):
    return FakeUpstream(clock)


@pytest.fixture
def gate(clock):
    return RateGate(interval=1.0, clock=clock, sleep=clock.sleep)


@pytest.fixture
def queue(gate, clock):
    return RequestQueue(
        gate,
        default_cooldown=3.0,
        max_cooldown=60.0,
        max_attempts=6,
        sleep=clock.sleep,
        clock=clock,
    )


@pytest.fixture
def facade(upstream, queue, clock):
    return FetchFacade(
        fetcher=upstream,
        queue=queue,
        server_cache=ServerCache(max_entries=100, clock=clock),
        client_cache=ClientCache(ttl_seconds=2.0, clock=clock),
        server_cooldown=2.0,
        client_cooldown=3.0,
    )


@pytest.fixture(autouse=True)
def _reset_global_facade():
    yield
    reset_fetch_facade()
