"""
Serialized, priority-ordered queue for upstream API calls.

Every upstream call in the process goes through one RequestQueue. A single
drain worker pops one job at a time, passes it through the RateGate and
runs it, so no two upstream calls are ever in flight together.
"""
import heapq
import itertools
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential,
    wait_fixed,
)

from .errors import RateLimitedError, RateLimitExhaustedError
from .rate_gate import RateGate

logger = logging.getLogger("request_queue")


class Priority(IntEnum):
    """Drain priority. Lower value drains first."""
    HIGH = 0
    MEDIUM = 1
    LOW = 2


@dataclass(order=True)
class QueuedJob:
    """
    A pending upstream call.

    Ordered by (priority, sequence) so the heap drains higher priority first
    and FIFO within a priority.
    """
    priority: Priority
    sequence: int
    execute: Callable[[], Any] = field(compare=False)
    cooldown: float = field(compare=False)
    enqueued_at: float = field(compare=False)
    label: str = field(default="", compare=False)
    future: Future = field(default_factory=Future, compare=False)


class RequestQueue:
    """
    Priority queue draining through a RateGate with 429 retry.

    Pattern:
    - enqueue() pushes a job and returns a Future for its result
    - A drain worker thread is started on demand and exits once idle
    - Each attempt calls gate.admit() before running the job
    - RateLimitedError is retried after the job's cooldown, growing
      exponentially, until max_attempts; anything else settles at once

    Usage:
        queue = RequestQueue(RateGate())
        future = queue.enqueue(lambda: upstream.get("/top/anime", {}))
        data = future.result()
    """

    def __init__(
        self,
        gate: RateGate,
        default_cooldown: float = 2.0,
        max_cooldown: float = 60.0,
        max_attempts: int = 6,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the queue.

        Args:
            gate: RateGate shared by every upstream call in the process
            default_cooldown: Seconds to wait after a 429 when the job has none
            max_cooldown: Upper bound on the grown cooldown
            max_attempts: Attempts per job before giving up on 429 (0 = never)
            sleep: Sleep function used for 429 cooldowns
            clock: Clock used to stamp enqueued_at
        """
        self._gate = gate
        self.default_cooldown = default_cooldown
        self.max_cooldown = max_cooldown
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

        self._pending: List[QueuedJob] = []
        self._sequence = itertools.count()
        self._lock = threading.Lock()
        self._draining = False
        self._worker: Optional[threading.Thread] = None

        self._stats = {
            "enqueued": 0,
            "completed": 0,
            "failed": 0,
            "rate_limited": 0,
        }

    def enqueue(
        self,
        execute: Callable[[], Any],
        priority: Priority = Priority.MEDIUM,
        cooldown: Optional[float] = None,
        label: str = "",
    ) -> Future:
        """
        Schedule an upstream call.

        Args:
            execute: Zero-arg callable performing exactly one upstream call
            priority: Drain priority; fixed for the life of the job
            cooldown: Base 429 cooldown for this job (defaults to default_cooldown)
            label: Name used in log lines

        Returns:
            Future settled with the call's result or its terminal error
        """
        job = QueuedJob(
            priority=Priority(priority),
            sequence=next(self._sequence),
            execute=execute,
            cooldown=self.default_cooldown if cooldown is None else cooldown,
            enqueued_at=self._clock(),
            label=label,
        )

        with self._lock:
            heapq.heappush(self._pending, job)
            self._stats["enqueued"] += 1
            logger.debug(
                f"Enqueued {label or 'job'} (priority={job.priority.name}, "
                f"pending={len(self._pending)})"
            )
            if not self._draining:
                self._draining = True
                self._worker = threading.Thread(
                    target=self._drain,
                    name="request-queue-drain",
                    daemon=True,
                )
                self._worker.start()

        return job.future

    def _drain(self) -> None:
        """Run pending jobs one at a time until the heap is empty."""
        while True:
            with self._lock:
                if not self._pending:
                    self._draining = False
                    return
                job = heapq.heappop(self._pending)
            self._run(job)

    def _run(self, job: QueuedJob) -> None:
        if not job.future.set_running_or_notify_cancel():
            return

        try:
            result = self._execute_with_retry(job)
        except Exception as e:
            self._stats["failed"] += 1
            logger.warning(f"Request failed for {job.label or 'job'}: {e}")
            job.future.set_exception(e)
        else:
            self._stats["completed"] += 1
            job.future.set_result(result)

    def _execute_with_retry(self, job: QueuedJob) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts) if self.max_attempts > 0 else stop_never,
            wait=self._wait_strategy(job),
            retry=retry_if_exception_type(RateLimitedError),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retrying(self._attempt, job)
        except RateLimitedError as e:
            raise RateLimitExhaustedError(self.max_attempts, endpoint=e.endpoint) from e

    def _wait_strategy(self, job: QueuedJob):
        if self.max_attempts > 0:
            backoff = wait_exponential(multiplier=job.cooldown, max=self.max_cooldown)
        else:
            # Unbounded retry keeps a fixed cadence
            backoff = wait_fixed(job.cooldown)

        def wait(retry_state: RetryCallState) -> float:
            delay = backoff(retry_state)
            retry_after = getattr(retry_state.outcome.exception(), "retry_after", None)
            if retry_after is not None and retry_after > delay:
                return retry_after
            return delay

        return wait

    def _attempt(self, job: QueuedJob) -> Any:
        self._gate.admit()
        try:
            return job.execute()
        except RateLimitedError:
            self._stats["rate_limited"] += 1
            raise

    @property
    def pending_count(self) -> int:
        """Number of jobs waiting to be drained."""
        with self._lock:
            return len(self._pending)

    def get_stats(self) -> Dict[str, Any]:
        """Get queue statistics."""
        with self._lock:
            return {
                "pending": len(self._pending),
                "draining": self._draining,
                **self._stats,
            }
