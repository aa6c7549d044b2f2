"""Rate limited, deduplicating work queue.

Keys are delivered to at most one worker at a time. A key added while it is
being processed is remembered and handed out again once the worker calls
``done``. Delayed and rate limited re-adds go through a background waiter
thread so they never block the caller.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections import deque
from typing import Hashable, Protocol

from . import metrics


class RateLimiter(Protocol):
    """Decides how long a key must wait before it is re-queued."""

    def when(self, item: Hashable) -> float:
        """Return the delay for the next re-queue of ``item``."""
        ...

    def forget(self, item: Hashable) -> None:
        """Stop tracking ``item``."""
        ...

    def num_requeues(self, item: Hashable) -> int:
        """Return how many times ``item`` has been re-queued."""
        ...


class ItemExponentialFailureRateLimiter:
    """Per-key exponential backoff: ``base_delay * 2 ** failures``, capped."""

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._failures: dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            exp = self._failures.get(item, 0)
            self._failures[item] = exp + 1
        if exp >= 64:
            return self.max_delay
        return min(self.base_delay * (2 ** exp), self.max_delay)

    def forget(self, item: Hashable) -> None:
        with self._lock:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        with self._lock:
            return self._failures.get(item, 0)


class BucketRateLimiter:
    """Overall token bucket shared by every key."""

    def __init__(self, qps: float = 10.0, burst: int = 100) -> None:
        self.qps = qps
        self.burst = burst
        self._tokens = float(burst)
        self._last = time.monotonic()
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            now = time.monotonic()
            self._tokens = min(float(self.burst), self._tokens + (now - self._last) * self.qps)
            self._last = now
            self._tokens -= 1.0
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.qps

    def forget(self, item: Hashable) -> None:
        pass

    def num_requeues(self, item: Hashable) -> int:
        return 0


class MaxOfRateLimiter:
    """Combines limiters, using the longest delay any of them asks for."""

    def __init__(self, *limiters: RateLimiter) -> None:
        self.limiters = limiters

    def when(self, item: Hashable) -> float:
        return max(limiter.when(item) for limiter in self.limiters)

    def forget(self, item: Hashable) -> None:
        for limiter in self.limiters:
            limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return max(limiter.num_requeues(item) for limiter in self.limiters)


def default_controller_rate_limiter() -> MaxOfRateLimiter:
    """Per-key exponential backoff (5ms to 1000s) bounded by a 10 qps / 100 burst bucket."""
    return MaxOfRateLimiter(
        ItemExponentialFailureRateLimiter(0.005, 1000.0),
        BucketRateLimiter(qps=10.0, burst=100),
    )


class RateLimitingQueue:
    """Work queue with deduplication, in-flight tracking and delayed re-adds."""

    def __init__(self, rate_limiter: RateLimiter | None = None, name: str = "rotation") -> None:
        self.name = name
        self.rate_limiter = rate_limiter or default_controller_rate_limiter()

        self._cond = threading.Condition()
        self._queue: deque[Hashable] = deque()
        self._dirty: set[Hashable] = set()
        self._processing: set[Hashable] = set()
        self._shutting_down = False

        self._waiting_cond = threading.Condition()
        self._waiting: list[tuple[float, int, Hashable]] = []
        self._waiting_ready_at: dict[Hashable, float] = {}
        self._sequence = itertools.count()
        self._waiter = threading.Thread(
            target=self._wait_loop, name=f"{name}-queue-waiter", daemon=True
        )
        self._waiter.start()

    def add(self, item: Hashable) -> None:
        """Queue ``item`` unless it is already waiting to be processed."""
        with self._cond:
            if self._shutting_down or item in self._dirty:
                return
            self._dirty.add(item)
            if item in self._processing:
                return
            self._queue.append(item)
            metrics.queue_depth.set(len(self._queue))
            self._cond.notify()

    def get(self) -> tuple[Hashable | None, bool]:
        """Block until an item is available.

        Returns:
            ``(item, shutdown)``; ``shutdown`` is True once the queue has been
            shut down, in which case ``item`` is None and queued keys are
            left unprocessed
        """
        with self._cond:
            while not self._queue and not self._shutting_down:
                self._cond.wait()
            if self._shutting_down:
                return None, True
            item = self._queue.popleft()
            self._processing.add(item)
            self._dirty.discard(item)
            metrics.queue_depth.set(len(self._queue))
            return item, False

    def done(self, item: Hashable) -> None:
        """Mark ``item`` as no longer in flight, re-queueing it if it was re-added."""
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                metrics.queue_depth.set(len(self._queue))
                self._cond.notify()

    def forget(self, item: Hashable) -> None:
        """Clear the retry counter of ``item``."""
        self.rate_limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        """Return the retry counter of ``item``."""
        return self.rate_limiter.num_requeues(item)

    def add_rate_limited(self, item: Hashable) -> None:
        """Re-add ``item`` after the delay chosen by the rate limiter."""
        self.add_after(item, self.rate_limiter.when(item))

    def add_after(self, item: Hashable, delay: float) -> None:
        """Add ``item`` once ``delay`` seconds have passed."""
        if self.shutting_down():
            return
        if delay <= 0:
            self.add(item)
            return
        ready_at = time.monotonic() + delay
        with self._waiting_cond:
            current = self._waiting_ready_at.get(item)
            if current is not None and current <= ready_at:
                return
            self._waiting_ready_at[item] = ready_at
            heapq.heappush(self._waiting, (ready_at, next(self._sequence), item))
            self._waiting_cond.notify()

    def shut_down(self) -> None:
        """Stop accepting items and wake every blocked ``get``."""
        with self._cond:
            self._shutting_down = True
            self._cond.notify_all()
        with self._waiting_cond:
            self._waiting_cond.notify_all()

    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    def _wait_loop(self) -> None:
        while True:
            ready: list[Hashable] = []
            with self._waiting_cond:
                if self.shutting_down():
                    return
                now = time.monotonic()
                while self._waiting and self._waiting[0][0] <= now:
                    ready_at, _, item = heapq.heappop(self._waiting)
                    if self._waiting_ready_at.get(item) == ready_at:
                        del self._waiting_ready_at[item]
                        ready.append(item)
                if not ready:
                    timeout = self._waiting[0][0] - now if self._waiting else None
                    self._waiting_cond.wait(timeout)
                    continue
            for item in ready:
                self.add(item)
