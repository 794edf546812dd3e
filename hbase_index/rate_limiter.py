from __future__ import annotations

import threading
import time


class RateLimiter:
    """Thread-safe pacing limiter based on queries per second (QPS).

    acquire() blocks the calling thread until its permits fit under the
    current rate. The rate can be changed while workers are using it; a
    QPS of 0 disables limiting."""

    def __init__(self, qps: float) -> None:
        self._lock = threading.Lock()
        self._interval = 1.0 / qps if qps > 0 else 0.0
        self._next_allowed = 0.0

    @property
    def qps(self) -> float:
        with self._lock:
            return 1.0 / self._interval if self._interval > 0 else 0.0

    def set_rate(self, qps: float) -> None:
        """Replace the permitted rate; already-reserved slots are kept."""
        with self._lock:
            self._interval = 1.0 / qps if qps > 0 else 0.0

    def acquire(self, permits: int = 1) -> float:
        """Block until permits requests are allowed. Returns the seconds slept."""
        if permits <= 0:
            return 0.0
        with self._lock:
            if self._interval <= 0:
                return 0.0
            now = time.time()
            wait = self._next_allowed - now if now < self._next_allowed else 0.0
            if wait > 0:
                time.sleep(wait)
            self._next_allowed = max(self._next_allowed, time.time()) + self._interval * permits
            return wait
