from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Deque, List

from .models import BatchResult, ThroughputSnapshot


class MetricsCollector:
    """Thread-safe collector for completed store batches.

    Records BatchResult events and produces ThroughputSnapshot aggregates
    over a sliding time window."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._events: Deque[tuple[float, BatchResult]] = deque(maxlen=10000)

    def record_batch(self, result: BatchResult) -> None:
        """Record a batch result with the current timestamp."""
        with self._lock:
            self._events.append((time.time(), result))

    def snapshot(self, window_secs: int) -> ThroughputSnapshot:
        """Return aggregated metrics for batches within the last window_secs seconds."""
        now = time.time()
        cutoff = now - window_secs
        with self._lock:
            events: List[BatchResult] = [e for ts, e in self._events if ts >= cutoff]
        total = len(events)
        return ThroughputSnapshot(
            window_secs=window_secs,
            total_batches=total,
            get_batches=sum(1 for e in events if e.op == "get"),
            put_batches=sum(1 for e in events if e.op == "put"),
            total_records=sum(e.batch_size for e in events),
            avg_granted_fraction=(sum(e.granted_fraction for e in events) / total) if total else 0.0,
            avg_latency_ms=(sum(e.latency_ms for e in events) / total) if total else 0.0,
            timestamp=now,
        )
