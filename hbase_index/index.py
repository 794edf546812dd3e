from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import Future, wait
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ._log import log_event
from .allocator import QPSResourceAllocator
from .config import HBaseIndexConfig
from .controller import ThreadPoolController
from .errors import IndexClosedError, StrategyRuntimeError
from .metrics import MetricsCollector
from .models import AllocatorState, BatchResult, IndexRecord
from .rate_limiter import RateLimiter
from .registry import create_qps_resource_allocator
from .store import KeyValueStore, StaticClusterProbe
from .throttle import Throttle, compute_throttle

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HBaseIndex:
    """Record index backed by an external key-value cluster, throttled per batch.

    The QPS resource allocator is resolved once, here, from the configuration.
    Every batch of gets or puts asks it for a fraction of cluster capacity,
    turns the grant into a request rate on a shared RateLimiter, runs the store
    call and releases the grant. Batches run concurrently on a
    ThreadPoolController and share the allocator without extra locking.

    Allocator lifecycle: UNINITIALIZED -> RESOLVED (constructor) -> ACTIVE
    (first batch) -> CLOSED (close(), entered once).
    """

    def __init__(
        self,
        config: HBaseIndexConfig,
        store: KeyValueStore,
        probe: Optional[StaticClusterProbe] = None,
        metrics: Optional[MetricsCollector] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self._config = config
        self._store = store
        self._probe = probe or StaticClusterProbe(config.region_servers)
        self._metrics = metrics or MetricsCollector()
        self._rate_limiter = rate_limiter or RateLimiter(qps=0)

        self._state_lock = threading.Lock()
        self._state = AllocatorState.UNINITIALIZED
        self._allocator = self.create_qps_resource_allocator(config)
        self._state = AllocatorState.RESOLVED

        self._controller = ThreadPoolController(max_workers=config.parallelism, initial_limit=config.parallelism)
        self._controller.start()

        log_event(
            logger,
            logging.INFO,
            "allocator_ready",
            table=config.table_name,
            allocator=type(self._allocator).__name__,
            qps_fraction=config.qps_fraction,
            get_batch_size=config.get_batch_size,
        )

    @staticmethod
    def create_qps_resource_allocator(config: HBaseIndexConfig) -> QPSResourceAllocator:
        return create_qps_resource_allocator(config)

    @property
    def allocator(self) -> QPSResourceAllocator:
        return self._allocator

    @property
    def state(self) -> AllocatorState:
        return self._state

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def tag_location(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        """Look up the stored location of every key in batches of get_batch_size."""
        self._activate()
        batches = _chunks(list(keys), self._config.get_batch_size)
        futures = [self._controller.submit(self._get_batch, batch) for batch in batches]
        locations: Dict[str, Optional[str]] = {}
        for found, _ in _results(futures):
            locations.update(found)
        return locations

    def update_location(self, records: Iterable[IndexRecord]) -> List[BatchResult]:
        """Write records as multi-puts; a record without a location deletes its key.

        The multi-put size comes from the fraction the allocator wants for the
        whole put phase; each batch then acquires its own grant for pacing.
        """
        self._activate()
        records = list(records)
        if not records:
            return []
        snapshot = self._probe.snapshot()
        operation = "calculate_qps_fraction_for_puts_time"
        desired = self._fraction(operation, self._call_strategy(operation, len(records), snapshot.region_servers))
        plan = compute_throttle(min(max(desired, 0.0), 1.0), snapshot, self._config, num_tasks=self._config.parallelism)
        batches = _chunks(records, plan.put_batch_size)
        futures = [self._controller.submit(self._put_batch, batch, desired) for batch in batches]
        return [result for _, result in _results(futures)]

    def close(self) -> None:
        """Wait for in-flight batches, issue the final release and mark the index CLOSED.

        Calling close() again does nothing.
        """
        with self._state_lock:
            if self._state is AllocatorState.CLOSED:
                return
            self._state = AllocatorState.CLOSED
        self._controller.stop(wait=True)
        self._call_strategy("release_qps_resources")
        snap = self._metrics.snapshot(window_secs=24 * 3600)
        log_event(
            logger,
            logging.INFO,
            "index_closed",
            table=self._config.table_name,
            batches=snap.total_batches,
            records=snap.total_records,
            avg_granted_fraction=snap.avg_granted_fraction,
        )

    def __enter__(self) -> "HBaseIndex":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _activate(self) -> None:
        with self._state_lock:
            if self._state is AllocatorState.CLOSED:
                raise IndexClosedError(f"index on {self._config.table_name} is closed")
            self._state = AllocatorState.ACTIVE

    def _get_batch(self, keys: Sequence[str]) -> Tuple[Dict[str, Optional[str]], BatchResult]:
        granted = self._acquire(self._config.qps_fraction, len(keys))
        try:
            throttle = self._throttle(granted, len(keys))
            start_ms = _now_ms()
            found = self._store.get_batch(keys)
            result = BatchResult(
                op="get",
                batch_size=len(keys),
                granted_fraction=granted,
                effective_qps=throttle.effective_qps,
                latency_ms=_now_ms() - start_ms,
                found=sum(1 for v in found.values() if v is not None),
            )
            self._metrics.record_batch(result)
            self._pause()
        except Exception:
            self._release_after_failure()
            raise
        self._call_strategy("release_qps_resources")
        return found, result

    def _put_batch(self, records: Sequence[IndexRecord], desired: float) -> Tuple[None, BatchResult]:
        granted = self._acquire(desired, len(records))
        try:
            throttle = self._throttle(granted, len(records))
            start_ms = _now_ms()
            self._store.put_batch(records)
            result = BatchResult(
                op="put",
                batch_size=len(records),
                granted_fraction=granted,
                effective_qps=throttle.effective_qps,
                latency_ms=_now_ms() - start_ms,
            )
            self._metrics.record_batch(result)
            self._pause()
        except Exception:
            self._release_after_failure()
            raise
        self._call_strategy("release_qps_resources")
        return None, result

    def _acquire(self, desired: float, num_records: int) -> float:
        return self._fraction(
            "acquire_qps_resources", self._call_strategy("acquire_qps_resources", desired, num_records)
        )

    def _fraction(self, operation: str, value) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            raise StrategyRuntimeError(
                type(self._allocator).__name__,
                operation,
                TypeError(f"fraction must be a number, got {value!r}"),
            )
        return float(value)

    def _throttle(self, granted: float, num_records: int) -> Throttle:
        # every key in a multi-get or multi-put is one request to a region server
        throttle = compute_throttle(
            min(max(granted, 0.0), 1.0), self._probe.snapshot(), self._config, num_tasks=self._config.parallelism
        )
        self._rate_limiter.set_rate(throttle.effective_qps)
        self._rate_limiter.acquire(num_records)
        return throttle

    def _call_strategy(self, operation: str, *args):
        try:
            return getattr(self._allocator, operation)(*args)
        except Exception as exc:  # noqa: BLE001
            raise StrategyRuntimeError(type(self._allocator).__name__, operation, exc) from exc

    def _release_after_failure(self) -> None:
        # the batch error is already propagating; a release error must not replace it
        try:
            self._allocator.release_qps_resources()
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.WARNING,
                "release_failed",
                allocator=type(self._allocator).__name__,
                error=f"{type(exc).__name__}: {exc}",
            )

    def _pause(self) -> None:
        if self._config.sleep_ms_between_batches > 0:
            time.sleep(self._config.sleep_ms_between_batches / 1000.0)


def _chunks(items: List[T], size: int) -> List[List[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _results(futures: List["Future[T]"]) -> List[T]:
    # let every batch finish before surfacing the first failure
    wait(futures)
    return [fut.result() for fut in futures]


def _now_ms() -> int:
    return int(time.time() * 1000)
