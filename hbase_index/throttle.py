from __future__ import annotations

import logging
from dataclasses import dataclass

from ._log import log_event
from .config import HBaseIndexConfig
from .models import ClusterSnapshot

logger = logging.getLogger(__name__)

MILLIS_PER_SECOND = 1000
MIN_EFFECTIVE_QPS = 1.0


@dataclass(frozen=True)
class Throttle:
    """Concrete limits derived from one granted fraction."""

    granted_fraction: float
    cluster_qps: float
    effective_qps: float
    put_batch_size: int


def max_requests_per_second(granted_fraction: float, snapshot: ClusterSnapshot, max_qps_per_region_server: int) -> int:
    """Requests per second the whole job may send at granted_fraction."""
    return int(granted_fraction * max(1, snapshot.region_servers) * max_qps_per_region_server)


def put_batch_size(
    granted_fraction: float,
    snapshot: ClusterSnapshot,
    max_qps_per_region_server: int,
    num_tasks: int,
    max_workers: int,
    sleep_ms: int,
) -> int:
    """Size of one multi-put so that all parallel writers stay under the grant.

    Each writer sends at most 1000 / sleep_ms multi-puts per second, and at most
    min(num_tasks, max_workers) writers run at once.
    """
    max_req_per_sec = max_requests_per_second(granted_fraction, snapshot, max_qps_per_region_server)
    max_parallel_puts = max(1, min(num_tasks, max_workers))
    max_reqs_per_task_per_sec = max(1, MILLIS_PER_SECOND // max(1, sleep_ms))
    return max(1, max_req_per_sec // (max_parallel_puts * max_reqs_per_task_per_sec))


def compute_throttle(
    granted_fraction: float,
    snapshot: ClusterSnapshot,
    config: HBaseIndexConfig,
    num_tasks: int,
) -> Throttle:
    """Translate an allocator grant into a per-index request rate and put batch size.

    The effective rate is shared by all worker threads through one limiter,
    so it is the job-wide rate, never below MIN_EFFECTIVE_QPS.
    """
    cluster_qps = float(max(1, snapshot.region_servers) * config.max_qps_per_region_server)
    effective_qps = max(MIN_EFFECTIVE_QPS, granted_fraction * cluster_qps)
    if config.put_batch_size_autocompute:
        batch = put_batch_size(
            granted_fraction,
            snapshot,
            config.max_qps_per_region_server,
            num_tasks,
            config.parallelism,
            config.sleep_ms_between_batches,
        )
    else:
        batch = config.put_batch_size
    throttle = Throttle(
        granted_fraction=granted_fraction,
        cluster_qps=cluster_qps,
        effective_qps=effective_qps,
        put_batch_size=batch,
    )
    log_event(
        logger,
        logging.DEBUG,
        "throttle",
        granted_fraction=granted_fraction,
        region_servers=snapshot.region_servers,
        cluster_qps=cluster_qps,
        effective_qps=effective_qps,
        put_batch_size=batch,
    )
    return throttle
