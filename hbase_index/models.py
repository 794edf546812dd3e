from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class AllocatorState(enum.Enum):
    """Lifecycle of the allocator owned by one HBaseIndex."""

    UNINITIALIZED = "uninitialized"
    RESOLVED = "resolved"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class ClusterSnapshot:
    region_servers: int
    timestamp: float


@dataclass(frozen=True)
class IndexRecord:
    key: str
    location: Optional[str]


@dataclass(frozen=True)
class BatchResult:
    op: str
    batch_size: int
    granted_fraction: float
    effective_qps: float
    latency_ms: int
    found: int = 0


@dataclass(frozen=True)
class ThroughputSnapshot:
    window_secs: int
    total_batches: int
    get_batches: int
    put_batches: int
    total_records: int
    avg_granted_fraction: float
    avg_latency_ms: float
    timestamp: float
