"""QPS-throttled record index over an HBase-style key-value cluster.

Key modules:
    allocator   -- QPSResourceAllocator base class and built-in strategies
    registry    -- name -> strategy registry with fallback to the default
    index       -- HBaseIndex, which throttles every store batch by its grant
    throttle    -- grant -> request rate and multi-put batch size
    rate_limiter-- RateLimiter for QPS pacing
    backoff     -- BackoffStrategy for store request retries
    store       -- KeyValueStore, in-memory and HBase REST implementations
    controller  -- ThreadPoolController running batches concurrently
    metrics     -- MetricsCollector for batch telemetry
    models      -- ClusterSnapshot, IndexRecord, BatchResult dataclasses
    config      -- HBaseIndexConfig
    errors      -- exception hierarchy
"""
from .allocator import CappedQPSResourceAllocator, DefaultQPSResourceAllocator, QPSResourceAllocator
from .config import DEFAULT_ALLOCATOR, HBaseIndexConfig
from .errors import (
    ConfigurationError,
    HBaseIndexError,
    IndexClosedError,
    InvalidInputError,
    StoreError,
    StrategyRuntimeError,
)
from .index import HBaseIndex
from .models import AllocatorState, BatchResult, ClusterSnapshot, IndexRecord
from .registry import create_qps_resource_allocator, register_allocator, unregister_allocator

__all__ = [
    "AllocatorState",
    "BatchResult",
    "CappedQPSResourceAllocator",
    "ClusterSnapshot",
    "ConfigurationError",
    "DEFAULT_ALLOCATOR",
    "DefaultQPSResourceAllocator",
    "HBaseIndex",
    "HBaseIndexConfig",
    "HBaseIndexError",
    "IndexClosedError",
    "IndexRecord",
    "InvalidInputError",
    "QPSResourceAllocator",
    "StoreError",
    "StrategyRuntimeError",
    "create_qps_resource_allocator",
    "register_allocator",
    "unregister_allocator",
]
