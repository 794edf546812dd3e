from __future__ import annotations

import math
from abc import ABC, abstractmethod

from .config import HBaseIndexConfig
from .errors import InvalidInputError


class QPSResourceAllocator(ABC):
    """Abstract base class for QPS resource allocation strategies.

    One instance is built per HBaseIndex from its configuration and shared by
    every worker thread that issues batches, so implementations must do their
    own locking if they keep mutable state. acquire_qps_resources() may sleep
    but must always return.
    """

    def __init__(self, config: HBaseIndexConfig) -> None:
        self._config = config

    @property
    def config(self) -> HBaseIndexConfig:
        return self._config

    def calculate_qps_fraction_for_puts_time(self, num_puts: int, num_region_servers: int) -> float:
        """Return the fraction this strategy wants for a put phase of num_puts records."""
        return self._config.qps_fraction

    @abstractmethod
    def acquire_qps_resources(self, desired_fraction: float, num_records: int) -> float:
        """Return the fraction of cluster capacity granted for the next batch."""
        raise NotImplementedError

    def release_qps_resources(self) -> None:
        """Give back whatever acquire_qps_resources() reserved. No-op by default."""


class DefaultQPSResourceAllocator(QPSResourceAllocator):
    """Passthrough strategy: grants exactly the fraction that was asked for.

    Holds nothing but the immutable config, so it can be shared across threads
    without locking. Out-of-range input is normalised instead of rejected.
    """

    def acquire_qps_resources(self, desired_fraction: float, num_records: int) -> float:
        if math.isnan(desired_fraction) or desired_fraction <= 0.0:
            return self._config.min_qps_fraction
        return min(desired_fraction, 1.0)


class CappedQPSResourceAllocator(QPSResourceAllocator):
    """Grants the desired fraction clamped to [min_qps_fraction, max_qps_fraction].

    Unlike the default it rejects a negative record count.
    """

    def acquire_qps_resources(self, desired_fraction: float, num_records: int) -> float:
        if num_records < 0:
            raise InvalidInputError(f"num_records must be >= 0, got {num_records}")
        return _normalise(desired_fraction, self._config.min_qps_fraction, self._config.max_qps_fraction)


def _normalise(fraction: float, floor: float, ceiling: float) -> float:
    if math.isnan(fraction):
        return floor
    return max(floor, min(fraction, ceiling))
