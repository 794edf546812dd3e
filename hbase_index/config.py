from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError

DEFAULT_ALLOCATOR = "DefaultQPSResourceAllocator"

# property key -> dataclass field
_PROPERTY_KEYS: Dict[str, str] = {
    "hoodie.index.hbase.table": "table_name",
    "hoodie.index.hbase.qps.fraction": "qps_fraction",
    "hoodie.index.hbase.qps.allocator.class": "allocator_class_name",
    "hoodie.index.hbase.get.batch.size": "get_batch_size",
    "hoodie.index.hbase.put.batch.size": "put_batch_size",
    "hoodie.index.hbase.put.batch.size.autocompute": "put_batch_size_autocompute",
    "hoodie.index.hbase.max.qps.per.region.server": "max_qps_per_region_server",
    "hoodie.index.hbase.min.qps.fraction": "min_qps_fraction",
    "hoodie.index.hbase.max.qps.fraction": "max_qps_fraction",
    "hoodie.index.hbase.sleep.ms.for.batch": "sleep_ms_between_batches",
    "hoodie.index.hbase.parallelism": "parallelism",
    "hoodie.index.hbase.region.servers": "region_servers",
    "qpsFraction": "qps_fraction",
    "allocatorClassName": "allocator_class_name",
    "getBatchSize": "get_batch_size",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class HBaseIndexConfig:
    """Options consumed by HBaseIndex and the QPS resource allocators.

    Values are validated on construction; a bad value raises ConfigurationError
    instead of surfacing later as a throttling bug.
    """

    table_name: str = "hbase_index"
    qps_fraction: float = 0.5
    allocator_class_name: Optional[str] = None
    get_batch_size: int = 100
    put_batch_size: int = 100
    put_batch_size_autocompute: bool = False
    max_qps_per_region_server: int = 1000
    min_qps_fraction: float = 0.002
    max_qps_fraction: float = 1.0
    sleep_ms_between_batches: int = 100
    parallelism: int = 4
    region_servers: int = 1

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type in ("float", "int") and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ConfigurationError(f"{f.name} must be a number, got {value!r}")
        for name in ("qps_fraction", "min_qps_fraction", "max_qps_fraction"):
            value = getattr(self, name)
            if not math.isfinite(value) or not 0.0 < value <= 1.0:
                raise ConfigurationError(f"{name} must be in (0, 1], got {value!r}")
        if self.min_qps_fraction > self.max_qps_fraction:
            raise ConfigurationError(
                f"min_qps_fraction ({self.min_qps_fraction}) exceeds max_qps_fraction ({self.max_qps_fraction})"
            )
        for name in ("get_batch_size", "put_batch_size", "max_qps_per_region_server", "parallelism", "region_servers"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {getattr(self, name)!r}")
        if self.sleep_ms_between_batches < 0:
            raise ConfigurationError(
                f"sleep_ms_between_batches must be >= 0, got {self.sleep_ms_between_batches!r}"
            )
        if not self.table_name:
            raise ConfigurationError("table_name is required")

    @classmethod
    def from_properties(cls, props: Mapping[str, Any]) -> "HBaseIndexConfig":
        """Build a config from a flat property map, coercing string values.

        Unknown keys are ignored so a full job configuration can be passed in.
        """
        types = {f.name: f.type for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, raw in props.items():
            name = _PROPERTY_KEYS.get(key, key if key in types else None)
            if name is None or raw is None:
                continue
            kwargs[name] = _coerce(name, types[name], raw)
        return cls(**kwargs)

    def to_properties(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, name in _PROPERTY_KEYS.items():
            if key.startswith("hoodie."):
                out[key] = getattr(self, name)
        return out


def _coerce(name: str, type_name: str, raw: Any) -> Any:
    # annotations are strings under postponed evaluation
    try:
        if type_name == "float":
            return float(raw)
        if type_name == "int":
            return int(raw)
        if type_name == "bool":
            if isinstance(raw, bool):
                return raw
            text = str(raw).strip().lower()
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
            raise ValueError(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid value for {name}: {raw!r}") from exc
    text = str(raw).strip()
    if type_name == "Optional[str]":
        return text or None
    return text
