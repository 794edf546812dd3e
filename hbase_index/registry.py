from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ._log import log_event
from .allocator import CappedQPSResourceAllocator, DefaultQPSResourceAllocator, QPSResourceAllocator
from .config import DEFAULT_ALLOCATOR, HBaseIndexConfig

logger = logging.getLogger(__name__)

AllocatorFactory = Callable[[HBaseIndexConfig], QPSResourceAllocator]

# name -> factory, populated at import time and by register_allocator()
_REGISTRY: Dict[str, AllocatorFactory] = {}
_registry_lock = threading.Lock()


class FailureReason(enum.Enum):
    UNKNOWN_IDENTITY = "unknown_identity"
    INCOMPATIBLE_TYPE = "incompatible_type"
    CONSTRUCTION_FAILED = "construction_failed"


@dataclass(frozen=True)
class BuildFailure:
    reason: FailureReason
    detail: str


@dataclass(frozen=True)
class AllocatorBuild:
    """Outcome of build_allocator(): exactly one of allocator / failure is set."""

    name: str
    allocator: Optional[QPSResourceAllocator] = None
    failure: Optional[BuildFailure] = None

    @property
    def ok(self) -> bool:
        return self.allocator is not None


def register_allocator(name: str) -> Callable[[AllocatorFactory], AllocatorFactory]:
    """Decorator registering a factory (usually the allocator class) under name.

    Registering an existing name replaces the previous factory.
    """
    if not name:
        raise ValueError("allocator name is required")

    def decorator(factory: AllocatorFactory) -> AllocatorFactory:
        with _registry_lock:
            _REGISTRY[name] = factory
        return factory

    return decorator


def unregister_allocator(name: str) -> None:
    """Remove a registered strategy. The built-in default cannot be removed."""
    if name == DEFAULT_ALLOCATOR:
        raise ValueError(f"{DEFAULT_ALLOCATOR} cannot be unregistered")
    with _registry_lock:
        _REGISTRY.pop(name, None)


def registered_allocators() -> List[str]:
    with _registry_lock:
        return sorted(_REGISTRY)


def is_default_identity(name: Optional[str]) -> bool:
    return not name or not name.strip() or name.strip() == DEFAULT_ALLOCATOR


def build_allocator(name: str, config: HBaseIndexConfig) -> AllocatorBuild:
    """Try to build the strategy registered under name. Never raises."""
    with _registry_lock:
        factory = _REGISTRY.get(name)
    if factory is None:
        return AllocatorBuild(name, failure=BuildFailure(FailureReason.UNKNOWN_IDENTITY, f"no allocator named {name!r}"))
    try:
        allocator = factory(config)
    except Exception as exc:  # noqa: BLE001
        return AllocatorBuild(
            name,
            failure=BuildFailure(FailureReason.CONSTRUCTION_FAILED, f"{type(exc).__name__}: {exc}"),
        )
    if not isinstance(allocator, QPSResourceAllocator):
        return AllocatorBuild(
            name,
            failure=BuildFailure(
                FailureReason.INCOMPATIBLE_TYPE,
                f"factory returned {type(allocator).__name__}, not a QPSResourceAllocator",
            ),
        )
    return AllocatorBuild(name, allocator=allocator)


def create_qps_resource_allocator(config: HBaseIndexConfig) -> QPSResourceAllocator:
    """Resolve config.allocator_class_name to an allocator instance.

    An unset name or the default identity gives DefaultQPSResourceAllocator.
    Any other name is looked up in the registry; if it cannot be built the
    failure is logged and the default is returned, so a typo in the job
    configuration never aborts indexing.
    """
    name = config.allocator_class_name
    if is_default_identity(name):
        return DefaultQPSResourceAllocator(config)

    name = name.strip()
    build = build_allocator(name, config)
    if build.ok:
        log_event(logger, logging.DEBUG, "allocator_resolved", name=name, allocator=type(build.allocator).__name__)
        return build.allocator

    log_event(
        logger,
        logging.WARNING,
        "allocator_fallback",
        requested=name,
        reason=build.failure.reason.value,
        detail=build.failure.detail,
        fallback=DEFAULT_ALLOCATOR,
    )
    return DefaultQPSResourceAllocator(config)


register_allocator(DEFAULT_ALLOCATOR)(DefaultQPSResourceAllocator)
register_allocator("org.apache.hudi.index.hbase.DefaultHBaseQPSResourceAllocator")(DefaultQPSResourceAllocator)
register_allocator("CappedQPSResourceAllocator")(CappedQPSResourceAllocator)
