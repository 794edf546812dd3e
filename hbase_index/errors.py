from __future__ import annotations

from typing import Optional


class HBaseIndexError(Exception):
    """Base class for every error raised by the hbase_index package."""


class ConfigurationError(HBaseIndexError, ValueError):
    """An index option is missing, malformed or out of range."""


class InvalidInputError(HBaseIndexError, ValueError):
    """A strategy rejected the fraction or record count it was given."""


class StrategyRuntimeError(HBaseIndexError):
    """A constructed allocator failed while acquiring or releasing resources."""

    def __init__(self, strategy: str, operation: str, cause: BaseException) -> None:
        super().__init__(f"{strategy}.{operation} failed: {type(cause).__name__}: {cause}")
        self.strategy = strategy
        self.operation = operation


class IndexClosedError(HBaseIndexError, RuntimeError):
    """A batch was issued after the index was closed."""


class StoreError(HBaseIndexError):
    """The external store rejected a request or stayed unreachable after retries."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
