from __future__ import annotations

import random
from typing import Optional


class BackoffStrategy:
    """Exponential backoff with jitter between store request retries.

    Sleep is base * 2^(attempt-1) plus up to 10% random jitter, capped at
    max_seconds before jitter. A 503 from the region server doubles the
    base once more since it means the server is shedding load."""

    def __init__(self, base_seconds: float = 0.5, max_seconds: float = 10.0) -> None:
        self._base = base_seconds
        self._max = max_seconds

    def get_sleep(self, attempt: int, error_type: Optional[str] = None) -> float:
        """Calculate the backoff sleep duration in seconds for a given retry attempt."""
        base = self._base * 2 if error_type == "HTTP_503" else self._base
        exp = min(self._max, base * (2 ** max(attempt - 1, 0)))
        jitter = random.uniform(0, exp * 0.1)
        return exp + jitter
