from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, TypeVar

from .errors import IndexClosedError

T = TypeVar("T")


class ThreadPoolController:
    """Runs store batches concurrently on a bounded thread pool.

    submit() blocks while the number of in-flight batches is at the
    concurrency limit.
    """

    def __init__(self, max_workers: int, initial_limit: int) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="hbase-index")

        self._lock = threading.Lock()
        self._cv = threading.Condition(self._lock)

        self._limit = max(1, initial_limit)
        self._active = 0
        self._running = False

    def start(self) -> None:
        self._running = True

    def stop(self, wait: bool = True) -> None:
        with self._cv:
            self._running = False
            self._cv.notify_all()
        self._executor.shutdown(wait=wait, cancel_futures=False)

    def submit(self, fn: Callable[..., T], *args) -> "Future[T]":
        """Submit one batch for execution, blocking if at the concurrency limit."""
        with self._cv:
            while self._running and self._active >= self._limit:
                self._cv.wait(timeout=0.5)

            if not self._running:
                raise IndexClosedError("controller is stopped")

            self._active += 1

        return self._executor.submit(self._wrap_task, fn, *args)

    def _wrap_task(self, fn: Callable[..., T], *args) -> T:
        try:
            return fn(*args)
        finally:
            with self._cv:
                self._active = max(0, self._active - 1)
                self._cv.notify_all()
