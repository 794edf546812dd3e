from __future__ import annotations

import base64
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote

import requests

from ._log import log_event
from .backoff import BackoffStrategy
from .errors import StoreError
from .models import ClusterSnapshot, IndexRecord

logger = logging.getLogger(__name__)

LOCATION_COLUMN = "_s:location"


class KeyValueStore(ABC):
    """Batched point access to the external key-value cluster.

    Connection handling and retry on network errors belong to the store, not
    to the caller."""

    @abstractmethod
    def get_batch(self, keys: Sequence[str]) -> Dict[str, Optional[str]]:
        """Return the stored location for every key, None where the key is absent."""

    @abstractmethod
    def put_batch(self, records: Sequence[IndexRecord]) -> int:
        """Write records; a record with location None deletes its key. Returns rows touched."""

    def close(self) -> None:
        """Release connections. No-op by default."""


class InMemoryKeyValueStore(KeyValueStore):
    """Lock-guarded dict standing in for the cluster in tests and demos."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[str, str] = dict(initial or {})
        self.get_calls = 0
        self.put_calls = 0

    def get_batch(self, keys: Sequence[str]) -> Dict[str, Optional[str]]:
        with self._lock:
            self.get_calls += 1
            return {k: self._rows.get(k) for k in keys}

    def put_batch(self, records: Sequence[IndexRecord]) -> int:
        with self._lock:
            self.put_calls += 1
            for rec in records:
                if rec.location is None:
                    self._rows.pop(rec.key, None)
                else:
                    self._rows[rec.key] = rec.location
            return len(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


class HBaseRestStore(KeyValueStore):
    """Talks to an HBase REST gateway with JSON cell sets.

    Row keys, column names and values travel base64-encoded as the gateway
    requires. Connection errors, timeouts and 5xx answers are retried with
    exponential backoff; anything else raises StoreError immediately."""

    def __init__(
        self,
        base_url: str,
        table: str,
        backoff: Optional[BackoffStrategy] = None,
        max_retries: int = 3,
        timeout: int = 20,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._table = table
        self._backoff = backoff or BackoffStrategy()
        self._max_retries = max_retries
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def get_batch(self, keys: Sequence[str]) -> Dict[str, Optional[str]]:
        found: Dict[str, Optional[str]] = {k: None for k in keys}
        if not keys:
            return found
        url = f"{self._base_url}/{quote(self._table, safe='')}/multiget"
        params = [("row", k) for k in keys]
        resp = self._request("GET", url, params=params)
        if resp.status_code == 404:
            return found
        try:
            payload = resp.json() or {}
        except ValueError as exc:
            raise StoreError(f"GET {url} returned an unreadable body", status_code=resp.status_code) from exc
        for row in payload.get("Row", []):
            key = _b64decode(row.get("key", ""))
            for cell in row.get("Cell", []):
                if _b64decode(cell.get("column", "")) == LOCATION_COLUMN:
                    found[key] = _b64decode(cell.get("$", ""))
        return found

    def put_batch(self, records: Sequence[IndexRecord]) -> int:
        puts = [r for r in records if r.location is not None]
        deletes = [r for r in records if r.location is None]
        if puts:
            url = f"{self._base_url}/{quote(self._table, safe='')}/fakerow"
            self._request("PUT", url, json=_cell_set(puts), headers={"Content-Type": "application/json"})
        for rec in deletes:
            url = f"{self._base_url}/{quote(self._table, safe='')}/{quote(rec.key, safe='')}"
            self._request("DELETE", url, allow_missing=True)
        return len(records)

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, url: str, allow_missing: bool = False, **kwargs) -> requests.Response:
        attempt = 0
        while True:
            attempt += 1
            error_type: Optional[str] = None
            try:
                resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt >= self._max_retries:
                    raise StoreError(f"{method} {url} failed after {attempt} attempts: {exc}") from exc
                error_type = type(exc).__name__
            else:
                if resp.status_code < 300 or (resp.status_code == 404 and (allow_missing or method == "GET")):
                    return resp
                if resp.status_code < 500 or attempt >= self._max_retries:
                    raise StoreError(f"{method} {url} returned HTTP {resp.status_code}", status_code=resp.status_code)
                error_type = f"HTTP_{resp.status_code}"
            sleep_s = self._backoff.get_sleep(attempt, error_type)
            log_event(logger, logging.WARNING, "store_retry", method=method, attempt=attempt, error=error_type, sleep_s=sleep_s)
            time.sleep(sleep_s)


class StaticClusterProbe:
    """Supplies a fixed region-server count as an immutable ClusterSnapshot."""

    def __init__(self, region_servers: int) -> None:
        if region_servers < 1:
            raise ValueError(f"region_servers must be >= 1, got {region_servers}")
        self._region_servers = region_servers

    def snapshot(self) -> ClusterSnapshot:
        return ClusterSnapshot(region_servers=self._region_servers, timestamp=time.time())


def _cell_set(records: Iterable[IndexRecord]) -> Dict[str, List[dict]]:
    column = _b64encode(LOCATION_COLUMN)
    return {
        "Row": [
            {"key": _b64encode(r.key), "Cell": [{"column": column, "$": _b64encode(r.location or "")}]}
            for r in records
        ]
    }


def _b64encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _b64decode(text: str) -> str:
    return base64.b64decode(text).decode("utf-8")
