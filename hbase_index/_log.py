from __future__ import annotations

import json
import logging
import sys
import threading
from typing import Any

_lock = threading.Lock()
_setup_done = False


def setup_logging(verbose: bool = False) -> None:
    """Attach a single stderr handler to the ``hbase_index`` logger (idempotent)."""
    global _setup_done
    with _lock:
        if _setup_done:
            return
        logger = logging.getLogger("hbase_index")
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
        _setup_done = True


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log one decision as a JSON object, e.g. {"event": "allocator_fallback", ...}."""
    if not logger.isEnabledFor(level):
        return
    logger.log(level, json.dumps({"event": event, **fields}, ensure_ascii=False, default=str))
