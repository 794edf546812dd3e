from __future__ import annotations

import argparse
import json
import uuid
from dataclasses import asdict
from typing import Optional

from hbase_index._log import setup_logging
from hbase_index.config import HBaseIndexConfig
from hbase_index.index import HBaseIndex
from hbase_index.models import IndexRecord
from hbase_index.store import HBaseRestStore, InMemoryKeyValueStore, KeyValueStore


def _load_properties(path: Optional[str]) -> dict:
    """Read key=value or key: value lines; blank lines and # or ! comments are skipped.

    Backslash line continuations are not supported.
    """
    props: dict = {}
    if not path:
        return props
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            seps = [i for i in (line.find("="), line.find(":")) if i > 0]
            if not line or line[0] in "#!" or not seps:
                continue
            k, v = line[: min(seps)], line[min(seps) + 1 :]
            props[k.strip()] = v.strip()
    return props


def _build_store(rest_url: Optional[str], table: str) -> KeyValueStore:
    if rest_url:
        return HBaseRestStore(rest_url, table)
    return InMemoryKeyValueStore()


def run_demo(config: HBaseIndexConfig, rest_url: Optional[str], num_keys: int) -> None:
    store = _build_store(rest_url, config.table_name)
    keys = [f"key-{i:06d}" for i in range(num_keys)]
    records = [IndexRecord(key=k, location=f"partition-{i % 8}/{uuid.uuid4()}") for i, k in enumerate(keys)]

    try:
        with HBaseIndex(config, store) as index:
            print(f"allocator={type(index.allocator).__name__} qps_fraction={config.qps_fraction}")

            results = index.update_location(records[: num_keys // 2])
            print(f"put batches={len(results)} records={sum(r.batch_size for r in results)}")

            located = index.tag_location(keys)
            hits = sum(1 for v in located.values() if v is not None)
            print(f"tagged keys={len(located)} hits={hits} misses={len(located) - hits}")

            snap = index.metrics.snapshot(window_secs=3600)
            print(json.dumps(asdict(snap), ensure_ascii=False))
    finally:
        store.close()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--run-demo", action="store_true", help="Write and look up keys through a throttled index")

    parser.add_argument("--properties", default=None, help="Path to an index properties file (key=value or key: value lines, no continuations)")
    parser.add_argument("--rest-url", default=None, help="HBase REST gateway URL (in-memory store if unset)")
    parser.add_argument("--table", default=None, help="HBase table name")

    parser.add_argument("--qps-fraction", type=float, default=None, help="Fraction of cluster QPS for this job")
    parser.add_argument("--allocator", default=None, help="Registered QPS resource allocator name")
    parser.add_argument("--get-batch-size", type=int, default=None, help="Keys per multi-get")
    parser.add_argument("--region-servers", type=int, default=None, help="Region servers serving the table")
    parser.add_argument("--keys", type=int, default=1000, help="Number of keys to write and look up")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log throttle decisions")

    args = parser.parse_args()
    setup_logging(verbose=args.verbose)

    props = _load_properties(args.properties)
    overrides = {
        "table_name": args.table,
        "qps_fraction": args.qps_fraction,
        "allocator_class_name": args.allocator,
        "get_batch_size": args.get_batch_size,
        "region_servers": args.region_servers,
    }
    props.update({k: v for k, v in overrides.items() if v is not None})
    config = HBaseIndexConfig.from_properties(props)

    if args.run_demo:
        run_demo(config, args.rest_url, args.keys)
        return

    print("Nothing to do. Use --run-demo to run the demo.")


if __name__ == "__main__":
    main()
