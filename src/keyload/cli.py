"""
keyload CLI tools

Usage:
    python -m keyload.cli simulate --end-key 10000 --workers 8 --ops 5000
    python -m keyload.cli env

Commands:
    simulate  - Drive a SimpleLoadGenerator against an in-memory store
    env       - Show the configuration loaded from KEYLOAD_* variables
"""

import argparse
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from typing import Any, Dict, Optional

import numpy as np

from .config import LoadGeneratorConfig
from .exceptions import KeyLoadError
from .generator import SimpleLoadGenerator

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dict-backed stand-in for the target store in dry runs."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


def _worker(
    gen: SimpleLoadGenerator,
    store: InMemoryStore,
    ops: int,
    failure_rate: float,
    read_ratio: float,
    rng: np.random.Generator,
) -> Dict[str, int]:
    counts = {"writes": 0, "failed_writes": 0, "reads": 0, "empty_reads": 0}
    for _ in range(ops):
        if rng.random() < read_ratio:
            key = gen.get_key_to_read()
            if key is None:
                counts["empty_reads"] += 1
                continue
            key.verify(store.get(key.as_string()) or "")
            counts["reads"] += 1
            continue

        key = gen.get_key_to_write()
        if key is None:
            continue
        if rng.random() < failure_rate:
            gen.record_write_failure(key)
            counts["failed_writes"] += 1
        else:
            store.put(key.as_string(), key.get_value_str())
            gen.record_write_success(key)
            counts["writes"] += 1
    return counts


def simulate(
    config: LoadGeneratorConfig,
    workers: int,
    ops: int,
    failure_rate: float = 0.0,
    read_ratio: float = 0.5,
    registry=None,
) -> Dict[str, Any]:
    """Run `workers` threads of `ops` operations each and return stats."""
    store = InMemoryStore()
    seeds = np.random.SeedSequence(config.seed).spawn(workers)
    with SimpleLoadGenerator.from_config(config, registry=registry) as gen:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(
                    _worker,
                    gen,
                    store,
                    ops,
                    failure_rate,
                    read_ratio,
                    np.random.default_rng(seed),
                )
                for seed in seeds
            ]
            totals: Dict[str, int] = {}
            for fut in futures:
                for name, value in fut.result().items():
                    totals[name] = totals.get(name, 0) + value

        settled = gen.wait_for_watermark(gen.max_generated_key, timeout=5.0)
        if not settled:
            logger.warning(
                f"Watermark {gen.max_written_key} did not reach "
                f"{gen.max_generated_key} before timeout"
            )
        stats = gen.get_stats()
    stats["workload"] = totals
    stats["stored_keys"] = len(store)
    return stats


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="keyload CLI tools")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    subparsers = parser.add_subparsers(dest="command")

    sim_parser = subparsers.add_parser(
        "simulate", help="Run a dry-run workload in memory"
    )
    sim_parser.add_argument("--start-key", type=int, default=None)
    sim_parser.add_argument("--end-key", type=int, default=None)
    sim_parser.add_argument("--key-prefix", default=None)
    sim_parser.add_argument("--workers", type=int, default=4)
    sim_parser.add_argument("--ops", type=int, default=1000, help="Operations per worker")
    sim_parser.add_argument("--failure-rate", type=float, default=0.0)
    sim_parser.add_argument("--read-ratio", type=float, default=0.5)
    sim_parser.add_argument("--seed", type=int, default=None)

    subparsers.add_parser("env", help="Show configuration from the environment")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = LoadGeneratorConfig.from_env()
        if args.command == "simulate":
            overrides = {
                name: getattr(args, name)
                for name in ("start_key", "end_key", "key_prefix", "seed")
                if getattr(args, name) is not None
            }
            if overrides:
                config = config.with_overrides(**overrides)
            stats = simulate(
                config,
                workers=args.workers,
                ops=args.ops,
                failure_rate=args.failure_rate,
                read_ratio=args.read_ratio,
            )
            print(json.dumps(stats, indent=2, sort_keys=True))
        elif args.command == "env":
            print(json.dumps(asdict(config), indent=2, sort_keys=True))
        else:
            parser.print_help()
            return 1
    except KeyLoadError as e:
        logger.error(f"{e}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
