"""Throughput of SimpleLoadGenerator under standard and free-threaded builds.

Run with:
    # Standard (GIL enabled)
    python examples/free_threading_demo.py

    # Free-threading (GIL disabled)
    python -X gil=0 examples/free_threading_demo.py
"""

import sys
import time

from prometheus_client import CollectorRegistry

from keyload.cli import simulate
from keyload.config import LoadGeneratorConfig

gil_enabled = getattr(sys, "_is_gil_enabled", lambda: True)()

print("=" * 70)
print("keyload Free-Threading Demonstration")
print(
    f"Python version: {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
)
print(f"GIL enabled: {gil_enabled}")
print("=" * 70)


def benchmark(workers: int, ops: int) -> None:
    config = LoadGeneratorConfig(end_key=workers * ops // 2, seed=1)
    start = time.perf_counter()
    stats = simulate(
        config,
        workers=workers,
        ops=ops,
        failure_rate=0.01,
        read_ratio=0.5,
        registry=CollectorRegistry(),
    )
    elapsed = time.perf_counter() - start
    total = workers * ops
    print(
        f"{workers:>3} workers: {total:,} ops in {elapsed:.3f}s "
        f"({total / elapsed:,.0f} ops/sec), "
        f"watermark {stats['tracker']['max_written_key']:,}"
    )


if __name__ == "__main__":
    for workers in (1, 2, 4, 8):
        benchmark(workers, 20_000)
