"""tracker.py - Background tracking of the contiguous written-key watermark

Workers report write completions in any order. A daemon thread folds them
into `max_written_key`: the largest id such that every id from 0 up to it
is confirmed written or confirmed failed. Failed ids count as covered so a
permanently failing key never stalls the watermark.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Set, TypeVar

from .constants import NO_KEY, TRACKER_THREAD_NAME
from .exceptions import TrackerStoppedError
from .metrics import get_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CompletionTracker(threading.Thread):
    """
    CompletionTracker: Daemon thread advancing the written-key watermark.

    - failed_keys, pending_written_keys and the watermark share one lock.
    - Recorders notify `_data_ready`; the loop notifies `_advanced`.
    - Both conditions wrap the same lock, so the loop's readiness check and
      its wait happen atomically and no notification is lost.
    """

    def __init__(self, name: str = TRACKER_THREAD_NAME, registry=None):
        super().__init__(daemon=True, name=name)
        self._lock = threading.Lock()
        self._data_ready = threading.Condition(self._lock)
        self._advanced = threading.Condition(self._lock)
        self.failed_keys: Set[int] = set()
        self.pending_written_keys: Set[int] = set()
        self._max_written_key = NO_KEY
        self._stopped = False

        self._successes = 0
        self._failures = 0
        self._advances = 0
        self._last_advance = 0.0

        metrics = get_metrics(registry)
        self._writes_recorded = metrics["writes_recorded"]
        self._watermark_gauge = metrics["watermark"]
        self._pending_gauge = metrics["pending_keys"]
        self._failed_gauge = metrics["failed_keys"]
        self._watermark_gauge.set(NO_KEY)

    @property
    def max_written_key(self) -> int:
        with self._lock:
            return self._max_written_key

    @property
    def stopped(self) -> bool:
        with self._lock:
            return self._stopped

    def record_success(self, key_id: int) -> None:
        """Record a durable write of `key_id` and wake the loop."""
        with self._data_ready:
            if self._stopped:
                raise TrackerStoppedError(key_id)
            # Update writes land on ids the watermark already covers
            if key_id > self._max_written_key:
                self.pending_written_keys.add(key_id)
            self._successes += 1
            self._pending_gauge.set(len(self.pending_written_keys))
            self._data_ready.notify()
        self._writes_recorded.labels(outcome="success").inc()

    def record_failure(self, key_id: int) -> None:
        """Record a permanent write failure of `key_id` and wake the loop."""
        with self._data_ready:
            if self._stopped:
                raise TrackerStoppedError(key_id)
            self.failed_keys.add(key_id)
            self._failures += 1
            self._failed_gauge.set(len(self.failed_keys))
            self._data_ready.notify()
        self._writes_recorded.labels(outcome="failure").inc()

    def is_failed(self, key_id: int) -> bool:
        with self._lock:
            return key_id in self.failed_keys

    def sample(self, fn: Callable[[int, Callable[[int], bool]], T]) -> T:
        """Run fn(watermark, is_failed) against a consistent view of the state.

        `fn` runs while the lock is held: it must not record completions.
        """
        with self._lock:
            return fn(self._max_written_key, self.failed_keys.__contains__)

    def _drain(self) -> int:
        """Advance the watermark as far as possible. Caller holds the lock."""
        advanced = 0
        while True:
            candidate = self._max_written_key + 1
            if candidate in self.failed_keys:
                self.pending_written_keys.discard(candidate)
            elif candidate in self.pending_written_keys:
                self.pending_written_keys.remove(candidate)
            else:
                return advanced
            self._max_written_key = candidate
            advanced += 1

    def run(self) -> None:
        """Main tracking loop; runs until stop() or interpreter exit."""
        logger.info(f"[CompletionTracker] Thread '{self.name}' started")
        with self._data_ready:
            while not self._stopped:
                advanced = self._drain()
                if advanced:
                    self._advances += advanced
                    self._last_advance = time.time()
                    self._watermark_gauge.set(self._max_written_key)
                    self._pending_gauge.set(len(self.pending_written_keys))
                    self._failed_gauge.set(len(self.failed_keys))
                    logger.debug(
                        f"[CompletionTracker] Watermark advanced by {advanced} "
                        f"to {self._max_written_key}"
                    )
                    self._advanced.notify_all()
                    continue
                self._data_ready.wait()
        logger.info(f"[CompletionTracker] Thread '{self.name}' stopped")

    def wait_for_watermark(self, target: int, timeout: Optional[float] = None) -> bool:
        """Block until the watermark reaches `target`; False on timeout."""
        with self._advanced:
            return self._advanced.wait_for(
                lambda: self._max_written_key >= target or self._stopped,
                timeout=timeout,
            ) and self._max_written_key >= target

    def stop(self) -> None:
        """Stop the tracking loop; recorded state stays readable."""
        with self._lock:
            self._stopped = True
            self._data_ready.notify_all()
            self._advanced.notify_all()

    def get_stats(self) -> Dict[str, Any]:
        """Get tracker statistics."""
        with self._lock:
            return {
                "running": self.is_alive() and not self._stopped,
                "max_written_key": self._max_written_key,
                "pending_written_keys": len(self.pending_written_keys),
                "failed_keys": len(self.failed_keys),
                "successes": self._successes,
                "failures": self._failures,
                "advances": self._advances,
                "last_advance": self._last_advance,
            }
