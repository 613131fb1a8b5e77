"""selector.py - Uniform sampling of confirmed keys for reads and updates"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import numpy as np

from .constants import DEFAULT_MAX_READ_ATTEMPTS, NO_KEY
from .keys import Key
from .metrics import get_metrics
from .tracker import CompletionTracker

logger = logging.getLogger(__name__)


class ReadKeySelector:
    """
    ReadKeySelector: picks an id below the watermark that did not fail.

    - Up to `max_attempts` uniform draws in [0, watermark).
    - If all draws hit failed ids, a linear scan over [0, watermark] from a
      random offset, so selection always terminates.
    - Each thread draws from its own numpy Generator spawned from one
      SeedSequence; a fixed seed makes every thread's sequence reproducible.
    """

    def __init__(
        self,
        tracker: CompletionTracker,
        key_factory: Callable[[int], Key],
        max_attempts: int = DEFAULT_MAX_READ_ATTEMPTS,
        seed: Optional[int] = None,
        registry=None,
    ):
        assert max_attempts >= 1, "max_attempts must be at least 1"
        self.tracker = tracker
        self.max_attempts = max_attempts
        self._key_factory = key_factory
        self._seed_sequence = np.random.SeedSequence(seed)
        self._spawn_lock = threading.Lock()
        self._local = threading.local()
        self._fallback_scans = get_metrics(registry)["read_fallback_scans"]

    def _rng(self) -> np.random.Generator:
        rng = getattr(self._local, "rng", None)
        if rng is None:
            with self._spawn_lock:
                (child,) = self._seed_sequence.spawn(1)
            rng = np.random.default_rng(child)
            self._local.rng = rng
        return rng

    def _select(self, watermark: int, is_failed: Callable[[int], bool]) -> int:
        if watermark == NO_KEY:
            return NO_KEY
        if watermark == 0:
            return NO_KEY if is_failed(0) else 0

        rng = self._rng()
        for _ in range(self.max_attempts):
            key_id = int(rng.integers(0, watermark))
            if not is_failed(key_id):
                return key_id

        self._fallback_scans.inc()
        logger.warning(
            f"[ReadKeySelector] {self.max_attempts} draws below {watermark} "
            f"all hit failed keys, scanning"
        )
        span = watermark + 1
        start = int(rng.integers(0, span))
        for offset in range(span):
            key_id = (start + offset) % span
            if not is_failed(key_id):
                return key_id
        return NO_KEY

    def next_key(self) -> Optional[Key]:
        """Return a confirmed, non-failed key, or None if there is none yet."""
        key_id = self.tracker.sample(self._select)
        if key_id == NO_KEY:
            if self.tracker.max_written_key != NO_KEY:
                logger.warning(
                    "[ReadKeySelector] Every key at or below the watermark failed"
                )
            return None
        return self._key_factory(key_id)
