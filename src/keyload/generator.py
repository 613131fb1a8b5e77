"""generator.py - SimpleLoadGenerator facade used by load-test workers.

Example:
    gen = SimpleLoadGenerator(0, 100_000)
    key = gen.get_key_to_write()
    if client.put(key.as_string(), key.get_value_str()):
        gen.record_write_success(key)
    else:
        gen.record_write_failure(key)

    key = gen.get_key_to_read()
    if key is not None:
        key.verify(client.get(key.as_string()))
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .allocator import KeyAllocator
from .config import LoadGeneratorConfig
from .keys import Key, MismatchReporter
from .metrics import get_metrics
from .selector import ReadKeySelector
from .tracker import CompletionTracker

logger = logging.getLogger(__name__)


class SimpleLoadGenerator:
    """
    Hands out keys to write and read, and tracks which writes completed.

    Thread-safe: every public method may be called from many workers.
    The tracker thread starts on construction unless autostart=False, in
    which case start() or entering a with block starts it.
    """

    def __init__(
        self,
        start_key: int,
        end_key: int,
        key_prefix: Optional[str] = None,
        config: Optional[LoadGeneratorConfig] = None,
        reporter: Optional[MismatchReporter] = None,
        registry=None,
        autostart: bool = True,
    ):
        if config is None:
            config = LoadGeneratorConfig(
                start_key=start_key, end_key=end_key, key_prefix=key_prefix
            )
        else:
            config = config.with_overrides(start_key=start_key, end_key=end_key)
            if key_prefix is not None:
                config = config.with_overrides(key_prefix=key_prefix)
        self.config = config
        self.start_key = config.start_key
        self.end_key = config.end_key
        self._key_prefix = config.resolved_prefix()

        if reporter is None:
            reporter = MismatchReporter(
                history=config.mismatch_history, registry=registry
            )
        self.reporter = reporter

        self.tracker = CompletionTracker(
            name=config.tracker_thread_name, registry=registry
        )
        self.selector = ReadKeySelector(
            self.tracker,
            self.generate_key,
            max_attempts=config.max_read_attempts,
            seed=config.seed,
            registry=registry,
        )
        self.allocator = KeyAllocator(
            config.end_key, self.generate_key, self.selector.next_key
        )
        self._max_generated_gauge = get_metrics(registry)["max_generated_key"]

        if autostart:
            self.start()

    @classmethod
    def from_config(
        cls, config: LoadGeneratorConfig, **kwargs: Any
    ) -> "SimpleLoadGenerator":
        return cls(config.start_key, config.end_key, config=config, **kwargs)

    def start(self) -> None:
        """Start the tracker thread; no-op once it has been started."""
        if self.tracker.ident is not None:
            return
        logger.info(
            f"[SimpleLoadGenerator] Tracking keys [0, {self.end_key}) "
            f"with prefix '{self._key_prefix}'"
        )
        self.tracker.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the tracker thread and wait up to `timeout` for it to exit."""
        self.tracker.stop()
        if self.tracker.is_alive():
            self.tracker.join(timeout=timeout)

    def __enter__(self) -> "SimpleLoadGenerator":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop(timeout=5.0)

    @property
    def key_prefix(self) -> str:
        return self._key_prefix

    def set_key_prefix(self, prefix: str) -> None:
        """Use `prefix` for keys generated from now on."""
        assert isinstance(prefix, str), "prefix must be str"
        self._key_prefix = prefix

    def generate_key(self, key_id: int) -> Key:
        return Key(key_id, self._key_prefix, self.reporter)

    @property
    def max_written_key(self) -> int:
        return self.tracker.max_written_key

    @property
    def max_generated_key(self) -> int:
        return self.allocator.max_generated_key

    def get_key_to_write(self) -> Optional[Key]:
        """Next fresh key, or an existing confirmed key once the range is used up.

        Returns None only when the range is used up and no key has been
        confirmed yet.
        """
        key = self.allocator.next_key()
        self._max_generated_gauge.set(self.allocator.max_generated_key)
        return key

    def get_key_to_read(self) -> Optional[Key]:
        """A uniformly chosen confirmed key that did not fail, or None."""
        return self.selector.next_key()

    def record_write_success(self, key: Key) -> None:
        self.tracker.record_success(key.as_number())

    def record_write_failure(self, key: Key) -> None:
        self.tracker.record_failure(key.as_number())

    def wait_for_watermark(self, target: int, timeout: Optional[float] = None) -> bool:
        return self.tracker.wait_for_watermark(target, timeout=timeout)

    def get_stats(self) -> Dict[str, Any]:
        """Get allocation, tracking and verification statistics."""
        return {
            "start_key": self.start_key,
            "end_key": self.end_key,
            "key_prefix": self._key_prefix,
            "max_generated_key": self.allocator.max_generated_key,
            "fill_complete": self.allocator.exhausted,
            "tracker": self.tracker.get_stats(),
            "verification": self.reporter.get_stats(),
        }
