"""keys.py - Key value type, expected payloads and value verification"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .constants import DEFAULT_MISMATCH_HISTORY, VALUE_TAG
from .metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValueMismatch:
    """A read payload that did not match what was written for the key."""

    key_id: int
    key_string: str
    expected: str
    observed: str


class MismatchReporter:
    """
    MismatchReporter: Collects data-integrity alerts raised by Key.verify().

    - Logs every mismatch at CRITICAL level (alerting only, never aborts).
    - Counts mismatches and keeps a bounded history for inspection.
    - Optionally forwards each record to a user callback.
    """

    def __init__(
        self,
        callback: Optional[Callable[[ValueMismatch], Any]] = None,
        history: int = DEFAULT_MISMATCH_HISTORY,
        registry=None,
    ):
        assert isinstance(history, int), "history must be int"
        self.callback = callback
        self._history: deque = deque(maxlen=history)
        self._count = 0
        self._lock = threading.Lock()
        self._counter = get_metrics(registry)["value_mismatches"]

    def report(self, mismatch: ValueMismatch) -> None:
        logger.critical(
            f"Value mismatch for key: {mismatch.key_id}, "
            f"expected: {mismatch.expected}, got: {mismatch.observed}"
        )
        with self._lock:
            self._count += 1
            self._history.append(mismatch)
        self._counter.inc()
        if self.callback is not None:
            try:
                self.callback(mismatch)
            except Exception as e:
                logger.error(f"[MismatchReporter] Callback error: {e}")

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def mismatches(self) -> List[ValueMismatch]:
        with self._lock:
            return list(self._history)

    def clear(self) -> None:
        with self._lock:
            self._count = 0
            self._history.clear()

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {"mismatches": self._count, "retained": len(self._history)}


_default_reporter = MismatchReporter()


def default_reporter() -> MismatchReporter:
    return _default_reporter


@dataclass(frozen=True)
class Key:
    """
    Key: an integer id namespaced by a run prefix.

    - String form is prefix + decimal id; payload is "val:" + decimal id.
    - Immutable and hashable on (id, prefix).
    - verify() reports mismatches to the attached reporter instead of raising.
    """

    id: int
    prefix: str
    reporter: Optional[MismatchReporter] = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        assert isinstance(self.id, int), "id must be int"
        assert self.id >= 0, "id must not be negative"
        assert isinstance(self.prefix, str), "prefix must be str"

    def as_number(self) -> int:
        return self.id

    def as_string(self) -> str:
        return f"{self.prefix}{self.id}"

    def get_value_str(self) -> str:
        """Payload written for this key and expected back on read."""
        return f"{VALUE_TAG}{self.id}"

    def verify(self, value: str) -> bool:
        """Return True when `value` is this key's payload, else report it."""
        expected = self.get_value_str()
        if value == expected:
            return True
        reporter = self.reporter if self.reporter is not None else _default_reporter
        reporter.report(
            ValueMismatch(
                key_id=self.id,
                key_string=self.as_string(),
                expected=expected,
                observed=value,
            )
        )
        return False

    def __str__(self) -> str:
        return f"Key: {self.id}, value: {self.get_value_str()}"
