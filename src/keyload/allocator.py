"""allocator.py - Fresh key id allocation for the fill phase"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from .constants import NO_KEY
from .keys import Key


class AtomicCounter:
    """
    AtomicCounter: fetch-and-increment integer safe across threads.

    The critical section is a single add, so it stays correct on
    free-threaded builds where the GIL no longer serialises callers.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, initial: int = NO_KEY):
        self._value = initial
        self._lock = threading.Lock()

    def get(self) -> int:
        return self._value

    def increment_and_get(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def increment_if_below(self, limit: int) -> Optional[int]:
        """Increment and return the new value, or None if already at `limit`."""
        with self._lock:
            if self._value >= limit:
                return None
            self._value += 1
            return self._value


class KeyAllocator:
    """
    KeyAllocator: hands out ids 0..end_key-1 exactly once each.

    Once every id has been handed out, next_key() delegates to `fallback`
    (the read selector) so writes continue as updates to confirmed keys.
    """

    def __init__(
        self,
        end_key: int,
        key_factory: Callable[[int], Key],
        fallback: Callable[[], Optional[Key]],
    ):
        assert isinstance(end_key, int), "end_key must be int"
        self.end_key = end_key
        self._key_factory = key_factory
        self._fallback = fallback
        self._cursor = AtomicCounter(NO_KEY)

    @property
    def max_generated_key(self) -> int:
        return self._cursor.get()

    @property
    def exhausted(self) -> bool:
        return self._cursor.get() >= self.end_key - 1

    def next_key(self) -> Optional[Key]:
        key_id = self._cursor.increment_if_below(self.end_key - 1)
        if key_id is None:
            return self._fallback()
        return self._key_factory(key_id)
