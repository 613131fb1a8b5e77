"""config.py - Load generator configuration.

All configuration is immutable; derive variants with `with_overrides`.
Values can be loaded from KEYLOAD_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional
from uuid import uuid4

from .constants import (
    DEFAULT_MAX_READ_ATTEMPTS,
    DEFAULT_MISMATCH_HISTORY,
    ENV_PREFIX,
    TRACKER_THREAD_NAME,
)
from .exceptions import ConfigurationError, InvalidKeyRangeError

# One id per process so concurrent load-test instances do not collide
_RUN_UUID = str(uuid4())


def default_key_prefix() -> str:
    """Process-wide run identifier used when no key prefix is supplied."""
    return _RUN_UUID


@dataclass(frozen=True)
class LoadGeneratorConfig:
    """Configuration for a SimpleLoadGenerator.

    start_key is validated and reported but does not offset allocation:
    fresh ids always begin at 0.
    """

    start_key: int = 0
    end_key: int = 1_000_000
    key_prefix: Optional[str] = None
    max_read_attempts: int = DEFAULT_MAX_READ_ATTEMPTS
    seed: Optional[int] = None
    tracker_thread_name: str = TRACKER_THREAD_NAME
    mismatch_history: int = DEFAULT_MISMATCH_HISTORY

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.start_key < 0 or self.end_key < 1 or self.start_key >= self.end_key:
            raise InvalidKeyRangeError(self.start_key, self.end_key)
        if self.max_read_attempts < 1:
            raise ConfigurationError("max_read_attempts", "must be at least 1")
        if self.mismatch_history < 0:
            raise ConfigurationError("mismatch_history", "must not be negative")

    def with_overrides(self, **changes) -> "LoadGeneratorConfig":
        """Return a copy with the given fields replaced (re-validated)."""
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "LoadGeneratorConfig":
        """Build a config from KEYLOAD_* variables, defaults for the rest."""
        env = os.environ if environ is None else environ
        kwargs = {}
        for name in ("start_key", "end_key", "max_read_attempts", "seed"):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                kwargs[name] = int(raw)
            except ValueError:
                raise ConfigurationError(name, f"expected an integer, got {raw!r}")
        prefix = env.get(ENV_PREFIX + "KEY_PREFIX")
        if prefix:
            kwargs["key_prefix"] = prefix
        return cls(**kwargs)

    def resolved_prefix(self) -> str:
        return self.key_prefix if self.key_prefix is not None else default_key_prefix()
