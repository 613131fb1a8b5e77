"""keyload - key allocation and completion tracking for load generators."""

from __future__ import annotations

from .config import LoadGeneratorConfig, default_key_prefix
from .exceptions import (
    ConfigurationError,
    InvalidKeyRangeError,
    KeyLoadError,
    TrackerStoppedError,
)
from .generator import SimpleLoadGenerator
from .keys import Key, MismatchReporter, ValueMismatch

__all__ = [
    "ConfigurationError",
    "InvalidKeyRangeError",
    "Key",
    "KeyLoadError",
    "LoadGeneratorConfig",
    "MismatchReporter",
    "SimpleLoadGenerator",
    "TrackerStoppedError",
    "ValueMismatch",
    "default_key_prefix",
]
