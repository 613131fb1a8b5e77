"""exceptions.py - Exception hierarchy for keyload.

Hot-path operations (allocating keys, recording completions, sampling
reads) do not raise under normal use. These exceptions cover:
- Invalid configuration detected at construction time
- Misuse of a tracker after it has been stopped
"""

from __future__ import annotations


class KeyLoadError(Exception):
    """Base exception for all keyload errors."""

    pass


class ConfigurationError(KeyLoadError):
    """Raised when a configuration value is missing or malformed.

    Examples:
        - Non-integer KEYLOAD_END_KEY in the environment
        - max_read_attempts below 1
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid configuration for '{field}': {reason}")


class InvalidKeyRangeError(ConfigurationError):
    """Raised when start_key/end_key do not describe a usable fill range."""

    def __init__(self, start_key: int, end_key: int):
        self.start_key = start_key
        self.end_key = end_key
        super().__init__(
            "end_key",
            f"range [{start_key}, {end_key}) is empty or negative",
        )


class TrackerStoppedError(KeyLoadError):
    """Raised when a completion is recorded on a stopped tracker."""

    def __init__(self, key_id: int):
        self.key_id = key_id
        super().__init__(f"Tracker is stopped, cannot record key {key_id}")
