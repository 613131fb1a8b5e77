"""constants.py - Literals and defaults shared across keyload."""

from __future__ import annotations

# Expected payload for a key is VALUE_TAG + decimal id
VALUE_TAG = "val:"

# Sentinel for "nothing generated / nothing confirmed yet"
NO_KEY = -1

TRACKER_THREAD_NAME = "Written Keys Tracker"

# Random draws before the read selector falls back to a linear scan
DEFAULT_MAX_READ_ATTEMPTS = 64

# Mismatch records kept in memory per reporter
DEFAULT_MISMATCH_HISTORY = 1000

ENV_PREFIX = "KEYLOAD_"
