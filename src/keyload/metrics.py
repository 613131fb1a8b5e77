"""metrics.py - Prometheus metrics for completion tracking and verification"""

from __future__ import annotations

import threading
import weakref
from typing import Any, Dict

from prometheus_client import Counter, Gauge


def create_tracker_metrics(registry=None) -> Dict[str, Any]:
    """Create the tracker/verification metric set on `registry`.

    None means the default global registry; that set is created once at
    import time below, so pass a private CollectorRegistry when a separate
    set is needed (tests, several generators in one process).
    """
    writes_recorded = Counter(
        "keyload_writes_recorded_total",
        "Write completions recorded by workers",
        ["outcome"],
        registry=registry,
    )
    watermark = Gauge(
        "keyload_max_written_key",
        "Largest id with every id at or below it confirmed written or failed",
        registry=registry,
    )
    pending_keys = Gauge(
        "keyload_pending_written_keys",
        "Confirmed writes not yet folded into the watermark",
        registry=registry,
    )
    failed_keys = Gauge(
        "keyload_failed_keys",
        "Ids confirmed as failed writes",
        registry=registry,
    )
    max_generated_key = Gauge(
        "keyload_max_generated_key",
        "Largest fresh id handed out for writing",
        registry=registry,
    )
    value_mismatches = Counter(
        "keyload_value_mismatches_total",
        "Read payloads that did not match the expected value",
        registry=registry,
    )
    read_fallback_scans = Counter(
        "keyload_read_fallback_scans_total",
        "Read selections that exhausted random draws and scanned linearly",
        registry=registry,
    )
    return {
        "writes_recorded": writes_recorded,
        "watermark": watermark,
        "pending_keys": pending_keys,
        "failed_keys": failed_keys,
        "max_generated_key": max_generated_key,
        "value_mismatches": value_mismatches,
        "read_fallback_scans": read_fallback_scans,
    }


# Default global metrics (for production)
_default_metrics = create_tracker_metrics()

# One metric set per private registry; registering twice raises
_registry_metrics: "weakref.WeakKeyDictionary[Any, Dict[str, Any]]" = (
    weakref.WeakKeyDictionary()
)
_registry_lock = threading.Lock()


def get_metrics(registry=None) -> Dict[str, Any]:
    """Default metric set, or the set bound to `registry` (created once)."""
    if registry is None:
        return _default_metrics
    with _registry_lock:
        metrics = _registry_metrics.get(registry)
        if metrics is None:
            metrics = create_tracker_metrics(registry=registry)
            _registry_metrics[registry] = metrics
        return metrics
