import pytest
from prometheus_client import CollectorRegistry

from keyload.generator import SimpleLoadGenerator
from keyload.keys import MismatchReporter
from keyload.tracker import CompletionTracker


@pytest.fixture
def registry():
    # Private registry so metric values do not leak between tests
    return CollectorRegistry()


@pytest.fixture
def tracker(registry):
    tracker = CompletionTracker(registry=registry)
    tracker.start()
    try:
        yield tracker
    finally:
        tracker.stop()
        tracker.join(timeout=1.0)


@pytest.fixture
def reporter(registry):
    return MismatchReporter(registry=registry)


@pytest.fixture
def generator(registry, reporter):
    gen = SimpleLoadGenerator(
        0, 5, key_prefix="p-", reporter=reporter, registry=registry
    )
    try:
        yield gen
    finally:
        gen.stop(timeout=1.0)
