"""Tests for read key selection below the watermark."""

import pytest

from keyload.keys import Key
from keyload.selector import ReadKeySelector

WAIT = 2.0


def _factory(key_id):
    return Key(key_id, "r-")


def _settle(tracker, successes=(), failures=()):
    for key_id in successes:
        tracker.record_success(key_id)
    for key_id in failures:
        tracker.record_failure(key_id)
    top = max(list(successes) + list(failures))
    assert tracker.wait_for_watermark(top, timeout=WAIT)


def test_nothing_confirmed_returns_none(tracker, registry):
    selector = ReadKeySelector(tracker, _factory, registry=registry)
    assert selector.next_key() is None


def test_single_confirmed_key_is_returned(tracker, registry):
    selector = ReadKeySelector(tracker, _factory, registry=registry)
    _settle(tracker, successes=[0])
    for _ in range(10):
        assert selector.next_key() == Key(0, "r-")


def test_failed_zero_is_never_returned(tracker, registry):
    selector = ReadKeySelector(tracker, _factory, registry=registry)
    _settle(tracker, failures=[0])
    assert selector.next_key() is None


def test_never_returns_failed_key(tracker, registry):
    failed = {k for k in range(200) if k % 3 == 0}
    _settle(
        tracker,
        successes=[k for k in range(200) if k not in failed],
        failures=sorted(failed),
    )
    selector = ReadKeySelector(tracker, _factory, seed=7, registry=registry)
    picked = {selector.next_key().as_number() for _ in range(500)}
    assert picked.isdisjoint(failed)
    assert all(0 <= k < 199 for k in picked)
    # uniform over 133 candidates; 500 draws should hit plenty of them
    assert len(picked) > 50


def test_dense_failures_fall_back_to_scan(tracker, registry):
    _settle(tracker, successes=[10], failures=range(10))
    selector = ReadKeySelector(tracker, _factory, max_attempts=4, registry=registry)
    assert selector.next_key().as_number() == 10
    assert registry.get_sample_value("keyload_read_fallback_scans_total") == 1.0


def test_all_covered_keys_failed_returns_none(tracker, registry):
    _settle(tracker, failures=range(6))
    selector = ReadKeySelector(tracker, _factory, max_attempts=3, registry=registry)
    assert selector.next_key() is None


def test_seeded_selectors_repeat(tracker, registry):
    _settle(tracker, successes=range(1000))
    a = ReadKeySelector(tracker, _factory, seed=42, registry=registry)
    b = ReadKeySelector(tracker, _factory, seed=42, registry=registry)
    assert [a.next_key().id for _ in range(20)] == [b.next_key().id for _ in range(20)]


def test_max_attempts_must_be_positive(tracker):
    with pytest.raises(AssertionError):
        ReadKeySelector(tracker, _factory, max_attempts=0)
