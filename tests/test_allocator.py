"""Tests for fresh id allocation."""

import threading

import pytest

from keyload.allocator import AtomicCounter, KeyAllocator
from keyload.keys import Key


def _factory(key_id):
    return Key(key_id, "a-")


def test_atomic_counter():
    counter = AtomicCounter()
    assert counter.get() == -1
    assert counter.increment_and_get() == 0
    assert counter.increment_if_below(2) == 1
    assert counter.increment_if_below(2) == 2
    assert counter.increment_if_below(2) is None
    assert counter.get() == 2


def test_ids_start_at_zero_and_run_to_end_key():
    allocator = KeyAllocator(5, _factory, fallback=lambda: None)
    ids = [allocator.next_key().as_number() for _ in range(5)]
    assert ids == [0, 1, 2, 3, 4]
    assert allocator.exhausted
    assert allocator.max_generated_key == 4


def test_exhausted_allocator_delegates_to_fallback():
    sentinel = Key(2, "a-")
    calls = []

    def fallback():
        calls.append(1)
        return sentinel

    allocator = KeyAllocator(2, _factory, fallback=fallback)
    assert allocator.next_key().as_number() == 0
    assert allocator.next_key().as_number() == 1
    assert allocator.next_key() is sentinel
    assert allocator.next_key() is sentinel
    assert len(calls) == 2
    assert allocator.max_generated_key == 1


@pytest.mark.parametrize("threads", [2, 4, 8])
def test_concurrent_callers_never_share_an_id(threads):
    end_key = 5000
    allocator = KeyAllocator(end_key, _factory, fallback=lambda: None)
    results = [[] for _ in range(threads)]
    barrier = threading.Barrier(threads)

    def worker(idx):
        barrier.wait()
        while True:
            key = allocator.next_key()
            if key is None:
                return
            results[idx].append(key.as_number())

    workers = [threading.Thread(target=worker, args=(i,)) for i in range(threads)]
    for t in workers:
        t.start()
    for t in workers:
        t.join()

    all_ids = [key_id for ids in results for key_id in ids]
    assert len(all_ids) == end_key
    assert sorted(all_ids) == list(range(end_key))
    assert allocator.max_generated_key == end_key - 1
