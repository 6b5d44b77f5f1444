"""
Concurrent appends to one trail.

Writers racing on the same trail must never fork the chain: either the
per-trail lock serializes them, or the store's tip check refuses the
stale writer with ChainConflictError.
"""

import threading
from contextlib import contextmanager

from provenance import (
    Actor,
    ChainConflictError,
    ChainService,
    InMemoryTrailStore,
    RequestInput,
)


WORKERS = 8
APPENDS_PER_WORKER = 10


class _UnlockedStore(InMemoryTrailStore):
    """Store whose lock_trail is a no-op, exposing the tip-check path."""

    @contextmanager
    def lock_trail(self, trail_id):
        yield


def _run_workers(service, trail_id):
    barrier = threading.Barrier(WORKERS)
    conflicts = []
    failures = []
    lock = threading.Lock()

    def worker(n):
        barrier.wait()
        for _ in range(APPENDS_PER_WORKER):
            try:
                service.approve(trail_id, Actor(f"u-{n}"))
            except ChainConflictError as exc:
                with lock:
                    conflicts.append(exc)
            except Exception as exc:
                with lock:
                    failures.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(WORKERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return conflicts, failures


class TestConcurrentAppends:
    def test_locked_writers_all_succeed_on_one_chain(self):
        store = InMemoryTrailStore()
        service = ChainService(store)
        trail_id = service.request_change(RequestInput("Update NTP", Actor("u-0")))

        conflicts, failures = _run_workers(service, trail_id)

        assert failures == []
        assert conflicts == []
        _, events = store.get_trail(trail_id)
        assert len(events) == 1 + WORKERS * APPENDS_PER_WORKER
        assert len({e.prev_hash for e in events}) == len(events)
        assert service.verify_trail(trail_id).events_verified == len(events)

    def test_unlocked_writers_never_fork(self):
        store = _UnlockedStore()
        service = ChainService(store)
        trail_id = service.request_change(RequestInput("Update NTP", Actor("u-0")))

        conflicts, failures = _run_workers(service, trail_id)

        assert failures == []
        _, events = store.get_trail(trail_id)
        assert len(events) + len(conflicts) == 1 + WORKERS * APPENDS_PER_WORKER
        assert len({e.prev_hash for e in events}) == len(events)
        assert service.verify_trail(trail_id).events_verified == len(events)
