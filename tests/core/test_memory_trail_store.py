"""
Tests for provenance.store.memory — reference Storage Port contract.
"""

from datetime import datetime, timedelta, timezone

import pytest

from provenance.errors import (
    ChainConflictError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from provenance.hashing import stamp_hash
from provenance.models import Actor, Event, EventType, Query, Target, Trail
from provenance.store import InMemoryTrailStore


T0 = datetime(2026, 2, 3, 12, 0, tzinfo=timezone.utc)

SWITCH = Target("network_device", "sw-12")
ROUTER = Target("network_device", "rt-01")


def _build_trail(trail_id: str = "t1") -> Trail:
    return Trail(trail_id=trail_id, created_at=T0, title="Update NTP")


def _append(store, trail_id, event_type, *, minutes=0, targets=(SWITCH,)) -> Event:
    latest = store.latest_event(trail_id)
    event = stamp_hash(
        Event(
            event_id=f"{trail_id}-{event_type.value}-{minutes}",
            trail_id=trail_id,
            event_type=event_type,
            at=T0 + timedelta(minutes=minutes),
            actor=Actor("u-1"),
            targets=targets,
            prev_hash=latest.hash if latest is not None else "",
        )
    )
    store.append_event(event)
    return event


# ══════════════════════════════════════════════════════════════
# WRITES
# ══════════════════════════════════════════════════════════════

class TestCreateTrail:
    def test_create_and_get(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        trail, events = store.get_trail("t1")
        assert trail.title == "Update NTP"
        assert events == ()
        assert store.trail_count == 1

    def test_duplicate_conflicts(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        with pytest.raises(ConflictError):
            store.create_trail(_build_trail())


class TestAppendEvent:
    def test_appends_in_order(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        first = _append(store, "t1", EventType.REQUESTED)
        second = _append(store, "t1", EventType.APPROVED, minutes=1)
        _, events = store.get_trail("t1")
        assert events == (first, second)
        assert second.prev_hash == first.hash

    def test_unknown_trail(self):
        store = InMemoryTrailStore()
        event = Event("e1", "missing", EventType.REQUESTED, T0, Actor("u-1"))
        with pytest.raises(NotFoundError):
            store.append_event(event)

    def test_stale_prev_hash_refused(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        first = _append(store, "t1", EventType.REQUESTED)
        _append(store, "t1", EventType.APPROVED, minutes=1)

        stale = stamp_hash(
            Event("e-stale", "t1", EventType.APPROVED, T0, Actor("u-2"), prev_hash=first.hash)
        )
        with pytest.raises(ChainConflictError) as exc_info:
            store.append_event(stale)
        assert exc_info.value.expected_prev_hash == first.hash
        assert len(store.get_trail("t1")[1]) == 2

    def test_first_event_must_link_to_genesis(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        rogue = Event("e1", "t1", EventType.REQUESTED, T0, Actor("u-1"), prev_hash="a" * 64)
        with pytest.raises(ChainConflictError):
            store.append_event(rogue)

    def test_chain_conflict_is_conflict(self):
        assert issubclass(ChainConflictError, ConflictError)


class TestLockTrail:
    def test_reentrant(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        with store.lock_trail("t1"):
            with store.lock_trail("t1"):
                _append(store, "t1", EventType.REQUESTED)
        assert len(store.get_trail("t1")[1]) == 1

    def test_unknown_trail_not_found(self):
        store = InMemoryTrailStore()
        with pytest.raises(NotFoundError):
            with store.lock_trail("missing"):
                pass


class TestPersistedEventsReadOnly:
    def _build_store(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        store.append_event(
            stamp_hash(
                Event(
                    event_id="e1",
                    trail_id="t1",
                    event_type=EventType.REQUESTED,
                    at=T0,
                    actor=Actor("u-1", meta={"team": "net"}),
                    targets=(Target("network_device", "sw-12", {"site": "dc1"}),),
                )
            )
        )
        return store

    def test_read_maps_cannot_be_assigned(self):
        store = self._build_store()
        _, (event,) = store.get_trail("t1")
        with pytest.raises(TypeError):
            event.actor.meta["team"] = "evil"
        with pytest.raises(TypeError):
            store.latest_event("t1").targets[0].labels["site"] = "dc2"

    def test_history_unchanged_after_read_attempts(self):
        store = self._build_store()
        _, (event,) = store.get_trail("t1")
        with pytest.raises(TypeError):
            event.actor.meta["team"] = "evil"
        _, (reread,) = store.get_trail("t1")
        assert reread.actor.meta == {"team": "net"}
        assert reread.hash == stamp_hash(reread).hash


# ══════════════════════════════════════════════════════════════
# READS
# ══════════════════════════════════════════════════════════════

class TestLatestEvent:
    def test_empty_trail_returns_none(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        assert store.latest_event("t1") is None

    def test_unknown_trail_not_found(self):
        with pytest.raises(NotFoundError):
            InMemoryTrailStore().latest_event("missing")

    def test_returns_last_appended(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        _append(store, "t1", EventType.REQUESTED)
        last = _append(store, "t1", EventType.APPROVED, minutes=1)
        assert store.latest_event("t1") == last


class TestGetTrail:
    def test_unknown_trail_not_found(self):
        with pytest.raises(NotFoundError):
            InMemoryTrailStore().get_trail("missing")


class TestQueryEvents:
    def _build_store(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail("t1"))
        store.create_trail(_build_trail("t2"))
        _append(store, "t1", EventType.REQUESTED, minutes=0)
        _append(store, "t1", EventType.APPROVED, minutes=10)
        _append(store, "t2", EventType.REQUESTED, minutes=20, targets=(ROUTER,))
        _append(store, "t1", EventType.EXECUTED, minutes=30)
        _append(store, "t2", EventType.APPROVED, minutes=40, targets=(ROUTER,))
        return store

    def test_newest_first(self):
        events = self._build_store().query_events(Query())
        assert [e.at for e in events] == sorted((e.at for e in events), reverse=True)
        assert len(events) == 5

    def test_target_filter(self):
        events = self._build_store().query_events(
            Query(target_type="network_device", target_id="sw-12")
        )
        assert [e.event_type for e in events] == [
            EventType.EXECUTED,
            EventType.APPROVED,
            EventType.REQUESTED,
        ]

    def test_limit_applied_after_target_filter(self):
        events = self._build_store().query_events(
            Query(target_type="network_device", target_id="sw-12", limit=2)
        )
        assert [e.at for e in events] == [
            T0 + timedelta(minutes=30),
            T0 + timedelta(minutes=10),
        ]

    def test_half_open_time_range(self):
        events = self._build_store().query_events(
            Query(from_=T0 + timedelta(minutes=10), to=T0 + timedelta(minutes=30))
        )
        assert [e.at for e in events] == [
            T0 + timedelta(minutes=20),
            T0 + timedelta(minutes=10),
        ]

    def test_event_type_filter(self):
        events = self._build_store().query_events(
            Query(event_types=frozenset({EventType.APPROVED}))
        )
        assert {e.trail_id for e in events} == {"t1", "t2"}
        assert all(e.event_type is EventType.APPROVED for e in events)

    def test_partial_target_filter_ignored(self):
        events = self._build_store().query_events(Query(target_type="network_device"))
        assert len(events) == 5

    def test_equal_timestamps_later_append_first(self):
        store = InMemoryTrailStore()
        store.create_trail(_build_trail())
        first = _append(store, "t1", EventType.REQUESTED, minutes=5)
        second = _append(store, "t1", EventType.APPROVED, minutes=5)
        assert store.query_events(Query()) == [second, first]

    def test_no_match_is_empty(self):
        events = self._build_store().query_events(
            Query(target_type="server", target_id="db-1")
        )
        assert events == []


class TestQueryValidation:
    @pytest.mark.parametrize("limit", [0, -1, True, 2.5])
    def test_bad_limit(self, limit):
        with pytest.raises(ValidationError):
            Query(limit=limit)

    def test_naive_bound(self):
        with pytest.raises(ValidationError, match="from_"):
            Query(from_=datetime(2026, 2, 3))
