"""
Tests for provenance.hashing.hasher — SHA-256 event digests.
"""

import dataclasses
import hashlib
import string
from datetime import datetime, timedelta, timezone

import pytest

from provenance.errors import EncodingError
from provenance.hashing import (
    GENESIS_PREV_HASH,
    canonical_encode,
    compute_event_hash,
    stamp_hash,
)
from provenance.models import Actor, ActorRole, Command, Event, EventType, Result, Target


NOW = datetime(2026, 2, 3, 12, 0, 0, tzinfo=timezone.utc)


def _build_event(**overrides) -> Event:
    fields = dict(
        event_id="0" * 31 + "2",
        trail_id="0" * 31 + "1",
        event_type=EventType.APPROVED,
        at=NOW,
        actor=Actor("u-2", name="Bob", role=ActorRole.APPROVER),
        targets=(Target("network_device", "sw-12"),),
        correlation_id="req-abc-123",
        prev_hash="c" * 64,
    )
    fields.update(overrides)
    return Event(**fields)


class TestComputeEventHash:
    def test_sha256_hex_of_canonical_bytes(self):
        event = _build_event()
        expected = hashlib.sha256(canonical_encode(event)).hexdigest()
        assert compute_event_hash(event) == expected

    def test_lowercase_hex_64(self):
        digest = compute_event_hash(_build_event())
        assert len(digest) == 64
        assert set(digest) <= set(string.hexdigits.lower())

    def test_deterministic(self):
        assert compute_event_hash(_build_event()) == compute_event_hash(_build_event())

    def test_own_hash_field_ignored(self):
        assert compute_event_hash(_build_event(hash="")) == compute_event_hash(
            _build_event(hash="9" * 64)
        )

    @pytest.mark.parametrize(
        "override",
        [
            {"event_id": "f" * 32},
            {"trail_id": "f" * 32},
            {"event_type": EventType.FAILED},
            {"at": NOW + timedelta(microseconds=1)},
            {"actor": Actor("u-3", name="Bob", role=ActorRole.APPROVER)},
            {"targets": (Target("network_device", "sw-13"),)},
            {"commands": (Command("cli", "reload"),)},
            {"result": Result(status="SUCCESS")},
            {"correlation_id": "req-abc-124"},
            {"prev_hash": GENESIS_PREV_HASH},
        ],
    )
    def test_every_hashed_field_changes_digest(self, override):
        assert compute_event_hash(_build_event(**override)) != compute_event_hash(
            _build_event()
        )

    def test_encoding_failure_propagates(self):
        with pytest.raises(EncodingError):
            compute_event_hash(_build_event(at=datetime(2026, 2, 3, 12, 0)))


class TestStampHash:
    def test_returns_copy_with_hash(self):
        event = _build_event()
        stamped = stamp_hash(event)
        assert event.hash == ""
        assert stamped.hash == compute_event_hash(event)
        assert dataclasses.replace(stamped, hash="") == event

    def test_restamping_is_stable(self):
        stamped = stamp_hash(_build_event())
        assert stamp_hash(stamped).hash == stamped.hash
