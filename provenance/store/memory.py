"""
Provenance — In-Memory Trail Store
====================================
Reference Storage Port implementation, used in tests and bootstrap.

Thread-safe:
- one data lock guards every read and write of the maps
- one re-entrant lock per trail backs lock_trail(), so the chain
  service's read-latest + append runs as a single critical section
- append_event re-checks the tip hash under the data lock regardless
"""

from __future__ import annotations

import itertools
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from provenance.errors import (
    ChainConflictError,
    ConflictError,
    NotFoundError,
)
from provenance.hashing.hasher import GENESIS_PREV_HASH
from provenance.models import Event, Query, Trail

logger = logging.getLogger("provenance.store")


class InMemoryTrailStore:
    """
    Append-only trail storage.

    Trails are keyed by trail_id; each keeps its events in append order
    alongside a global sequence number used to break timestamp ties in
    queries (later append sorts first).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._trail_locks: Dict[str, threading.RLock] = {}
        self._trails: Dict[str, Trail] = {}
        self._records: Dict[str, List[Tuple[int, Event]]] = {}
        self._sequence = itertools.count(1)

    # ── Writes ────────────────────────────────────────────────

    def create_trail(self, trail: Trail) -> None:
        with self._lock:
            if trail.trail_id in self._trails:
                raise ConflictError(trail.trail_id)
            self._trails[trail.trail_id] = trail
            self._records[trail.trail_id] = []
        logger.debug(f"Trail created: {trail.trail_id}")

    def append_event(self, event: Event) -> None:
        with self._lock:
            records = self._records.get(event.trail_id)
            if records is None:
                raise NotFoundError(event.trail_id)
            tip_hash = records[-1][1].hash if records else GENESIS_PREV_HASH
            if event.prev_hash != tip_hash:
                raise ChainConflictError(
                    event.trail_id,
                    expected_prev_hash=event.prev_hash,
                    actual_tip_hash=tip_hash,
                )
            records.append((next(self._sequence), event))
        logger.debug(
            f"Event appended: trail={event.trail_id} event={event.event_id}"
        )

    @contextmanager
    def lock_trail(self, trail_id: str) -> Iterator[None]:
        with self._lock:
            if trail_id not in self._trails:
                raise NotFoundError(trail_id)
            trail_lock = self._trail_locks.setdefault(trail_id, threading.RLock())
        with trail_lock:
            yield

    # ── Reads ─────────────────────────────────────────────────

    def latest_event(self, trail_id: str) -> Optional[Event]:
        with self._lock:
            records = self._records.get(trail_id)
            if records is None:
                raise NotFoundError(trail_id)
            if not records:
                return None
            return records[-1][1]

    def get_trail(self, trail_id: str) -> Tuple[Trail, Tuple[Event, ...]]:
        with self._lock:
            trail = self._trails.get(trail_id)
            if trail is None:
                raise NotFoundError(trail_id)
            return trail, tuple(event for _, event in self._records[trail_id])

    def query_events(self, query: Query) -> List[Event]:
        with self._lock:
            matched = [
                (event.at, seq, event)
                for records in self._records.values()
                for seq, event in records
                if query.matches(event)
            ]
        matched.sort(key=lambda item: (item[0], item[1]), reverse=True)
        events = [event for _, _, event in matched]
        if query.limit is not None:
            events = events[: query.limit]
        return events

    # ── Test helpers ──────────────────────────────────────────

    def overwrite_events(self, trail_id: str, events: Sequence[Event]) -> None:
        """
        Replace a trail's persisted history wholesale, bypassing every
        contract check. Simulates direct edits to storage (tamper tests).
        """
        with self._lock:
            if trail_id not in self._trails:
                raise NotFoundError(trail_id)
            self._records[trail_id] = [
                (next(self._sequence), event) for event in events
            ]

    @property
    def trail_count(self) -> int:
        with self._lock:
            return len(self._trails)
