"""
Provenance — Storage Port
===========================
The plug-in point for durable, ordered, per-trail event storage.
The chain service and verifier never depend on a concrete backend.

Contract (every implementation MUST honour):
- create_trail:  ConflictError if the trail id exists
- append_event:  NotFoundError if the trail is unknown;
                 ChainConflictError unless event.prev_hash equals the
                 current tip hash ("" for an empty trail), checked
                 atomically with the append
- latest_event:  the last appended event, None for an empty trail,
                 NotFoundError if the trail is unknown
- get_trail:     the trail and all events in append order, or NotFoundError
- query_events:  matches newest-first by timestamp, truncated to
                 query.limit only AFTER every filter is applied
- lock_trail:    exclusive per-trail critical section; the chain service
                 holds it across read-latest + append. NotFoundError if
                 the trail is unknown

The tip check makes a forked chain impossible even for a writer that
skips lock_trail; the lock turns the would-be conflict into a wait.
"""

from __future__ import annotations

from typing import ContextManager, Optional, Protocol, Sequence, Tuple

from provenance.models import Event, Query, Trail


class TrailStore(Protocol):
    def create_trail(self, trail: Trail) -> None:
        ...  # pragma: no cover

    def append_event(self, event: Event) -> None:
        ...  # pragma: no cover

    def latest_event(self, trail_id: str) -> Optional[Event]:
        ...  # pragma: no cover

    def get_trail(self, trail_id: str) -> Tuple[Trail, Tuple[Event, ...]]:
        ...  # pragma: no cover

    def query_events(self, query: Query) -> Sequence[Event]:
        ...  # pragma: no cover

    def lock_trail(self, trail_id: str) -> ContextManager[None]:
        ...  # pragma: no cover
