"""
Provenance — Transition Policies
==================================
Hook consulted before every append.

The default is permissive: any event type may follow any other, and
a trail behaves as a generic append-only log. A stricter workflow is
layered on by passing a different policy to the chain service; the
hashing and storage paths do not change.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from provenance.errors import TransitionError
from provenance.models import Event, EventType


class TransitionPolicy(Protocol):
    """Raise TransitionError to refuse an append."""

    def check(
        self,
        trail_id: str,
        latest: Optional[Event],
        next_type: EventType,
    ) -> None:
        ...  # pragma: no cover


class PermissiveTransitions:
    """Allows every transition."""

    def check(
        self,
        trail_id: str,
        latest: Optional[Event],
        next_type: EventType,
    ) -> None:
        return None


DEFAULT_WORKFLOW: Mapping[Optional[EventType], frozenset] = {
    None: frozenset({EventType.REQUESTED}),
    EventType.REQUESTED: frozenset({EventType.APPROVED, EventType.FAILED}),
    EventType.APPROVED: frozenset({EventType.EXECUTED, EventType.FAILED}),
    EventType.EXECUTED: frozenset({EventType.VERIFIED, EventType.FAILED}),
    EventType.VERIFIED: frozenset(),
    EventType.FAILED: frozenset(),
}


class StrictWorkflowTransitions:
    """
    Allowed-next table keyed by the latest event type (None = empty trail).

    Types missing from the table allow nothing.
    """

    def __init__(
        self,
        table: Mapping[Optional[EventType], frozenset] = DEFAULT_WORKFLOW,
    ) -> None:
        self._table = {state: frozenset(nxt) for state, nxt in table.items()}

    def allowed_after(self, current: Optional[EventType]) -> frozenset:
        return self._table.get(current, frozenset())

    def check(
        self,
        trail_id: str,
        latest: Optional[Event],
        next_type: EventType,
    ) -> None:
        current = latest.event_type if latest is not None else None
        if next_type not in self.allowed_after(current):
            raise TransitionError(trail_id, current, next_type)
