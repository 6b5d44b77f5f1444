"""
Provenance Store — Django Trail Store
=======================================
Storage Port implementation over the Django ORM.

Write safety:
- lock_trail() opens a transaction and takes a row lock on the trail
  (select_for_update), serializing read-latest + append per trail
- append_event() re-checks the tip inside its own transaction
- the (trail, prev_hash) unique constraint is the final guard; its
  IntegrityError becomes ChainConflictError

Query rule: time and type filters run in SQL, the target filter runs in
Python over JSON content, and the limit is applied only after both.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from django.db import IntegrityError, transaction

from provenance.django_store.models import EventRecord, TrailRecord
from provenance.errors import ChainConflictError, ConflictError, NotFoundError
from provenance.hashing.hasher import GENESIS_PREV_HASH
from provenance.models import (
    Actor,
    Command,
    Event,
    EventType,
    Evidence,
    Query,
    Result,
    Target,
    Trail,
)

logger = logging.getLogger("provenance.store")

CHAIN_CONSTRAINT = "uq_prov_evt_trail_prev_hash"

QUERY_CHUNK_SIZE = 500


# ══════════════════════════════════════════════════════════════
# ROW MAPPING
# ══════════════════════════════════════════════════════════════

def _trail_to_row(trail: Trail) -> dict:
    return {
        "trail_id": trail.trail_id,
        "created_at": trail.created_at,
        "title": trail.title,
        "description": trail.description,
        "correlation_id": trail.correlation_id,
        "targets": [t.to_dict() for t in trail.targets],
    }


def _row_to_trail(row: TrailRecord) -> Trail:
    return Trail(
        trail_id=row.trail_id,
        created_at=row.created_at,
        title=row.title,
        description=row.description,
        correlation_id=row.correlation_id,
        targets=tuple(Target.from_dict(t) for t in row.targets or ()),
    )


def _event_to_row(event: Event) -> dict:
    return {
        "event_id": event.event_id,
        "trail_id": event.trail_id,
        "event_type": event.event_type.value,
        "at": event.at,
        "actor": event.actor.to_dict(),
        "targets": [t.to_dict() for t in event.targets],
        "commands": [c.to_dict() for c in event.commands],
        "result": event.result.to_dict() if event.result is not None else None,
        "evidence": [e.to_dict() for e in event.evidence],
        "correlation_id": event.correlation_id,
        "prev_hash": event.prev_hash,
        "event_hash": event.hash,
    }


def _row_to_event(row: EventRecord) -> Event:
    return Event(
        event_id=row.event_id,
        trail_id=row.trail_id,
        event_type=EventType(row.event_type),
        at=row.at,
        actor=Actor.from_dict(row.actor),
        targets=tuple(Target.from_dict(t) for t in row.targets or ()),
        commands=tuple(Command.from_dict(c) for c in row.commands or ()),
        result=Result.from_dict(row.result) if row.result is not None else None,
        evidence=tuple(Evidence.from_dict(e) for e in row.evidence or ()),
        correlation_id=row.correlation_id,
        prev_hash=row.prev_hash,
        hash=row.event_hash,
    )


def _is_chain_uniqueness_conflict(exc: IntegrityError) -> bool:
    cause = getattr(exc, "__cause__", None)
    diag = getattr(cause, "diag", None)
    if getattr(diag, "constraint_name", None) == CHAIN_CONSTRAINT:
        return True
    message = str(exc)
    # SQLite reports columns, not the constraint name.
    return CHAIN_CONSTRAINT in message or "provenance_events.prev_hash" in message


# ══════════════════════════════════════════════════════════════
# STORE
# ══════════════════════════════════════════════════════════════

class DjangoTrailStore:
    """Relational trail store. `using` selects the database alias."""

    def __init__(self, using: str = "default") -> None:
        self._using = using

    def _trails(self):
        return TrailRecord.objects.using(self._using)

    def _events(self):
        return EventRecord.objects.using(self._using)

    def _require_trail(self, trail_id: str, *, lock: bool = False) -> None:
        query = self._trails().filter(pk=trail_id)
        if lock:
            query = query.select_for_update()
        if query.first() is None:
            raise NotFoundError(trail_id)

    def _tip_hash(self, trail_id: str) -> str:
        tip = (
            self._events()
            .filter(trail_id=trail_id)
            .order_by("-seq")
            .values_list("event_hash", flat=True)
            .first()
        )
        return tip if tip is not None else GENESIS_PREV_HASH

    # ── Writes ────────────────────────────────────────────────

    def create_trail(self, trail: Trail) -> None:
        try:
            with transaction.atomic(using=self._using):
                if self._trails().filter(pk=trail.trail_id).exists():
                    raise ConflictError(trail.trail_id)
                self._trails().create(**_trail_to_row(trail))
        except IntegrityError as exc:
            raise ConflictError(trail.trail_id) from exc
        logger.debug(f"Trail created: {trail.trail_id}")

    def append_event(self, event: Event) -> None:
        with transaction.atomic(using=self._using):
            self._require_trail(event.trail_id, lock=True)

            tip_hash = self._tip_hash(event.trail_id)
            if event.prev_hash != tip_hash:
                raise ChainConflictError(
                    event.trail_id,
                    expected_prev_hash=event.prev_hash,
                    actual_tip_hash=tip_hash,
                )

            try:
                with transaction.atomic(using=self._using):
                    self._events().create(**_event_to_row(event))
            except IntegrityError as exc:
                if _is_chain_uniqueness_conflict(exc):
                    raise ChainConflictError(
                        event.trail_id,
                        expected_prev_hash=event.prev_hash,
                        actual_tip_hash=self._tip_hash(event.trail_id),
                    ) from exc
                raise
        logger.debug(
            f"Event appended: trail={event.trail_id} event={event.event_id}"
        )

    @contextmanager
    def lock_trail(self, trail_id: str) -> Iterator[None]:
        with transaction.atomic(using=self._using):
            self._require_trail(trail_id, lock=True)
            yield

    # ── Reads ─────────────────────────────────────────────────

    def latest_event(self, trail_id: str) -> Optional[Event]:
        self._require_trail(trail_id)
        row = self._events().filter(trail_id=trail_id).order_by("-seq").first()
        if row is None:
            return None
        return _row_to_event(row)

    def get_trail(self, trail_id: str) -> Tuple[Trail, Tuple[Event, ...]]:
        row = self._trails().filter(pk=trail_id).first()
        if row is None:
            raise NotFoundError(trail_id)
        events = self._events().filter(trail_id=trail_id).order_by("seq")
        return _row_to_trail(row), tuple(_row_to_event(e) for e in events)

    def query_events(self, query: Query) -> List[Event]:
        rows = self._events()
        if query.from_ is not None:
            rows = rows.filter(at__gte=query.from_)
        if query.to is not None:
            rows = rows.filter(at__lt=query.to)
        if query.event_types:
            rows = rows.filter(
                event_type__in=sorted(t.value for t in query.event_types)
            )
        rows = rows.order_by("-at", "-seq")

        out: List[Event] = []
        for row in rows.iterator(chunk_size=QUERY_CHUNK_SIZE):
            event = _row_to_event(row)
            if not query.matches(event):
                continue
            out.append(event)
            if query.limit is not None and len(out) >= query.limit:
                break
        return out
