"""
Provenance — Chain Service
============================
The single controlled write path for trails and their events.

Append flow (every event type):
    1. Lock the trail                    (storage port critical section)
    2. Read the latest event             (prev_hash := its hash, or "")
    3. Consult the transition policy     (permissive by default)
    4. Build the event, sanitized content only
    5. Hash the canonical encoding       (hash field excluded)
    6. Append                            (storage re-checks the tip)

If ANY step fails → the error surfaces immediately and nothing is
appended. request_change creates the trail before its REQUESTED event,
so a failed first append leaves that trail in place with no events.

This service does NOT:
- Retry on failure
- Swallow errors silently
- Repair or reorder chains
- Depend on a concrete storage backend
"""

from __future__ import annotations

import dataclasses
import logging
import secrets
from contextlib import ExitStack
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence, Tuple, TypeVar

from provenance.clock import Clock, SystemClock
from provenance.errors import (
    ChainConflictError,
    ProvenanceError,
    SanitizerError,
    StorageError,
    ValidationError,
    short_hash,
)
from provenance.hashing.hasher import GENESIS_PREV_HASH, stamp_hash
from provenance.ids import RandomSource, new_id
from provenance.models import (
    Actor,
    ActorRole,
    Command,
    Event,
    EventType,
    Evidence,
    Query,
    RequestInput,
    Result,
    Target,
    Trail,
)
from provenance.sanitizer import NoopSanitizer, Sanitizer
from provenance.store.base import TrailStore
from provenance.transitions import PermissiveTransitions, TransitionPolicy
from provenance.verifier import ChainVerifier, VerificationReport

logger = logging.getLogger("provenance.chain")

NOTE_EVIDENCE_KIND = "note"

T = TypeVar("T")


class ChainService:
    """
    Builds, links, hashes and persists trail events.

    Args:
        store:          Storage Port implementation (required).
        sanitizer:      Pre-hash redaction; identity by default.
        clock:          Timestamp source; system UTC clock by default.
        random_source:  Byte source for ids; secrets.token_bytes by default.
        transitions:    Policy consulted before each append; permissive
                        by default.
    """

    def __init__(
        self,
        store: TrailStore,
        *,
        sanitizer: Optional[Sanitizer] = None,
        clock: Optional[Clock] = None,
        random_source: RandomSource = secrets.token_bytes,
        transitions: Optional[TransitionPolicy] = None,
    ) -> None:
        self._store = store
        self._sanitizer = sanitizer if sanitizer is not None else NoopSanitizer()
        self._clock = clock if clock is not None else SystemClock()
        self._random_source = random_source
        self._transitions = (
            transitions if transitions is not None else PermissiveTransitions()
        )

    # ══════════════════════════════════════════════════════════
    # PORT CALLS (error wrapping)
    # ══════════════════════════════════════════════════════════

    def _call_store(
        self,
        operation: str,
        trail_id: Optional[str],
        fn: Callable[[], T],
    ) -> T:
        try:
            return fn()
        except ProvenanceError:
            raise
        except Exception as exc:
            raise StorageError(operation, trail_id, exc) from exc

    def _sanitize_targets(self, targets: Iterable[Target]) -> Tuple[Target, ...]:
        try:
            return tuple(self._sanitizer.sanitize_targets(tuple(targets)))
        except ProvenanceError:
            raise
        except Exception as exc:
            raise SanitizerError("sanitize_targets", exc) from exc

    def _sanitize_commands(self, commands: Iterable[Command]) -> Tuple[Command, ...]:
        try:
            return tuple(self._sanitizer.sanitize_commands(tuple(commands)))
        except ProvenanceError:
            raise
        except Exception as exc:
            raise SanitizerError("sanitize_commands", exc) from exc

    def _new_id(self) -> str:
        return new_id(self._random_source)

    # ══════════════════════════════════════════════════════════
    # SHARED APPEND PATH
    # ══════════════════════════════════════════════════════════

    def _append(
        self,
        trail_id: str,
        event_type: EventType,
        actor: Actor,
        correlation_id: str,
        *,
        targets: Tuple[Target, ...] = (),
        commands: Tuple[Command, ...] = (),
        result: Optional[Result] = None,
        evidence: Tuple[Evidence, ...] = (),
        at: Optional[datetime] = None,
    ) -> Event:
        _require_text(trail_id, "trail_id")
        _require_text(actor.actor_id, "actor.actor_id")

        with ExitStack() as stack:
            self._call_store(
                "lock_trail",
                trail_id,
                lambda: stack.enter_context(self._store.lock_trail(trail_id)),
            )
            latest = self._call_store(
                "latest_event", trail_id, lambda: self._store.latest_event(trail_id)
            )
            self._transitions.check(trail_id, latest, event_type)

            event = stamp_hash(
                Event(
                    event_id=self._new_id(),
                    trail_id=trail_id,
                    event_type=event_type,
                    at=at if at is not None else self._clock.now_utc(),
                    actor=actor,
                    targets=targets,
                    commands=commands,
                    result=result,
                    evidence=evidence,
                    correlation_id=correlation_id,
                    prev_hash=latest.hash if latest is not None else GENESIS_PREV_HASH,
                )
            )

            try:
                self._call_store(
                    "append_event", trail_id, lambda: self._store.append_event(event)
                )
            except ChainConflictError:
                logger.warning(
                    f"Append rejected as chain conflict: trail={trail_id} "
                    f"type={event_type.value} prev={short_hash(event.prev_hash)}"
                )
                raise

        logger.info(
            f"Event appended: trail={trail_id} event={event.event_id} "
            f"type={event_type.value} hash={short_hash(event.hash)}"
        )
        return event

    # ══════════════════════════════════════════════════════════
    # OPERATIONS
    # ══════════════════════════════════════════════════════════

    def request_change(self, request: RequestInput) -> str:
        """
        Open a trail and append its REQUESTED event.

        Raises ValidationError for an empty title or requester id,
        ConflictError if the generated trail id already exists.
        Returns the new trail id.
        """
        _require_text(request.title, "title")
        _require_text(request.requester.actor_id, "requester.actor_id")

        requester = request.requester
        if requester.role is None:
            requester = dataclasses.replace(requester, role=ActorRole.REQUESTER)

        targets = self._sanitize_targets(request.targets)
        now = self._clock.now_utc()
        trail = Trail(
            trail_id=self._new_id(),
            created_at=now,
            title=request.title,
            description=request.description,
            correlation_id=request.correlation_id,
            targets=targets,
        )
        self._call_store(
            "create_trail", trail.trail_id, lambda: self._store.create_trail(trail)
        )
        logger.info(f"Trail created: {trail.trail_id} title={trail.title!r}")

        self._append(
            trail.trail_id,
            EventType.REQUESTED,
            requester,
            request.correlation_id,
            targets=targets,
            at=now,
        )
        return trail.trail_id

    def approve(
        self,
        trail_id: str,
        approver: Actor,
        correlation_id: str = "",
        note: str = "",
    ) -> Event:
        """Append an APPROVED event; a non-empty note becomes one 'note' evidence."""
        return self._append(
            trail_id,
            EventType.APPROVED,
            dataclasses.replace(approver, role=ActorRole.APPROVER),
            correlation_id,
            evidence=_note_evidence(note),
        )

    def execute(
        self,
        trail_id: str,
        executor: Actor,
        correlation_id: str,
        commands: Sequence[Command],
        result: Result,
    ) -> Event:
        """Append an EXECUTED event. Commands are hashed AFTER sanitizing."""
        return self._append(
            trail_id,
            EventType.EXECUTED,
            dataclasses.replace(executor, role=ActorRole.EXECUTOR),
            correlation_id,
            commands=self._sanitize_commands(commands),
            result=result,
        )

    def verify(
        self,
        trail_id: str,
        verifier: Actor,
        correlation_id: str = "",
        evidence: Sequence[Evidence] = (),
    ) -> Event:
        """Append a VERIFIED event carrying the evidence list."""
        return self._append(
            trail_id,
            EventType.VERIFIED,
            dataclasses.replace(verifier, role=ActorRole.VERIFIER),
            correlation_id,
            evidence=tuple(evidence),
        )

    def fail(
        self,
        trail_id: str,
        actor: Actor,
        correlation_id: str = "",
        result: Optional[Result] = None,
        note: str = "",
    ) -> Event:
        """
        Append a FAILED event. The actor keeps its role; an unset role
        defaults to EXECUTOR.
        """
        if actor.role is None:
            actor = dataclasses.replace(actor, role=ActorRole.EXECUTOR)
        return self._append(
            trail_id,
            EventType.FAILED,
            actor,
            correlation_id,
            result=result,
            evidence=_note_evidence(note),
        )

    # ══════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════

    def what_changed(
        self,
        target: Target,
        from_: Optional[datetime] = None,
        to: Optional[datetime] = None,
        limit: Optional[int] = None,
        event_types: Iterable[EventType] = (),
    ) -> Sequence[Event]:
        """
        Events touching a target within [from_, to), newest first,
        at most limit entries.
        """
        query = Query(
            target_type=target.target_type,
            target_id=target.target_id,
            from_=from_,
            to=to,
            event_types=frozenset(event_types),
            limit=limit,
        )
        return self._call_store(
            "query_events", None, lambda: self._store.query_events(query)
        )

    def get_trail(self, trail_id: str) -> Tuple[Trail, Tuple[Event, ...]]:
        return self._call_store(
            "get_trail", trail_id, lambda: self._store.get_trail(trail_id)
        )

    def verify_trail(self, trail_id: str) -> VerificationReport:
        """Recompute the whole chain. Raises VerificationError on tampering."""
        verifier = ChainVerifier(self._store)
        return self._call_store(
            "get_trail", trail_id, lambda: verifier.verify_trail(trail_id)
        )


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def _require_text(value, field: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "must be a non-empty string.")


def _note_evidence(note: str) -> Tuple[Evidence, ...]:
    if not note:
        return ()
    return (Evidence(kind=NOTE_EVIDENCE_KIND, ref=note),)
