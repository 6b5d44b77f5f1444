"""
Provenance — Trail & Event Model
==================================
A trail is one logical change. Each workflow step appended to it is an
immutable event, linked to its predecessor by hash.

RULES:
- Events are never mutated or deleted once hashed and persisted
- List fields (targets, commands, evidence) are ordered sequences
- Map fields (meta, labels, output_meta, detail) are unordered;
  their key order never affects equality or hash. They are stored as
  read-only copies, so a persisted event cannot be edited through them
- Optional fields use None for "never set"; "" is an explicit value

This file contains NO hashing and NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from provenance.errors import ValidationError


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class EventType(Enum):
    """One step in the change workflow."""
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    EXECUTED = "EXECUTED"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"


class ActorRole(Enum):
    """The capacity in which an actor appended an event."""
    REQUESTER = "REQUESTER"
    APPROVER = "APPROVER"
    EXECUTOR = "EXECUTOR"
    VERIFIER = "VERIFIER"


def _freeze_map(instance: Any, name: str) -> None:
    value = getattr(instance, name)
    object.__setattr__(instance, name, MappingProxyType(dict(value) if value else {}))


def _freeze_seq(instance: Any, name: str) -> None:
    value = getattr(instance, name)
    object.__setattr__(instance, name, tuple(value) if value else ())


# ══════════════════════════════════════════════════════════════
# EVENT PARTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Actor:
    """
    Who appended an event.

    role is None until the chain service assigns or forces it.
    meta carries free-form context (ip, team, auth method).
    """

    actor_id: str
    name: Optional[str] = None
    role: Optional[ActorRole] = None
    meta: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze_map(self, "meta")

    def to_dict(self) -> dict:
        return {
            "actor_id": self.actor_id,
            "name": self.name,
            "role": self.role.value if self.role is not None else None,
            "meta": dict(self.meta),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Actor:
        role = data.get("role")
        return cls(
            actor_id=data["actor_id"],
            name=data.get("name"),
            role=ActorRole(role) if role is not None else None,
            meta=data.get("meta") or {},
        )


@dataclass(frozen=True)
class Target:
    """A system touched by the change (e.g. network_device/sw-12)."""

    target_type: str
    target_id: str
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze_map(self, "labels")

    def matches(self, target_type: str, target_id: str) -> bool:
        return self.target_type == target_type and self.target_id == target_id

    def to_dict(self) -> dict:
        return {
            "target_type": self.target_type,
            "target_id": self.target_id,
            "labels": dict(self.labels),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Target:
        return cls(
            target_type=data["target_type"],
            target_id=data["target_id"],
            labels=data.get("labels") or {},
        )


@dataclass(frozen=True)
class Command:
    """One executed command. raw/diff/output are sanitized before hashing."""

    kind: str
    raw: str
    diff: Optional[str] = None
    output: Optional[str] = None
    output_meta: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze_map(self, "output_meta")

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "raw": self.raw,
            "diff": self.diff,
            "output": self.output,
            "output_meta": dict(self.output_meta),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Command:
        return cls(
            kind=data["kind"],
            raw=data["raw"],
            diff=data.get("diff"),
            output=data.get("output"),
            output_meta=data.get("output_meta") or {},
        )


@dataclass(frozen=True)
class Result:
    """Outcome of an execution (status is free-form: SUCCESS, FAILED, PARTIAL)."""

    status: str
    message: Optional[str] = None
    exit_code: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "message": self.message,
            "exit_code": self.exit_code,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Result:
        return cls(
            status=data["status"],
            message=data.get("message"),
            exit_code=data.get("exit_code"),
        )


@dataclass(frozen=True)
class Evidence:
    """Proof attached to an event (show_cmd output, ticket link, note)."""

    kind: str
    ref: str
    detail: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze_map(self, "detail")

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "ref": self.ref,
            "detail": dict(self.detail),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Evidence:
        return cls(
            kind=data["kind"],
            ref=data["ref"],
            detail=data.get("detail") or {},
        )


# ══════════════════════════════════════════════════════════════
# EVENT & TRAIL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Event:
    """
    One immutable step in a trail.

    Field groups:
        Identity        event_id, trail_id, event_type
        Temporal        at (timezone-aware)
        Content         actor, targets, commands, result, evidence
        Causality       correlation_id
        Integrity       prev_hash, hash

    hash is excluded from its own digest; everything else is included.
    """

    event_id: str
    trail_id: str
    event_type: EventType
    at: datetime
    actor: Actor
    targets: Tuple[Target, ...] = ()
    commands: Tuple[Command, ...] = ()
    result: Optional[Result] = None
    evidence: Tuple[Evidence, ...] = ()
    correlation_id: str = ""
    prev_hash: str = ""
    hash: str = ""

    def __post_init__(self):
        _freeze_seq(self, "targets")
        _freeze_seq(self, "commands")
        _freeze_seq(self, "evidence")

    def has_target(self, target_type: str, target_id: str) -> bool:
        return any(t.matches(target_type, target_id) for t in self.targets)


@dataclass(frozen=True)
class Trail:
    """One logical change. Immutable; grows only by appended events."""

    trail_id: str
    created_at: datetime
    title: str
    description: str = ""
    correlation_id: str = ""
    targets: Tuple[Target, ...] = ()

    def __post_init__(self):
        _freeze_seq(self, "targets")


@dataclass(frozen=True)
class RequestInput:
    """Arguments for opening a new trail."""

    title: str
    requester: Actor
    description: str = ""
    correlation_id: str = ""
    targets: Tuple[Target, ...] = ()

    def __post_init__(self):
        _freeze_seq(self, "targets")


# ══════════════════════════════════════════════════════════════
# QUERY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Query:
    """
    Event search ("what changed on device X last Tuesday?").

    Time range is half-open: from_ <= at < to. A None bound is open.
    Target filter applies only when both target_type and target_id are set.
    Empty event_types means every type.
    limit is None (no limit) or a positive int, applied after all filters.
    """

    target_type: Optional[str] = None
    target_id: Optional[str] = None
    from_: Optional[datetime] = None
    to: Optional[datetime] = None
    event_types: FrozenSet[EventType] = frozenset()
    limit: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "event_types", frozenset(self.event_types))
        if self.limit is not None:
            if isinstance(self.limit, bool) or not isinstance(self.limit, int):
                raise ValidationError("limit", "must be an integer or None.")
            if self.limit <= 0:
                raise ValidationError("limit", f"must be positive, got {self.limit}.")
        for name in ("from_", "to"):
            bound = getattr(self, name)
            if bound is not None and bound.tzinfo is None:
                raise ValidationError(name, "must be timezone-aware.")

    @property
    def filters_target(self) -> bool:
        return bool(self.target_type) and bool(self.target_id)

    def matches(self, event: Event) -> bool:
        """True if the event passes every filter (limit is not a filter)."""
        if self.from_ is not None and event.at < self.from_:
            return False
        if self.to is not None and not event.at < self.to:
            return False
        if self.event_types and event.event_type not in self.event_types:
            return False
        if self.filters_target and not event.has_target(
            self.target_type, self.target_id
        ):
            return False
        return True
