"""
Provenance — Canonical Encoding
=================================
Maps an event to one deterministic byte sequence.

Rules:
- Map fields become [key, value] pairs sorted by UTF-8 byte order of the
  key; an empty map is omitted entirely (never encoded as [])
- Timestamps become integer nanoseconds since the Unix epoch
- List fields keep caller order; an empty list is omitted
- Optional fields that are None are omitted; "" is encoded as ""
- The event's own hash is excluded; prev_hash and event_id are included
- Fixed object shape, compact JSON, UTF-8 output

Nothing is coerced. A value of the wrong type raises EncodingError
instead of being stringified.

This module ONLY encodes. It does not hash, verify, or persist.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from provenance.errors import EncodingError
from provenance.models import (
    Actor,
    ActorRole,
    Command,
    Event,
    EventType,
    Evidence,
    Result,
    Target,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════
# PRIMITIVES
# ══════════════════════════════════════════════════════════════

def _utf8(value: str, field: str) -> bytes:
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError(field, f"not valid UTF-8 ({exc.reason}).") from exc


def _require_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise EncodingError(field, f"expected str, got {type(value).__name__}.")
    _utf8(value, field)
    return value


def _optional_str(out: dict, key: str, value: Any, field: str) -> None:
    if value is not None:
        out[key] = _require_str(value, field)


def canonical_pairs(mapping: Optional[Mapping[str, str]], field: str) -> list:
    """
    Sort a string map into [[key, value], ...] by byte-wise key order.

    Returns [] for None or an empty map; callers omit empty results.
    """
    if not mapping:
        return []
    pairs = []
    for key, value in mapping.items():
        _require_str(key, f"{field} key")
        _require_str(value, f"{field}[{key!r}]")
        pairs.append((key.encode("utf-8"), key, value))
    pairs.sort(key=lambda item: item[0])
    return [[key, value] for _, key, value in pairs]


def _put_pairs(out: dict, key: str, mapping: Optional[Mapping[str, str]], field: str) -> None:
    pairs = canonical_pairs(mapping, field)
    if pairs:
        out[key] = pairs


def timestamp_nanos(value: Any, field: str = "at") -> int:
    """Exact integer nanoseconds since the Unix epoch."""
    if not isinstance(value, datetime):
        raise EncodingError(field, f"expected datetime, got {type(value).__name__}.")
    if value.tzinfo is None or value.utcoffset() is None:
        raise EncodingError(field, "datetime must be timezone-aware.")
    delta = value - EPOCH
    seconds = delta.days * 86_400 + delta.seconds
    return seconds * 1_000_000_000 + delta.microseconds * 1_000


# ══════════════════════════════════════════════════════════════
# EVENT PARTS
# ══════════════════════════════════════════════════════════════

def _actor(actor: Actor) -> dict:
    if not isinstance(actor, Actor):
        raise EncodingError("actor", f"expected Actor, got {type(actor).__name__}.")
    out = {"id": _require_str(actor.actor_id, "actor.actor_id")}
    _optional_str(out, "name", actor.name, "actor.name")
    if actor.role is not None:
        if not isinstance(actor.role, ActorRole):
            raise EncodingError(
                "actor.role", f"expected ActorRole, got {type(actor.role).__name__}."
            )
        out["role"] = actor.role.value
    _put_pairs(out, "meta", actor.meta, "actor.meta")
    return out


def _target(target: Target, field: str) -> dict:
    out = {
        "type": _require_str(target.target_type, f"{field}.target_type"),
        "id": _require_str(target.target_id, f"{field}.target_id"),
    }
    _put_pairs(out, "labels", target.labels, f"{field}.labels")
    return out


def _command(command: Command, field: str) -> dict:
    out = {
        "kind": _require_str(command.kind, f"{field}.kind"),
        "raw": _require_str(command.raw, f"{field}.raw"),
    }
    _optional_str(out, "diff", command.diff, f"{field}.diff")
    _optional_str(out, "output", command.output, f"{field}.output")
    _put_pairs(out, "output_meta", command.output_meta, f"{field}.output_meta")
    return out


def _result(result: Result) -> dict:
    out = {"status": _require_str(result.status, "result.status")}
    _optional_str(out, "message", result.message, "result.message")
    if result.exit_code is not None:
        code = result.exit_code
        if isinstance(code, bool) or not isinstance(code, int):
            raise EncodingError(
                "result.exit_code", f"expected int, got {type(code).__name__}."
            )
        out["exit_code"] = code
    return out


def _evidence(evidence: Evidence, field: str) -> dict:
    out = {
        "kind": _require_str(evidence.kind, f"{field}.kind"),
        "ref": _require_str(evidence.ref, f"{field}.ref"),
    }
    _put_pairs(out, "detail", evidence.detail, f"{field}.detail")
    return out


def _put_list(out: dict, key: str, items: Sequence, encode, expected: type) -> None:
    encoded = []
    for index, item in enumerate(items or ()):
        field = f"{key}[{index}]"
        if not isinstance(item, expected):
            raise EncodingError(
                field, f"expected {expected.__name__}, got {type(item).__name__}."
            )
        encoded.append(encode(item, field))
    if encoded:
        out[key] = encoded


# ══════════════════════════════════════════════════════════════
# EVENT
# ══════════════════════════════════════════════════════════════

def canonical_event(event: Event) -> dict:
    """
    Build the fixed-shape, hash-free structure for an event.

    Exposed separately from the byte encoding so the structure itself
    can be inspected in tests.
    """
    if not isinstance(event.event_type, EventType):
        raise EncodingError(
            "event_type",
            f"expected EventType, got {type(event.event_type).__name__}.",
        )
    out = {
        "id": _require_str(event.event_id, "event_id"),
        "trail_id": _require_str(event.trail_id, "trail_id"),
        "type": event.event_type.value,
        "at_unix_nano": timestamp_nanos(event.at),
        "actor": _actor(event.actor),
        "correlation_id": _require_str(event.correlation_id, "correlation_id"),
        "prev_hash": _require_str(event.prev_hash, "prev_hash"),
    }
    _put_list(out, "targets", event.targets, _target, Target)
    _put_list(out, "commands", event.commands, _command, Command)
    if event.result is not None:
        if not isinstance(event.result, Result):
            raise EncodingError(
                "result", f"expected Result, got {type(event.result).__name__}."
            )
        out["result"] = _result(event.result)
    _put_list(out, "evidence", event.evidence, _evidence, Evidence)
    return out


def canonical_encode(event: Event) -> bytes:
    """
    Canonical UTF-8 bytes for an event, excluding its hash.

    Same content (modulo map key order) ALWAYS yields the same bytes.
    """
    structure = canonical_event(event)
    try:
        text = json.dumps(
            structure,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
        return text.encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingError("event", str(exc)) from exc
