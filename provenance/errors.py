"""
Provenance — Errors
=====================
Every failure is explicit and structured.
No silent coercion. No exception swallowing. No automatic retries.
"""

from __future__ import annotations

from typing import Optional


class ProvenanceError(Exception):
    """Base error for all provenance operations."""
    pass


# ══════════════════════════════════════════════════════════════
# INPUT ERRORS
# ══════════════════════════════════════════════════════════════

class ValidationError(ProvenanceError):
    """A required field is missing or malformed."""

    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(f"Invalid '{field}': {detail}")


class TransitionError(ValidationError):
    """A transition policy refused the next event type for a trail."""

    def __init__(self, trail_id: str, current, attempted):
        self.trail_id = trail_id
        self.current = current
        self.attempted = attempted
        current_name = current.value if current is not None else "<empty>"
        super().__init__(
            "event_type",
            f"trail {trail_id} cannot move from {current_name} "
            f"to {attempted.value}.",
        )


# ══════════════════════════════════════════════════════════════
# STORAGE OUTCOMES
# ══════════════════════════════════════════════════════════════

class NotFoundError(ProvenanceError):
    """The requested trail does not exist."""

    def __init__(self, trail_id: str):
        self.trail_id = trail_id
        super().__init__(f"Trail '{trail_id}' not found.")


class ConflictError(ProvenanceError):
    """A write collided with existing state."""

    def __init__(self, trail_id: str, detail: Optional[str] = None):
        self.trail_id = trail_id
        self.detail = detail or f"Trail '{trail_id}' already exists."
        super().__init__(self.detail)


class ChainConflictError(ConflictError):
    """
    Append refused: the event does not extend the current chain tip.

    Raised when a concurrent writer extended the trail between this
    writer's read-latest and its append.
    """

    def __init__(
        self,
        trail_id: str,
        expected_prev_hash: str,
        actual_tip_hash: str,
    ):
        self.expected_prev_hash = expected_prev_hash
        self.actual_tip_hash = actual_tip_hash
        super().__init__(
            trail_id,
            f"Concurrent append conflict on trail '{trail_id}': "
            f"event prev_hash '{short_hash(expected_prev_hash)}' is not "
            f"the chain tip '{short_hash(actual_tip_hash)}'.",
        )


# ══════════════════════════════════════════════════════════════
# INTEGRITY ERRORS
# ══════════════════════════════════════════════════════════════

class VerificationReason:
    """Reasons reported by the chain verifier."""

    FIRST_PREV_HASH_NOT_EMPTY = "first event prevHash must be empty"
    PREV_HASH_MISMATCH = "prevHash mismatch"
    HASH_MISMATCH = "hash mismatch"


class VerificationError(ProvenanceError):
    """
    Hash-chain verification failed at one event.

    Terminal: never retried, never repaired.
    """

    def __init__(
        self,
        trail_id: str,
        event_id: str,
        index: int,
        reason: str,
        expected: str = "",
        actual: str = "",
    ):
        self.trail_id = trail_id
        self.event_id = event_id
        self.index = index
        self.reason = reason
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Verification failed: trail={trail_id} event={event_id} "
            f"index={index} reason={reason} "
            f"(expected {short_hash(expected)!r}, got {short_hash(actual)!r})"
        )


class EncodingError(ProvenanceError):
    """A field could not be canonically encoded."""

    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(f"Cannot encode '{field}': {detail}")


# ══════════════════════════════════════════════════════════════
# PORT FAILURES (wrapped pass-through)
# ══════════════════════════════════════════════════════════════

class StorageError(ProvenanceError):
    """A storage port call failed with a non-provenance error."""

    def __init__(self, operation: str, trail_id: Optional[str], cause: Exception):
        self.operation = operation
        self.trail_id = trail_id
        self.cause = cause
        super().__init__(
            f"Storage operation '{operation}' failed "
            f"(trail={trail_id}): {type(cause).__name__}: {cause}"
        )


class SanitizerError(ProvenanceError):
    """A sanitizer port call raised."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"Sanitizer operation '{operation}' failed: "
            f"{type(cause).__name__}: {cause}"
        )


def short_hash(value: str, length: int = 10) -> str:
    """Truncate a digest for log lines and error messages."""
    if len(value) <= length:
        return value
    return value[:length]
