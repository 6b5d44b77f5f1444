"""
Provenance — Public API
=========================
Tamper-evident, append-only change trails:
request → approve → execute → verify, linked by a SHA-256 hash chain.

The Django-backed store lives in provenance.django_store and is imported
explicitly; nothing here requires Django to be configured.
"""

from provenance.clock import Clock, FixedClock, SystemClock
from provenance.errors import (
    ChainConflictError,
    ConflictError,
    EncodingError,
    NotFoundError,
    ProvenanceError,
    SanitizerError,
    StorageError,
    TransitionError,
    ValidationError,
    VerificationError,
    VerificationReason,
)
from provenance.hashing import canonical_encode, compute_event_hash
from provenance.ids import new_id
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
from provenance.sanitizer import NoopSanitizer, RedactingSanitizer, Sanitizer
from provenance.service import ChainService
from provenance.store import InMemoryTrailStore, TrailStore
from provenance.transitions import (
    PermissiveTransitions,
    StrictWorkflowTransitions,
    TransitionPolicy,
)
from provenance.verifier import ChainVerifier, VerificationReport, verify_events

__all__ = [
    # Model
    "Actor",
    "ActorRole",
    "Command",
    "Event",
    "EventType",
    "Evidence",
    "Query",
    "RequestInput",
    "Result",
    "Target",
    "Trail",
    # Chain
    "ChainService",
    "ChainVerifier",
    "VerificationReport",
    "verify_events",
    "canonical_encode",
    "compute_event_hash",
    "new_id",
    # Ports
    "TrailStore",
    "InMemoryTrailStore",
    "Sanitizer",
    "NoopSanitizer",
    "RedactingSanitizer",
    "TransitionPolicy",
    "PermissiveTransitions",
    "StrictWorkflowTransitions",
    "Clock",
    "SystemClock",
    "FixedClock",
    # Errors
    "ProvenanceError",
    "ValidationError",
    "TransitionError",
    "NotFoundError",
    "ConflictError",
    "ChainConflictError",
    "VerificationError",
    "VerificationReason",
    "EncodingError",
    "StorageError",
    "SanitizerError",
]
