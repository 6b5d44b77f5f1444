"""
Provenance — Event Hash Computation
=====================================
Computes an event's hash using SHA-256.

Formula:
    hash = SHA256(canonical_encode(event without hash))

Rules:
- The event's own hash field never feeds its digest
- prev_hash is part of the encoding, so every hash commits to its
  entire history
- No salt, no randomness; determinism is mandatory

This module ONLY computes. It does not verify, persist, or dispatch.
"""

from __future__ import annotations

import dataclasses
import hashlib

from provenance.hashing.canonical import canonical_encode
from provenance.models import Event

GENESIS_PREV_HASH = ""


def compute_event_hash(event: Event) -> str:
    """
    64-character lowercase hex SHA-256 digest of the canonical encoding.

    Raises EncodingError if any field cannot be encoded.
    """
    return hashlib.sha256(canonical_encode(event)).hexdigest()


def stamp_hash(event: Event) -> Event:
    """Return a copy of the event with its hash field set."""
    return dataclasses.replace(event, hash=compute_event_hash(event))
