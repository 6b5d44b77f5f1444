"""
Provenance — Hash-Chain Engine Public API
===========================================
"""

from provenance.hashing.canonical import (
    canonical_encode,
    canonical_event,
    canonical_pairs,
    timestamp_nanos,
)
from provenance.hashing.hasher import (
    GENESIS_PREV_HASH,
    compute_event_hash,
    stamp_hash,
)

__all__ = [
    "GENESIS_PREV_HASH",
    "canonical_encode",
    "canonical_event",
    "canonical_pairs",
    "compute_event_hash",
    "stamp_hash",
    "timestamp_nanos",
]
