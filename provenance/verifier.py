"""
Provenance — Hash-Chain Verifier
==================================
Replays a persisted trail and confirms chain integrity.

For each event, in persisted order:
1. index 0 must have an empty prev_hash
2. index i > 0 must have prev_hash == stored hash of event i-1
3. the stored hash must equal the recomputed hash

The first failure aborts with a VerificationError naming the trail,
the event, its index and the reason.

Detects:
- in-place field edits         → hash mismatch at that index
- deleted / reordered events   → prevHash mismatch at the next index
- forged insertions            → prevHash mismatch, or hash mismatch if
                                 the forger did not recompute the digest

This module does NOT:
- Auto-correct hashes
- Reorder events
- Retry
- Write to storage
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from provenance.errors import VerificationError, VerificationReason
from provenance.hashing.hasher import GENESIS_PREV_HASH, compute_event_hash
from provenance.models import Event
from provenance.store.base import TrailStore

logger = logging.getLogger("provenance.verify")


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of a successful verification."""

    trail_id: str
    events_verified: int
    head_hash: str


def verify_events(trail_id: str, events: Iterable[Event]) -> VerificationReport:
    """
    Verify an ordered event sequence.

    Raises VerificationError on the first broken link and EncodingError
    if an event can no longer be encoded.
    """
    previous_hash = GENESIS_PREV_HASH
    count = 0

    for index, event in enumerate(events):
        # ── 1. Chain pointer ─────────────────────────────────
        if index == 0:
            if event.prev_hash != GENESIS_PREV_HASH:
                raise VerificationError(
                    trail_id=trail_id,
                    event_id=event.event_id,
                    index=index,
                    reason=VerificationReason.FIRST_PREV_HASH_NOT_EMPTY,
                    expected=GENESIS_PREV_HASH,
                    actual=event.prev_hash,
                )
        elif event.prev_hash != previous_hash:
            raise VerificationError(
                trail_id=trail_id,
                event_id=event.event_id,
                index=index,
                reason=VerificationReason.PREV_HASH_MISMATCH,
                expected=previous_hash,
                actual=event.prev_hash,
            )

        # ── 2. Recompute digest ──────────────────────────────
        expected_hash = compute_event_hash(event)
        if event.hash != expected_hash:
            raise VerificationError(
                trail_id=trail_id,
                event_id=event.event_id,
                index=index,
                reason=VerificationReason.HASH_MISMATCH,
                expected=expected_hash,
                actual=event.hash,
            )

        previous_hash = event.hash
        count += 1

    return VerificationReport(
        trail_id=trail_id,
        events_verified=count,
        head_hash=previous_hash,
    )


class ChainVerifier:
    """Reads a trail through the Storage Port and verifies it."""

    def __init__(self, store: TrailStore) -> None:
        self._store = store

    def verify_trail(self, trail_id: str) -> VerificationReport:
        _, events = self._store.get_trail(trail_id)
        try:
            report = verify_events(trail_id, events)
        except VerificationError as exc:
            logger.warning(
                f"Trail verification FAILED: trail={trail_id} "
                f"index={exc.index} event={exc.event_id} reason={exc.reason}"
            )
            raise
        logger.info(
            f"Trail verification passed: trail={trail_id} "
            f"events={report.events_verified}"
        )
        return report
