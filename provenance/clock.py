"""
Provenance — Trail Timestamps
===============================
Every trail's created_at and every event's `at` comes from the clock
injected into the chain service. The timestamp is hashed (as integer
nanoseconds), so it must always be timezone-aware.

A trail's created_at and its REQUESTED event share one reading.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Source of event timestamps."""

    def now_utc(self) -> datetime:
        """Aware UTC datetime for the next event."""
        ...  # pragma: no cover


class SystemClock:
    """Wall-clock UTC; the chain service default."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Replayable timestamps for reproducible hashes.

    Stamps every event with the same instant until advanced, so a trail
    built twice from the same inputs hashes identically:

        clock = FixedClock(datetime(2026, 2, 3, 12, 0, tzinfo=timezone.utc))
        service = ChainService(store, clock=clock)
        trail_id = service.request_change(request)
        clock.advance(60)   # approval one minute later
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, seconds: float) -> None:
        self._fixed_dt = self._fixed_dt + timedelta(seconds=seconds)
