"""
Provenance — Identifier Generation
====================================
Trail and event ids: 128 random bits, hex-encoded to 32 characters.

Ids are never derived from content and never reused. The randomness
source is injected so tests can produce deterministic ids.
"""

from __future__ import annotations

import secrets
from typing import Callable

ID_BYTES = 16

RandomSource = Callable[[int], bytes]


def new_id(random_source: RandomSource = secrets.token_bytes) -> str:
    """
    Draw ID_BYTES from random_source and return them as lowercase hex.

    Raises ValueError if the source returns the wrong number of bytes.
    """
    raw = random_source(ID_BYTES)
    if not isinstance(raw, (bytes, bytearray)) or len(raw) != ID_BYTES:
        raise ValueError(
            f"Random source must return exactly {ID_BYTES} bytes."
        )
    return bytes(raw).hex()


class CountingRandomSource:
    """
    Deterministic source for tests and fixtures: 1, 2, 3, ... as
    big-endian integers. Never use outside tests.
    """

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def __call__(self, size: int) -> bytes:
        value = self._next
        self._next += 1
        return value.to_bytes(size, "big")
