"""
Provenance — Sanitizer Port
=============================
Redaction applied to targets and commands BEFORE hashing.

Once an event is sanitized and hashed, the pre-sanitized values are
unrecoverable from the chain: the digest locks in the redacted content.

Implementations must be pure: return new objects, never mutate input.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Iterable, Pattern, Protocol, Sequence, Tuple, Union

from provenance.models import Command, Target


class Sanitizer(Protocol):
    """Pluggable pre-hash redaction."""

    def sanitize_targets(self, targets: Sequence[Target]) -> Sequence[Target]:
        ...  # pragma: no cover

    def sanitize_commands(self, commands: Sequence[Command]) -> Sequence[Command]:
        ...  # pragma: no cover


class NoopSanitizer:
    """Default sanitizer — identity."""

    def sanitize_targets(self, targets: Sequence[Target]) -> Sequence[Target]:
        return targets

    def sanitize_commands(self, commands: Sequence[Command]) -> Sequence[Command]:
        return commands


class RedactingSanitizer:
    """
    Regex-driven redaction.

    Every match of any pattern is replaced in command raw, diff and
    output, and in the values of the listed target label keys.

    Usage:
        RedactingSanitizer([r"password \\S+"], redact_label_keys=("snmp_community",))
    """

    def __init__(
        self,
        patterns: Iterable[Union[str, Pattern[str]]],
        replacement: str = "[redacted]",
        redact_label_keys: Iterable[str] = (),
    ) -> None:
        self._patterns: Tuple[Pattern[str], ...] = tuple(
            p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns
        )
        self._replacement = replacement
        self._label_keys = frozenset(redact_label_keys)

    def _scrub(self, text):
        if text is None:
            return None
        for pattern in self._patterns:
            text = pattern.sub(self._replacement, text)
        return text

    def sanitize_targets(self, targets: Sequence[Target]) -> Tuple[Target, ...]:
        out = []
        for target in targets:
            labels = {
                key: (self._replacement if key in self._label_keys else self._scrub(value))
                for key, value in target.labels.items()
            }
            out.append(dataclasses.replace(target, labels=labels))
        return tuple(out)

    def sanitize_commands(self, commands: Sequence[Command]) -> Tuple[Command, ...]:
        return tuple(
            dataclasses.replace(
                command,
                raw=self._scrub(command.raw),
                diff=self._scrub(command.diff),
                output=self._scrub(command.output),
            )
            for command in commands
        )
