"""
Tests for provenance.transitions — append ordering policies.
"""

from datetime import datetime, timezone

import pytest

from provenance.errors import TransitionError, ValidationError
from provenance.models import Actor, Event, EventType
from provenance.transitions import (
    DEFAULT_WORKFLOW,
    PermissiveTransitions,
    StrictWorkflowTransitions,
)


NOW = datetime(2026, 2, 3, 12, 0, tzinfo=timezone.utc)


def _latest(event_type: EventType) -> Event:
    return Event(
        event_id="e" * 32,
        trail_id="t" * 32,
        event_type=event_type,
        at=NOW,
        actor=Actor("u-1"),
    )


class TestPermissiveTransitions:
    @pytest.mark.parametrize("next_type", list(EventType))
    def test_anything_after_anything(self, next_type):
        policy = PermissiveTransitions()
        policy.check("t" * 32, None, next_type)
        policy.check("t" * 32, _latest(EventType.VERIFIED), next_type)


class TestStrictWorkflowTransitions:
    @pytest.mark.parametrize(
        "current,next_type",
        [
            (None, EventType.REQUESTED),
            (EventType.REQUESTED, EventType.APPROVED),
            (EventType.REQUESTED, EventType.FAILED),
            (EventType.APPROVED, EventType.EXECUTED),
            (EventType.EXECUTED, EventType.VERIFIED),
            (EventType.EXECUTED, EventType.FAILED),
        ],
    )
    def test_allowed(self, current, next_type):
        latest = _latest(current) if current is not None else None
        StrictWorkflowTransitions().check("t" * 32, latest, next_type)

    @pytest.mark.parametrize(
        "current,next_type",
        [
            (None, EventType.APPROVED),
            (EventType.REQUESTED, EventType.EXECUTED),
            (EventType.REQUESTED, EventType.REQUESTED),
            (EventType.VERIFIED, EventType.APPROVED),
            (EventType.FAILED, EventType.EXECUTED),
        ],
    )
    def test_refused(self, current, next_type):
        latest = _latest(current) if current is not None else None
        with pytest.raises(TransitionError) as exc_info:
            StrictWorkflowTransitions().check("t" * 32, latest, next_type)
        assert exc_info.value.current == current
        assert exc_info.value.attempted == next_type

    def test_transition_error_is_validation_error(self):
        with pytest.raises(ValidationError, match="<empty>"):
            StrictWorkflowTransitions().check("t" * 32, None, EventType.VERIFIED)

    def test_terminal_states(self):
        policy = StrictWorkflowTransitions()
        assert policy.allowed_after(EventType.VERIFIED) == frozenset()
        assert policy.allowed_after(EventType.FAILED) == frozenset()

    def test_custom_table(self):
        table = dict(DEFAULT_WORKFLOW)
        table[EventType.VERIFIED] = frozenset({EventType.REQUESTED})
        StrictWorkflowTransitions(table).check(
            "t" * 32, _latest(EventType.VERIFIED), EventType.REQUESTED
        )

    def test_missing_state_allows_nothing(self):
        policy = StrictWorkflowTransitions({None: {EventType.REQUESTED}})
        with pytest.raises(TransitionError):
            policy.check("t" * 32, _latest(EventType.REQUESTED), EventType.APPROVED)
