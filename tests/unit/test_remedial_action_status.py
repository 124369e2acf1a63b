"""
Unit tests for the remedial action status rules.

These tests verify:
1. The single "next status" step offered on the board
2. Allowed one-step transitions and cancellation
3. Forward skipping for integrations
4. Status parsing of alternative spellings
"""

import pytest

from compliance_hub.domain.entities import (
    ActionStatus,
    RemedialAction,
    allowed_transitions,
    can_advance,
    next_status,
)


class TestNextStatus:

    @pytest.mark.parametrize(
        "current,expected",
        [
            (ActionStatus.OPEN, ActionStatus.IN_PROGRESS),
            (ActionStatus.IN_PROGRESS, ActionStatus.SCHEDULED),
            (ActionStatus.SCHEDULED, ActionStatus.COMPLETED),
            (ActionStatus.COMPLETED, None),
            (ActionStatus.CANCELLED, None),
        ],
    )
    def test_next_status(self, current, expected):
        assert next_status(current) == expected


class TestTransitions:

    def test_one_step_forward_or_cancel(self):
        assert allowed_transitions(ActionStatus.OPEN) == {
            ActionStatus.IN_PROGRESS,
            ActionStatus.CANCELLED,
        }

    def test_terminal_statuses_allow_nothing(self):
        assert allowed_transitions(ActionStatus.COMPLETED) == frozenset()
        assert allowed_transitions(ActionStatus.CANCELLED) == frozenset()

    def test_advance_may_skip_forward(self):
        assert can_advance(ActionStatus.OPEN, ActionStatus.COMPLETED)
        assert can_advance(ActionStatus.IN_PROGRESS, ActionStatus.CANCELLED)

    def test_advance_never_goes_backwards_or_stays(self):
        assert not can_advance(ActionStatus.SCHEDULED, ActionStatus.IN_PROGRESS)
        assert not can_advance(ActionStatus.OPEN, ActionStatus.OPEN)
        assert not can_advance(ActionStatus.COMPLETED, ActionStatus.CANCELLED)


class TestParse:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("in-progress", ActionStatus.IN_PROGRESS),
            ("In Progress", ActionStatus.IN_PROGRESS),
            ("canceled", ActionStatus.CANCELLED),
            ("COMPLETED", ActionStatus.COMPLETED),
        ],
    )
    def test_parse_spellings(self, raw, expected):
        assert ActionStatus.parse(raw) == expected

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError):
            ActionStatus.parse("done-ish")

    @pytest.mark.parametrize("raw", [5, None, ["COMPLETED"]])
    def test_parse_non_string_raises_value_error(self, raw):
        with pytest.raises(ValueError):
            ActionStatus.parse(raw)


class TestRemedialAction:

    def test_completing_sets_resolved_at(self):
        action = RemedialAction(organisation_id="org-1", description="Fix door closer")

        action.move_to(ActionStatus.COMPLETED)

        assert action.resolved_at is not None
        assert action.to_dict()["next_status"] is None

    def test_new_action_offers_in_progress(self):
        action = RemedialAction(organisation_id="org-1", description="Fix door closer")

        assert action.to_dict()["next_status"] == "IN_PROGRESS"
