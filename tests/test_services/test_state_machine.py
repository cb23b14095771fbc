"""
Tests for the lifecycle transition table.
"""

import pytest

from itam.state_machine import (
    INITIAL_STATUS,
    TRANSITIONS,
    ActionType,
    AssetStatus,
    ConditionStatus,
    available_actions,
    describe_transition,
    is_terminal,
    is_valid_transition,
    next_status,
    source_statuses,
)

# Every row of the lifecycle table.
EXPECTED_ROWS = [
    ("available", "checkout", None, "assigned"),
    ("available", "repair", None, "repair"),
    ("available", "dispose", None, "retired"),
    ("assigned", "checkin", "good", "available"),
    ("assigned", "checkin", "damaged", "repair"),
    ("assigned", "checkin", "lost", "missing"),
    ("assigned", "lost", None, "missing"),
    ("repair", "complete_repair", None, "available"),
    ("repair", "dispose", None, "retired"),
    ("missing", "found", None, "available"),
    ("missing", "dispose", None, "retired"),
]


class TestTransitionTable:
    """The table defines exactly the documented moves."""

    @pytest.mark.parametrize("current,action,condition,expected", EXPECTED_ROWS)
    def test_documented_rows(self, current, action, condition, expected):
        assert next_status(current, action, condition) is AssetStatus(expected)

    def test_no_extra_rows(self):
        """Any (status, action, condition) not listed has no target."""
        listed = {(c, a, k) for c, a, k, _ in EXPECTED_ROWS}
        conditions = [None] + [c.value for c in ConditionStatus]
        for status in AssetStatus:
            for action in ActionType:
                for condition in conditions:
                    key = (status.value, action.value, condition)
                    if action is not ActionType.CHECKIN:
                        key = (status.value, action.value, None)
                    if key in listed:
                        continue
                    assert next_status(status, action, condition) is None, key

    def test_every_status_has_an_entry(self):
        assert set(TRANSITIONS) == set(AssetStatus)

    def test_initial_status_is_available(self):
        assert INITIAL_STATUS is AssetStatus.AVAILABLE

    def test_checkin_requires_condition(self):
        """Check-in without a condition matches no row."""
        assert next_status("assigned", "checkin") is None

    def test_condition_ignored_for_other_actions(self):
        assert next_status("available", "checkout", "damaged") is AssetStatus.ASSIGNED

    def test_unknown_values_have_no_target(self):
        assert next_status("broken", "checkout") is None
        assert next_status("available", "teleport") is None
        assert next_status("assigned", "checkin", "soggy") is None

    def test_is_valid_transition(self):
        assert is_valid_transition("missing", "found")
        assert not is_valid_transition("available", "found")


class TestTerminalState:
    """Retired is terminal."""

    def test_retired_has_no_actions(self):
        assert available_actions(AssetStatus.RETIRED) == []
        assert is_terminal("retired")

    @pytest.mark.parametrize("action", list(ActionType))
    def test_every_action_rejected_from_retired(self, action):
        for condition in (None, *ConditionStatus):
            assert next_status(AssetStatus.RETIRED, action, condition) is None

    @pytest.mark.parametrize(
        "status", [s for s in AssetStatus if s is not AssetStatus.RETIRED]
    )
    def test_other_statuses_not_terminal(self, status):
        assert not is_terminal(status)


class TestQueries:
    """Helpers built on top of the table."""

    def test_available_actions_for_assigned_lists_checkin_once(self):
        assert available_actions("assigned") == [
            ActionType.CHECKIN,
            ActionType.REPORT_LOST,
        ]

    def test_available_actions_for_available(self):
        assert available_actions("available") == [
            ActionType.CHECKOUT,
            ActionType.SEND_TO_REPAIR,
            ActionType.DISPOSE,
        ]

    def test_source_statuses_for_dispose(self):
        assert source_statuses("dispose") == [
            AssetStatus.AVAILABLE,
            AssetStatus.REPAIR,
            AssetStatus.MISSING,
        ]

    def test_describe_known_transition(self):
        assert (
            describe_transition("assigned", "repair")
            == "Asset checked in (damaged, sent for repair)"
        )

    def test_describe_falls_back_to_generic_sentence(self):
        assert (
            describe_transition("retired", "available")
            == "Status changed from retired to available"
        )
