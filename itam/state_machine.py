"""
Asset lifecycle transition table.

The table below is the only authority on which actions are legal in
which status.  It is plain data: the processor looks transitions up,
tests enumerate them, and nothing here has side effects.

Check-in is the one action whose target depends on the request: the
condition the asset comes back in picks the row, so check-in keys carry
the condition and every other key carries ``None``.
"""

from enum import Enum


class AssetStatus(str, Enum):
    """Lifecycle states.  An asset is in exactly one at any time."""

    AVAILABLE = "available"
    ASSIGNED = "assigned"
    REPAIR = "repair"
    MISSING = "missing"
    RETIRED = "retired"


class ActionType(str, Enum):
    """
    Actions that move an asset between states.

    Values double as the ``action_type`` tag stored on each transaction.
    """

    CHECKOUT = "checkout"
    CHECKIN = "checkin"
    SEND_TO_REPAIR = "repair"
    COMPLETE_REPAIR = "complete_repair"
    REPORT_LOST = "lost"
    REPORT_FOUND = "found"
    DISPOSE = "dispose"


class ConditionStatus(str, Enum):
    """Condition an asset is returned in at check-in."""

    GOOD = "good"
    DAMAGED = "damaged"
    LOST = "lost"


INITIAL_STATUS = AssetStatus.AVAILABLE

# (current_status) -> {(action, condition): next_status}
TRANSITIONS: dict[
    AssetStatus, dict[tuple[ActionType, ConditionStatus | None], AssetStatus]
] = {
    AssetStatus.AVAILABLE: {
        (ActionType.CHECKOUT, None): AssetStatus.ASSIGNED,
        (ActionType.SEND_TO_REPAIR, None): AssetStatus.REPAIR,
        (ActionType.DISPOSE, None): AssetStatus.RETIRED,
    },
    AssetStatus.ASSIGNED: {
        (ActionType.CHECKIN, ConditionStatus.GOOD): AssetStatus.AVAILABLE,
        (ActionType.CHECKIN, ConditionStatus.DAMAGED): AssetStatus.REPAIR,
        (ActionType.CHECKIN, ConditionStatus.LOST): AssetStatus.MISSING,
        (ActionType.REPORT_LOST, None): AssetStatus.MISSING,
    },
    AssetStatus.REPAIR: {
        (ActionType.COMPLETE_REPAIR, None): AssetStatus.AVAILABLE,
        (ActionType.DISPOSE, None): AssetStatus.RETIRED,
    },
    AssetStatus.MISSING: {
        (ActionType.REPORT_FOUND, None): AssetStatus.AVAILABLE,
        (ActionType.DISPOSE, None): AssetStatus.RETIRED,
    },
    # Terminal: no outgoing transitions.
    AssetStatus.RETIRED: {},
}

_DESCRIPTIONS: dict[tuple[AssetStatus, AssetStatus], str] = {
    (AssetStatus.AVAILABLE, AssetStatus.ASSIGNED): "Asset checked out to employee",
    (AssetStatus.AVAILABLE, AssetStatus.REPAIR): "Asset sent for repair",
    (AssetStatus.AVAILABLE, AssetStatus.RETIRED): "Asset disposed/retired",
    (AssetStatus.ASSIGNED, AssetStatus.AVAILABLE): "Asset checked in (good condition)",
    (AssetStatus.ASSIGNED, AssetStatus.REPAIR): (
        "Asset checked in (damaged, sent for repair)"
    ),
    (AssetStatus.ASSIGNED, AssetStatus.MISSING): "Asset reported lost/missing",
    (AssetStatus.REPAIR, AssetStatus.AVAILABLE): "Repair completed, asset available",
    (AssetStatus.REPAIR, AssetStatus.RETIRED): "Asset beyond repair, disposed",
    (AssetStatus.MISSING, AssetStatus.AVAILABLE): "Lost asset found and recovered",
    (AssetStatus.MISSING, AssetStatus.RETIRED): "Lost asset written off",
}


def next_status(
    current: AssetStatus | str,
    action: ActionType | str,
    condition: ConditionStatus | str | None = None,
) -> AssetStatus | None:
    """
    Return the status ``action`` leads to from ``current``.

    Returns ``None`` when the table has no entry, including for unknown
    status, action or condition values.
    """
    try:
        current = AssetStatus(current)
        action = ActionType(action)
        if condition is not None:
            condition = ConditionStatus(condition)
    except ValueError:
        return None
    if action is not ActionType.CHECKIN:
        condition = None
    return TRANSITIONS[current].get((action, condition))


def is_valid_transition(
    current: AssetStatus | str,
    action: ActionType | str,
    condition: ConditionStatus | str | None = None,
) -> bool:
    """True when the table defines a target for this request."""
    return next_status(current, action, condition) is not None


def available_actions(current: AssetStatus | str) -> list[ActionType]:
    """List the actions legal from ``current`` in table order, no repeats."""
    try:
        current = AssetStatus(current)
    except ValueError:
        return []
    actions: list[ActionType] = []
    for action, _condition in TRANSITIONS[current]:
        if action not in actions:
            actions.append(action)
    return actions


def source_statuses(action: ActionType | str) -> list[AssetStatus]:
    """Statuses from which ``action`` is legal for at least one condition."""
    action = ActionType(action)
    return [
        status
        for status, rows in TRANSITIONS.items()
        if any(key_action is action for key_action, _ in rows)
    ]


def is_terminal(status: AssetStatus | str) -> bool:
    """True for states with no outgoing transitions."""
    return not TRANSITIONS[AssetStatus(status)]


def describe_transition(
    from_status: AssetStatus | str, to_status: AssetStatus | str
) -> str:
    """Human-readable sentence for a status change."""
    from_status = AssetStatus(from_status)
    to_status = AssetStatus(to_status)
    return _DESCRIPTIONS.get(
        (from_status, to_status),
        f"Status changed from {from_status.value} to {to_status.value}",
    )
