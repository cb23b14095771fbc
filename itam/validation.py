"""
Request validation for lifecycle actions.

Each action has a tuple of rules.  A rule is a pure function that reads
the raw payload, writes the normalized value into ``cleaned`` and
returns the ``(field, message)`` pairs it rejects.  ``validate_request``
runs every rule for the action so a caller sees all problems at once,
and only fields some rule knows about survive into the cleaned dict.
"""

import uuid
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from itam.errors import ValidationError
from itam.state_machine import ActionType, ConditionStatus

NOTES_MAX_LENGTH = 1000

FieldErrors = list[tuple[str, str]]
Rule = Callable[[Mapping[str, Any], dict[str, Any]], FieldErrors]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# =========================================================================
# Rule builders
# =========================================================================


def uuid_field(name: str, label: str) -> Rule:
    """Required identifier that must parse as a UUID."""

    def rule(payload: Mapping[str, Any], cleaned: dict[str, Any]) -> FieldErrors:
        value = payload.get(name)
        if _is_blank(value):
            return [(name, f"{label} is required")]
        if not isinstance(value, str):
            return [(name, f"Invalid {label.lower()} format")]
        try:
            cleaned[name] = str(uuid.UUID(value.strip()))
        except ValueError:
            return [(name, f"Invalid {label.lower()} format")]
        return []

    return rule


def condition_field(name: str = "condition_status") -> Rule:
    """Required check-in condition, one of :class:`ConditionStatus`."""
    allowed = ", ".join(f"'{c.value}'" for c in ConditionStatus)

    def rule(payload: Mapping[str, Any], cleaned: dict[str, Any]) -> FieldErrors:
        value = payload.get(name)
        if _is_blank(value):
            return [(name, "Condition status is required")]
        try:
            cleaned[name] = ConditionStatus(value)
        except ValueError:
            return [(name, f"Condition status must be one of {allowed}")]
        return []

    return rule


def notes_field(
    required: bool | Callable[[Mapping[str, Any]], bool] = False,
    required_message: str = "Notes are required",
    name: str = "notes",
) -> Rule:
    """
    Free-text notes, bounded to ``NOTES_MAX_LENGTH`` characters.

    ``required`` may be a predicate over the payload for notes that are
    only mandatory in some cases (damaged or lost check-ins).
    """

    def rule(payload: Mapping[str, Any], cleaned: dict[str, Any]) -> FieldErrors:
        value = payload.get(name)
        is_required = required(payload) if callable(required) else required
        if value is not None and not isinstance(value, str):
            return [(name, "Notes must be text")]
        if value is not None and len(value) > NOTES_MAX_LENGTH:
            return [(name, f"Notes cannot exceed {NOTES_MAX_LENGTH} characters")]
        if _is_blank(value):
            if is_required:
                return [(name, required_message)]
            cleaned[name] = None
            return []
        cleaned[name] = value.strip()
        return []

    return rule


def date_field(name: str = "transaction_date") -> Rule:
    """Optional ISO-8601 timestamp; absent means "now" downstream."""

    def rule(payload: Mapping[str, Any], cleaned: dict[str, Any]) -> FieldErrors:
        value = payload.get(name)
        if _is_blank(value):
            cleaned[name] = None
            return []
        if isinstance(value, datetime):
            cleaned[name] = value
            return []
        if not isinstance(value, str):
            return [(name, "Invalid transaction date format")]
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            cleaned[name] = datetime.fromisoformat(text)
        except ValueError:
            return [(name, "Transaction date must be in ISO format")]
        return []

    return rule


def _damaged_or_lost(payload: Mapping[str, Any]) -> bool:
    return payload.get("condition_status") in (
        ConditionStatus.DAMAGED.value,
        ConditionStatus.LOST.value,
    )


# =========================================================================
# Per-action rule sets
# =========================================================================

_ASSET_ID = uuid_field("asset_id", "Asset ID")

ACTION_RULES: dict[ActionType, tuple[Rule, ...]] = {
    ActionType.CHECKOUT: (
        _ASSET_ID,
        uuid_field("user_id", "Employee ID"),
        date_field(),
        notes_field(),
    ),
    ActionType.CHECKIN: (
        _ASSET_ID,
        condition_field(),
        date_field(),
        notes_field(
            required=_damaged_or_lost,
            required_message="Notes are required when condition is damaged or lost",
        ),
    ),
    ActionType.SEND_TO_REPAIR: (
        _ASSET_ID,
        date_field(),
        notes_field(required=True, required_message="Repair notes/reason is required"),
    ),
    ActionType.COMPLETE_REPAIR: (
        _ASSET_ID,
        date_field(),
        notes_field(),
    ),
    ActionType.REPORT_LOST: (
        _ASSET_ID,
        date_field(),
        notes_field(
            required=True,
            required_message="Details about the lost asset are required",
        ),
    ),
    ActionType.REPORT_FOUND: (
        _ASSET_ID,
        date_field(),
        notes_field(),
    ),
    ActionType.DISPOSE: (
        _ASSET_ID,
        date_field(),
        notes_field(required=True, required_message="Disposal reason/notes are required"),
    ),
}


def validate_request(action: ActionType | str, payload: Any) -> dict[str, Any]:
    """
    Validate ``payload`` for ``action`` and return the cleaned fields.

    Unknown fields are dropped.  Every failing rule is reported.

    Raises:
        ValidationError: If the action is unknown or any rule fails.
    """
    try:
        action = ActionType(action)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown action '{action}'", [{"field": "action", "message": "Unknown action"}]
        ) from exc

    if not isinstance(payload, Mapping):
        raise ValidationError(
            "Request body must be an object",
            [{"field": "body", "message": "Request body must be an object"}],
        )

    cleaned: dict[str, Any] = {}
    errors: FieldErrors = []
    for rule in ACTION_RULES[action]:
        errors.extend(rule(payload, cleaned))

    if errors:
        raise ValidationError(
            ", ".join(message for _field, message in errors),
            [{"field": field, "message": message} for field, message in errors],
        )
    return cleaned
