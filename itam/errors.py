"""
Exception taxonomy for the asset lifecycle.

Services raise these; the application factory maps each ``kind`` to an
HTTP status.  A malformed request (``ValidationError``) is kept apart
from a well-formed request the state machine refuses
(``InvalidStateTransitionError``) so callers can react differently.
"""

from typing import Any


class AssetLifecycleError(Exception):
    """Base class for every error the lifecycle core raises on purpose."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Structured form used by the JSON error handlers."""
        return {"kind": self.kind, "message": self.message}


class ValidationError(AssetLifecycleError, ValueError):
    """
    Request payload is malformed or missing required fields.

    ``fields`` holds one ``{"field": ..., "message": ...}`` entry per
    failed rule so a form can highlight each input.
    """

    kind = "validation_error"

    def __init__(self, message: str, fields: list[dict[str, str]] | None = None):
        super().__init__(message)
        self.fields = fields or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class NotFoundError(AssetLifecycleError, LookupError):
    """A referenced asset or user does not exist."""

    kind = "not_found"


class InvalidStateTransitionError(AssetLifecycleError):
    """The asset's current status forbids the requested action."""

    kind = "invalid_state_transition"

    def __init__(self, current_status: str, action: str, message: str):
        super().__init__(message)
        self.current_status = current_status
        self.action = action

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current_status
        data["action"] = self.action
        return data


class ConflictError(AssetLifecycleError):
    """The operation collides with existing data (duplicates, history)."""

    kind = "conflict"
