"""
Routes for the transactions blueprint.

Each POST endpoint hands the JSON body to the transaction processor
unchanged; validation, state checks and persistence all happen there.
Errors raised by the processor are rendered by the handlers registered
in the application factory.
"""

from datetime import datetime

from flask import current_app, request
from flask_login import current_user, login_required

from itam.blueprints.transactions import bp
from itam.decorators import role_required
from itam.errors import ValidationError
from itam.models.user import ROLE_ADMIN, ROLE_STAFF
from itam.services import transaction_service
from itam.state_machine import ActionType

_SUCCESS_MESSAGES = {
    ActionType.CHECKOUT: "Asset checked out successfully",
    ActionType.CHECKIN: "Asset checked in successfully",
    ActionType.SEND_TO_REPAIR: "Asset sent to repair successfully",
    ActionType.COMPLETE_REPAIR: "Repair completed successfully",
    ActionType.REPORT_LOST: "Asset reported as lost",
    ActionType.REPORT_FOUND: "Asset reported as found",
    ActionType.DISPOSE: "Asset disposed/retired successfully",
}


def _run(action: ActionType):
    """Process ``action`` for the current request and build the response."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    processor = transaction_service.default_processor()
    result = processor.process(action, payload, performed_by=current_user.id)
    return {
        "message": _SUCCESS_MESSAGES[action],
        "description": result.description,
        "asset": result.asset.to_dict(),
        "transaction": result.transaction.to_dict(),
    }, 201


@bp.route("/checkout", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def checkout():
    """Check an available asset out to an employee."""
    return _run(ActionType.CHECKOUT)


@bp.route("/checkin", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def checkin():
    """Check an assigned asset back in with its condition."""
    return _run(ActionType.CHECKIN)


@bp.route("/repair", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def send_to_repair():
    return _run(ActionType.SEND_TO_REPAIR)


@bp.route("/complete-repair", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def complete_repair():
    return _run(ActionType.COMPLETE_REPAIR)


@bp.route("/report-lost", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def report_lost():
    return _run(ActionType.REPORT_LOST)


@bp.route("/report-found", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def report_found():
    return _run(ActionType.REPORT_FOUND)


@bp.route("/dispose", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN)
def dispose():
    """Retire an asset.  Admin only."""
    return _run(ActionType.DISPOSE)


@bp.route("/", methods=["GET"])
@login_required
def list_transactions():
    """
    Paginated transaction log, newest first.

    Query params: ``page``, ``per_page``, ``action_type``,
    ``start_date`` and ``end_date`` (ISO-8601).
    """
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get(
        "per_page", current_app.config["HISTORY_PAGE_SIZE"], type=int
    )
    action_type = request.args.get("action_type") or None
    if action_type and action_type not in {a.value for a in ActionType}:
        raise ValidationError(f"Unknown action type '{action_type}'")

    pagination = transaction_service.get_transactions(
        page=page,
        per_page=per_page,
        action_type=action_type,
        start_date=_date_arg("start_date"),
        end_date=_date_arg("end_date"),
    )
    return {
        "transactions": [t.to_dict() for t in pagination.items],
        "pagination": {
            "page": pagination.page,
            "per_page": pagination.per_page,
            "total": pagination.total,
            "pages": pagination.pages,
        },
    }


@bp.route("/<transaction_id>", methods=["GET"])
@login_required
def get_transaction(transaction_id):
    transaction = transaction_service.get_transaction_by_uuid(transaction_id)
    return {"transaction": transaction.to_dict()}


def _date_arg(name: str) -> datetime | None:
    value = request.args.get(name)
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an ISO-8601 date") from exc
