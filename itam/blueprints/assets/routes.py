"""
Routes for the assets blueprint.

Only descriptive data is written here.  Status changes are made
exclusively through the transactions blueprint.
"""

from flask import current_app, request
from flask_login import login_required

from itam.blueprints.assets import bp
from itam.decorators import role_required
from itam.errors import ValidationError
from itam.models.user import ROLE_ADMIN, ROLE_STAFF
from itam.services import asset_service


def _json_object() -> dict:
    """The request's JSON body; an absent body counts as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(
            "Request body must be an object",
            [{"field": "body", "message": "Request body must be an object"}],
        )
    return data


@bp.route("/", methods=["POST"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def create_asset():
    """Register a new asset; it starts ``available`` with no holder."""
    data = _json_object()
    asset = asset_service.register_asset(
        name=data.get("name"),
        serial_number=data.get("serial_number"),
        asset_tag=data.get("asset_tag"),
        category_id=data.get("category_id"),
        location_id=data.get("location_id"),
        purchase_date=data.get("purchase_date"),
        price=data.get("price"),
        specifications=data.get("specifications"),
        notes=data.get("notes"),
    )
    return {"asset": asset.to_dict()}, 201


@bp.route("/summary", methods=["GET"])
@login_required
def status_summary():
    """Asset counts per lifecycle status."""
    return {"by_status": asset_service.count_by_status()}


@bp.route("/<asset_id>", methods=["GET"])
@login_required
def get_asset(asset_id):
    asset = asset_service.get_asset(asset_id)
    return {"asset": asset.to_dict()}


@bp.route("/<asset_id>", methods=["PATCH"])
@login_required
@role_required(ROLE_ADMIN, ROLE_STAFF)
def update_asset(asset_id):
    """Edit descriptive fields; status and holder are rejected."""
    data = _json_object()
    asset = asset_service.update_asset(asset_id, data)
    return {"asset": asset.to_dict()}


@bp.route("/<asset_id>", methods=["DELETE"])
@login_required
@role_required(ROLE_ADMIN)
def delete_asset(asset_id):
    asset_service.delete_asset(asset_id)
    return {"message": "Asset permanently deleted"}


@bp.route("/<asset_id>/history", methods=["GET"])
@login_required
def asset_history(asset_id):
    """Transaction history for one asset, newest first."""
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get(
        "per_page", current_app.config["HISTORY_PAGE_SIZE"], type=int
    )
    pagination = asset_service.get_asset_history(asset_id, page=page, per_page=per_page)
    return {
        "history": [t.to_dict() for t in pagination.items],
        "pagination": {
            "page": pagination.page,
            "per_page": pagination.per_page,
            "total": pagination.total,
            "pages": pagination.pages,
        },
    }


@bp.route("/<asset_id>/actions", methods=["GET"])
@login_required
def asset_actions(asset_id):
    """Actions that are legal for the asset right now."""
    return {"actions": asset_service.get_available_actions(asset_id)}
