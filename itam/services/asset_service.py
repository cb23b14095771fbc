"""
Asset service: registration, descriptive edits, guarded deletion and
read-side queries for assets.

Status and holder are deliberately absent from every write here: new
assets start ``available`` with no holder, and every later change goes
through ``transaction_service``.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import current_app
from sqlalchemy import desc, func

from itam.errors import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from itam.extensions import db
from itam.models.asset import Asset, Category, Location
from itam.models.transaction import Transaction
from itam.state_machine import (
    INITIAL_STATUS,
    AssetStatus,
    available_actions,
)

logger = logging.getLogger(__name__)

# Fields callers may change after registration.
EDITABLE_FIELDS = (
    "name",
    "asset_tag",
    "serial_number",
    "category_id",
    "location_id",
    "purchase_date",
    "price",
    "specifications",
    "notes",
)

# Lifecycle fields owned by the transaction processor.
_LIFECYCLE_FIELDS = ("status", "current_holder_id")

CATEGORY_PREFIXES = {
    "laptop": "LPT",
    "monitor": "MON",
    "server": "SRV",
    "printer": "PRT",
    "scanner": "SCN",
    "keyboard": "KBD",
    "mouse": "MOU",
    "headset": "HST",
    "webcam": "WBC",
    "router": "RTR",
    "switch": "SWT",
    "ups": "UPS",
    "projector": "PRJ",
    "phone": "PHN",
    "tablet": "TAB",
    "desktop": "DSK",
    "storage": "STR",
    "cable": "CBL",
    "adapter": "ADP",
    "other": "OTH",
}


# =========================================================================
# Asset tags
# =========================================================================


def get_category_prefix(category_name: str | None, default: str = "AST") -> str:
    """
    Three-letter tag prefix for a category name.

    Exact matches win, then substring matches either way, then the
    first three letters of the name.
    """
    if not category_name or not category_name.strip():
        return default

    normalized = category_name.strip().lower()
    if normalized in CATEGORY_PREFIXES:
        return CATEGORY_PREFIXES[normalized]

    for key, prefix in CATEGORY_PREFIXES.items():
        if key in normalized or normalized in key:
            return prefix

    return category_name.strip()[:3].upper()


def generate_asset_tag(category_name: str | None = None) -> str:
    """
    Next free tag of the form ``PREFIX-YEAR-NNNN`` (e.g. LPT-2026-0001).

    The sequence restarts every year and per prefix.
    """
    prefix = get_category_prefix(
        category_name, current_app.config.get("ASSET_TAG_DEFAULT_PREFIX", "AST")
    )
    year = datetime.now(timezone.utc).year
    stem = f"{prefix}-{year}-"

    last = (
        db.session.query(Asset.asset_tag)
        .filter(Asset.asset_tag.like(f"{stem}%"))
        .order_by(desc(Asset.asset_tag))
        .first()
    )

    sequence = 1
    if last is not None:
        try:
            sequence = int(last[0].rsplit("-", 1)[1]) + 1
        except (IndexError, ValueError):
            logger.warning("Ignoring malformed asset tag %s", last[0])

    tag = f"{stem}{sequence:04d}"
    while Asset.query.filter_by(asset_tag=tag).first() is not None:
        sequence += 1
        tag = f"{stem}{sequence:04d}"
    return tag


# =========================================================================
# Lookups
# =========================================================================


def get_asset(asset_id: str) -> Asset:
    """
    Return an asset by its external identifier.

    Raises:
        NotFoundError: If the asset does not exist.
    """
    asset = Asset.query.filter_by(uuid=asset_id).first()
    if asset is None:
        raise NotFoundError("Asset not found")
    return asset


def _get_category(category_id: str | None) -> Category | None:
    if category_id is None or category_id == "":
        return None
    if not isinstance(category_id, str):
        raise ValidationError(
            "Invalid category id format",
            [{"field": "category_id", "message": "Invalid category id format"}],
        )
    category = Category.query.filter_by(uuid=category_id).first()
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _get_location(location_id: str | None) -> Location | None:
    if location_id is None or location_id == "":
        return None
    if not isinstance(location_id, str):
        raise ValidationError(
            "Invalid location id format",
            [{"field": "location_id", "message": "Invalid location id format"}],
        )
    location = Location.query.filter_by(uuid=location_id).first()
    if location is None:
        raise NotFoundError("Location not found")
    return location


# =========================================================================
# Writes
# =========================================================================


def register_asset(
    name: str,
    serial_number: str,
    asset_tag: str | None = None,
    category_id: str | None = None,
    location_id: str | None = None,
    purchase_date: date | str | None = None,
    price: Decimal | str | int | None = None,
    specifications: dict | None = None,
    notes: str | None = None,
) -> Asset:
    """
    Create a new asset in the initial lifecycle state.

    Args:
        name:           Display name (2-150 characters).
        serial_number:  Manufacturer serial; must be unique.
        asset_tag:      Optional tag; generated from the category if blank.
        category_id:    External ID of the category, if any.
        location_id:    External ID of the location, if any.
        purchase_date:  Date or ISO date string.
        price:          Purchase price; defaults to 0.
        specifications: Free-form JSON object.
        notes:          Optional notes.

    Returns:
        The new Asset, ``available`` with no holder.

    Raises:
        ValidationError: On missing or malformed descriptive fields.
        NotFoundError:   If the category or location does not exist.
        ConflictError:   If the tag or serial number is already used.
    """
    errors: list[dict[str, str]] = []
    name = _parse_name(name, errors)
    serial_number = _parse_text(
        serial_number, "serial_number", "Serial number", errors,
        required=True, max_length=100,
    )
    asset_tag = _parse_text(asset_tag, "asset_tag", "Asset tag", errors, max_length=50)
    parsed_date = _parse_date(purchase_date, errors)
    parsed_price = _parse_price(price, errors)
    specifications = _parse_specifications(specifications, errors)
    notes = _parse_text(notes, "notes", "Notes", errors)
    if errors:
        raise ValidationError(", ".join(e["message"] for e in errors), errors)

    category = _get_category(category_id)
    location = _get_location(location_id)

    if Asset.query.filter_by(serial_number=serial_number).first() is not None:
        raise ConflictError("Serial number already exists")

    if asset_tag is not None:
        if Asset.query.filter_by(asset_tag=asset_tag).first() is not None:
            raise ConflictError("Asset tag already exists")
    else:
        asset_tag = generate_asset_tag(category.name if category else None)

    asset = Asset(
        name=name,
        asset_tag=asset_tag,
        serial_number=serial_number,
        category=category,
        location=location,
        purchase_date=parsed_date,
        price=parsed_price,
        specifications=specifications,
        notes=notes,
        status=INITIAL_STATUS.value,
        current_holder_id=None,
    )
    db.session.add(asset)
    db.session.commit()

    logger.info("Registered asset %s (%s)", asset.asset_tag, asset.uuid)
    return asset


def update_asset(asset_id: str, changes: dict[str, Any]) -> Asset:
    """
    Change descriptive attributes of an asset.

    Every change is checked and every reference resolved before the
    asset is touched, so a rejected update leaves it as it was.

    Raises:
        ValidationError: If ``changes`` touches status or holder, names
                         an unknown field, or has malformed values.
        NotFoundError:   If the asset, category or location is missing.
        ConflictError:   If the new tag or serial number is taken.
    """
    lifecycle = [key for key in changes if key in _LIFECYCLE_FIELDS]
    if lifecycle:
        raise ValidationError(
            "Status and holder can only change through a transaction",
            [
                {"field": key, "message": "Use a lifecycle transaction"}
                for key in lifecycle
            ],
        )
    unknown = [key for key in changes if key not in EDITABLE_FIELDS]
    if unknown:
        raise ValidationError(
            f"Unknown asset fields: {', '.join(sorted(unknown))}",
            [{"field": key, "message": "Unknown field"} for key in unknown],
        )

    asset = get_asset(asset_id)
    errors: list[dict[str, str]] = []
    values: dict[str, Any] = {}

    if "name" in changes:
        values["name"] = _parse_name(changes["name"], errors)
    if "asset_tag" in changes:
        values["asset_tag"] = _parse_text(
            changes["asset_tag"], "asset_tag", "Asset tag", errors,
            required=True, max_length=50,
        )
    if "serial_number" in changes:
        values["serial_number"] = _parse_text(
            changes["serial_number"], "serial_number", "Serial number", errors,
            required=True, max_length=100,
        )
    if "purchase_date" in changes:
        values["purchase_date"] = _parse_date(changes["purchase_date"], errors)
    if "price" in changes:
        values["price"] = _parse_price(changes["price"], errors)
    if "specifications" in changes:
        values["specifications"] = _parse_specifications(
            changes["specifications"], errors
        )
    if "notes" in changes:
        values["notes"] = _parse_text(changes["notes"], "notes", "Notes", errors)
    if errors:
        raise ValidationError(", ".join(e["message"] for e in errors), errors)

    if "category_id" in changes:
        values["category"] = _get_category(changes["category_id"])
    if "location_id" in changes:
        values["location"] = _get_location(changes["location_id"])

    if "asset_tag" in values:
        taken = Asset.query.filter(
            Asset.asset_tag == values["asset_tag"], Asset.id != asset.id
        ).first()
        if taken is not None:
            raise ConflictError("Asset tag already exists")
    if "serial_number" in values:
        taken = Asset.query.filter(
            Asset.serial_number == values["serial_number"], Asset.id != asset.id
        ).first()
        if taken is not None:
            raise ConflictError("Serial number already exists")

    for key, value in values.items():
        setattr(asset, key, value)
    db.session.commit()

    logger.info("Updated asset %s", asset.uuid)
    return asset


def delete_asset(asset_id: str) -> None:
    """
    Permanently remove an asset that has never been transacted.

    Assets with history are retired with a ``dispose`` transaction
    instead so the audit trail survives.

    Raises:
        NotFoundError:               If the asset does not exist.
        InvalidStateTransitionError: If the asset is currently assigned.
        ConflictError:               If the asset has transaction history.
    """
    asset = get_asset(asset_id)

    if asset.status == AssetStatus.ASSIGNED.value:
        raise InvalidStateTransitionError(
            asset.status,
            "delete",
            "Cannot delete assigned asset. Please check-in the asset first.",
        )

    history_count = asset.transactions.count()
    if history_count:
        raise ConflictError(
            f"Cannot permanently delete asset with {history_count} "
            "transaction records. Dispose it instead."
        )

    db.session.delete(asset)
    db.session.commit()
    logger.info("Deleted asset %s", asset_id)


# =========================================================================
# Read-side queries
# =========================================================================


def get_asset_history(asset_id: str, page: int = 1, per_page: int = 20):
    """
    Transaction history for one asset, newest first.

    Returns:
        A Flask-SQLAlchemy pagination object.

    Raises:
        NotFoundError: If the asset does not exist.
    """
    asset = get_asset(asset_id)
    return (
        Transaction.query.filter_by(asset_id=asset.id)
        .order_by(desc(Transaction.transaction_date), desc(Transaction.id))
        .paginate(page=page, per_page=per_page, error_out=False)
    )


def get_available_actions(asset_id: str) -> list[str]:
    """Wire names of the actions legal for the asset's current status."""
    asset = get_asset(asset_id)
    return [action.value for action in available_actions(asset.status)]


def get_assets_by_status(status: str) -> list[Asset]:
    """Assets currently in ``status``, ordered by name."""
    try:
        status = AssetStatus(status).value
    except ValueError as exc:
        raise ValidationError(f"Unknown status '{status}'") from exc
    return Asset.query.filter_by(status=status).order_by(Asset.name).all()


def count_by_status() -> dict[str, int]:
    """Number of assets per lifecycle status, zero-filled."""
    counts = {status.value: 0 for status in AssetStatus}
    rows = db.session.query(Asset.status, func.count(Asset.id)).group_by(Asset.status)
    for status, total in rows:
        counts[status] = total
    return counts


# -- Parsing helpers -------------------------------------------------------


def _parse_text(
    value,
    field: str,
    label: str,
    errors: list[dict[str, str]],
    required: bool = False,
    max_length: int | None = None,
) -> str | None:
    """Stripped text, or ``None`` when blank and optional."""
    if value is not None and not isinstance(value, str):
        errors.append({"field": field, "message": f"{label} must be text"})
        return None
    value = (value or "").strip()
    if not value:
        if required:
            errors.append({"field": field, "message": f"{label} is required"})
        return None
    if max_length is not None and len(value) > max_length:
        errors.append(
            {"field": field, "message": f"{label} cannot exceed {max_length} characters"}
        )
        return None
    return value


def _parse_name(value, errors: list[dict[str, str]]) -> str | None:
    if value is not None and not isinstance(value, str):
        errors.append({"field": "name", "message": "Name must be text"})
        return None
    name = (value or "").strip()
    if not 2 <= len(name) <= 150:
        errors.append({"field": "name", "message": "Name must be 2-150 characters"})
        return None
    return name


def _parse_specifications(value, errors: list[dict[str, str]]) -> dict | None:
    if value is None or isinstance(value, dict):
        return value
    errors.append(
        {"field": "specifications", "message": "Specifications must be an object"}
    )
    return None


def _parse_date(value, errors: list[dict[str, str]]) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        errors.append(
            {"field": "purchase_date", "message": "Purchase date must be YYYY-MM-DD"}
        )
        return None


def _parse_price(value, errors: list[dict[str, str]]) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, bool):
        errors.append({"field": "price", "message": "Price must be a number"})
        return Decimal("0.00")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        errors.append({"field": "price", "message": "Price must be a number"})
        return Decimal("0.00")
    # NaN and Infinity parse but cannot be compared or stored.
    if not price.is_finite():
        errors.append({"field": "price", "message": "Price must be a finite number"})
        return Decimal("0.00")
    if price < 0:
        errors.append({"field": "price", "message": "Price cannot be negative"})
    return price
