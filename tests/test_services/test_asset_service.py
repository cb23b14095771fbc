"""
Tests for asset_service: registration, edits, guarded deletion and
read-side queries.
"""

import re
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from itam.errors import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from itam.models.asset import Asset
from itam.models.transaction import ImmutableTransactionError, Transaction
from itam.services import asset_service, transaction_service


class TestRegisterAsset:
    """New assets start available with no holder."""

    def test_registers_in_initial_state(self, db_session, laptop_category):
        asset = asset_service.register_asset(
            name="MacBook Pro 14",
            serial_number="C02XYZ123",
            category_id=laptop_category.uuid,
            purchase_date="2026-02-14",
            price="2499.00",
        )
        assert asset.status == "available"
        assert asset.current_holder_id is None
        assert asset.purchase_date == date(2026, 2, 14)
        assert asset.price == Decimal("2499.00")
        assert db_session.get(Asset, asset.id) is asset

    def test_generates_tag_from_category(self, laptop_category):
        first = asset_service.register_asset(
            "Laptop A", "SN-A", category_id=laptop_category.uuid
        )
        second = asset_service.register_asset(
            "Laptop B", "SN-B", category_id=laptop_category.uuid
        )
        assert re.fullmatch(r"LPT-\d{4}-0001", first.asset_tag)
        assert second.asset_tag.endswith("-0002")

    def test_default_prefix_without_category(self, app):  # pylint: disable=unused-argument
        asset = asset_service.register_asset("Mystery box", "SN-X")
        assert asset.asset_tag.startswith("AST-")

    def test_explicit_tag_kept(self, app):  # pylint: disable=unused-argument
        asset = asset_service.register_asset("Dock", "SN-D", asset_tag="DOCK-7")
        assert asset.asset_tag == "DOCK-7"

    def test_duplicate_serial_rejected(self, app):  # pylint: disable=unused-argument
        asset_service.register_asset("Monitor", "SN-DUP")
        with pytest.raises(ConflictError, match="Serial number already exists"):
            asset_service.register_asset("Monitor 2", "SN-DUP")

    def test_duplicate_tag_rejected(self, app):  # pylint: disable=unused-argument
        asset_service.register_asset("Monitor", "SN-1", asset_tag="MON-1")
        with pytest.raises(ConflictError, match="Asset tag already exists"):
            asset_service.register_asset("Monitor 2", "SN-2", asset_tag="MON-1")

    def test_invalid_fields_reported_together(self, app):  # pylint: disable=unused-argument
        with pytest.raises(ValidationError) as excinfo:
            asset_service.register_asset("X", "", price="-5")
        fields = [f["field"] for f in excinfo.value.fields]
        assert fields == ["name", "serial_number", "price"]

    def test_unknown_category(self, app):  # pylint: disable=unused-argument
        with pytest.raises(NotFoundError, match="Category not found"):
            asset_service.register_asset(
                "Laptop", "SN-C", category_id=str(uuid.uuid4())
            )


    @pytest.mark.parametrize(
        "kwargs,field",
        [
            ({"name": 12345, "serial_number": "SN-N"}, "name"),
            ({"name": "Dock", "serial_number": 998877}, "serial_number"),
            ({"name": "Dock", "serial_number": "SN-T", "asset_tag": 42}, "asset_tag"),
        ],
    )
    def test_non_text_fields_rejected(self, app, kwargs, field):  # pylint: disable=unused-argument
        with pytest.raises(ValidationError) as excinfo:
            asset_service.register_asset(**kwargs)
        assert [f["field"] for f in excinfo.value.fields] == [field]
        assert Asset.query.count() == 0

    @pytest.mark.parametrize("price", ["NaN", "Infinity", "-inf", True])
    def test_non_numeric_price_rejected(self, app, price):  # pylint: disable=unused-argument
        with pytest.raises(ValidationError) as excinfo:
            asset_service.register_asset("Dock", "SN-P", price=price)
        assert [f["field"] for f in excinfo.value.fields] == ["price"]

class TestCategoryPrefix:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Laptop", "LPT"),
            ("Gaming Laptops", "LPT"),
            ("UPS", "UPS"),
            ("Whiteboard", "WHI"),
            (None, "AST"),
            ("   ", "AST"),
        ],
    )
    def test_prefix(self, name, expected):
        assert asset_service.get_category_prefix(name) == expected


class TestUpdateAsset:
    def test_descriptive_fields_change(self, make_asset):
        asset = make_asset()
        updated = asset_service.update_asset(
            asset.uuid, {"name": "ThinkPad X1", "notes": "Docking kit included"}
        )
        assert updated.name == "ThinkPad X1"
        assert updated.notes == "Docking kit included"

    @pytest.mark.parametrize(
        "changes", [{"status": "retired"}, {"current_holder_id": 1}]
    )
    def test_lifecycle_fields_rejected(self, make_asset, changes):
        asset = make_asset()
        with pytest.raises(ValidationError, match="only change through a transaction"):
            asset_service.update_asset(asset.uuid, changes)
        assert asset.status == "available"

    def test_unknown_field_rejected(self, make_asset):
        asset = make_asset()
        with pytest.raises(ValidationError, match="Unknown asset fields: colour"):
            asset_service.update_asset(asset.uuid, {"colour": "red"})

    def test_serial_collision(self, make_asset):
        first = make_asset()
        second = make_asset()
        with pytest.raises(ConflictError):
            asset_service.update_asset(
                second.uuid, {"serial_number": first.serial_number}
            )


    @pytest.mark.parametrize(
        "changes,field",
        [
            ({"name": 123}, "name"),
            ({"asset_tag": 42}, "asset_tag"),
            ({"serial_number": ["SN"]}, "serial_number"),
            ({"notes": {"text": "x"}}, "notes"),
            ({"specifications": "16GB"}, "specifications"),
            ({"price": "NaN"}, "price"),
        ],
    )
    def test_malformed_values_rejected(self, make_asset, changes, field):
        asset = make_asset()
        with pytest.raises(ValidationError) as excinfo:
            asset_service.update_asset(asset.uuid, changes)
        assert [f["field"] for f in excinfo.value.fields] == [field]

    def test_failed_lookup_leaves_asset_untouched(self, db_session, make_asset):
        asset = make_asset()
        original_serial = asset.serial_number
        with pytest.raises(NotFoundError, match="Category not found"):
            asset_service.update_asset(
                asset.uuid,
                {"serial_number": "SN-NEW-1", "category_id": str(uuid.uuid4())},
            )
        assert not db_session.dirty
        db_session.expire_all()
        assert db_session.get(Asset, asset.id).serial_number == original_serial

    def test_conflict_leaves_asset_untouched(self, db_session, make_asset):
        first = make_asset()
        second = make_asset()
        with pytest.raises(ConflictError):
            asset_service.update_asset(
                second.uuid,
                {"name": "Renamed", "serial_number": first.serial_number},
            )
        assert not db_session.dirty
        assert second.name != "Renamed"

class TestDeleteAsset:
    def test_deletes_untouched_asset(self, make_asset):
        asset = make_asset()
        asset_service.delete_asset(asset.uuid)
        with pytest.raises(NotFoundError):
            asset_service.get_asset(asset.uuid)

    def test_assigned_asset_cannot_be_deleted(self, make_asset, employee):
        asset = make_asset(status="assigned", holder=employee)
        with pytest.raises(InvalidStateTransitionError, match="check-in the asset"):
            asset_service.delete_asset(asset.uuid)

    def test_asset_with_history_cannot_be_deleted(self, make_asset, admin_user):
        asset = make_asset()
        transaction_service.default_processor().send_to_repair(
            asset.uuid, "Keyboard sticky", performed_by=admin_user.id
        )
        with pytest.raises(ConflictError, match="1 transaction records"):
            asset_service.delete_asset(asset.uuid)


class TestReadQueries:
    def test_history_newest_first(self, make_asset, admin_user, employee):
        asset = make_asset()
        processor = transaction_service.default_processor()
        processor.checkout(
            asset.uuid,
            employee.uuid,
            performed_by=admin_user.id,
            transaction_date="2026-03-01T09:00:00",
        )
        processor.checkin(
            asset.uuid,
            "good",
            performed_by=admin_user.id,
            transaction_date="2026-03-05T17:00:00",
        )
        history = asset_service.get_asset_history(asset.uuid)
        assert [t.action_type for t in history.items] == ["checkin", "checkout"]
        assert history.total == 2

    def test_available_actions(self, make_asset):
        asset = make_asset(status="repair")
        assert asset_service.get_available_actions(asset.uuid) == [
            "complete_repair",
            "dispose",
        ]

    def test_count_by_status_zero_filled(self, make_asset, employee):
        make_asset()
        make_asset()
        make_asset(status="assigned", holder=employee)
        assert asset_service.count_by_status() == {
            "available": 2,
            "assigned": 1,
            "repair": 0,
            "missing": 0,
            "retired": 0,
        }

    def test_assets_by_status(self, make_asset):
        make_asset(status="missing", name="Lost phone")
        make_asset()
        assert [a.name for a in asset_service.get_assets_by_status("missing")] == [
            "Lost phone"
        ]
        with pytest.raises(ValidationError):
            asset_service.get_assets_by_status("vaporized")


class TestTransactionImmutability:
    """Logged transactions cannot be edited or removed through the ORM."""

    def test_update_rejected(self, db_session, make_asset, admin_user):
        asset = make_asset()
        result = transaction_service.default_processor().dispose(
            asset.uuid, "Obsolete", performed_by=admin_user.id
        )
        entry = db_session.get(Transaction, result.transaction.id)
        entry.notes = "rewritten"
        with pytest.raises(ImmutableTransactionError):
            db_session.flush()
        db_session.rollback()

    def test_delete_rejected(self, db_session, make_asset, admin_user):
        asset = make_asset()
        result = transaction_service.default_processor().dispose(
            asset.uuid, "Obsolete", performed_by=admin_user.id
        )
        db_session.delete(db_session.get(Transaction, result.transaction.id))
        with pytest.raises(ImmutableTransactionError):
            db_session.flush()
        db_session.rollback()


class TestDatabaseConstraints:
    def test_holder_without_assigned_status_rejected(self, db_session, employee):
        db_session.add(
            Asset(
                name="Rogue",
                asset_tag="RG-1",
                serial_number="RG-1",
                status="available",
                current_holder_id=employee.id,
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
