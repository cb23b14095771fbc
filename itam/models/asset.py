"""
Asset models.

``Asset.status`` and ``Asset.current_holder_id`` are written only by the
transaction processor.  Two CHECK constraints back that up in the
database: the status is one of the lifecycle values, and a holder is
present exactly when the asset is assigned.
"""

import uuid

from itam.extensions import db
from itam.state_machine import INITIAL_STATUS, AssetStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in AssetStatus)


class Category(db.Model):
    """Asset category (e.g., Laptop, Monitor); drives the tag prefix."""

    __tablename__ = "category"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    uuid = db.Column(
        db.String(36),
        unique=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    assets = db.relationship("Asset", back_populates="category", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Category {self.name}>"


class Location(db.Model):
    """Physical location where assets are kept or deployed."""

    __tablename__ = "location"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    uuid = db.Column(
        db.String(36),
        unique=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    name = db.Column(db.String(150), unique=True, nullable=False)
    address = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    assets = db.relationship("Asset", back_populates="location", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Location {self.name}>"


class Asset(db.Model):
    """
    A specific physical piece of IT equipment.

    ``uuid`` is the identifier exposed to clients; ``id`` stays
    internal.  ``version`` is bumped on every flush and makes a
    concurrent write against a stale row fail instead of overwriting it.
    """

    __tablename__ = "asset"
    __table_args__ = (
        db.CheckConstraint(f"status IN ({_STATUS_VALUES})", name="CK_asset_status"),
        db.CheckConstraint(
            "(status = 'assigned' AND current_holder_id IS NOT NULL) "
            "OR (status <> 'assigned' AND current_holder_id IS NULL)",
            name="CK_asset_holder_matches_status",
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    uuid = db.Column(
        db.String(36),
        unique=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    name = db.Column(db.String(150), nullable=False, index=True)
    asset_tag = db.Column(db.String(50), unique=True, nullable=False)
    serial_number = db.Column(db.String(100), unique=True, nullable=False)
    category_id = db.Column(
        db.Integer, db.ForeignKey("category.id"), nullable=True, index=True
    )
    location_id = db.Column(
        db.Integer, db.ForeignKey("location.id"), nullable=True, index=True
    )
    current_holder_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )
    status = db.Column(
        db.String(20),
        nullable=False,
        default=INITIAL_STATUS.value,
        index=True,
    )
    purchase_date = db.Column(db.Date, nullable=True)
    price = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    specifications = db.Column(db.JSON, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version}

    # -- Relationships -----------------------------------------------------
    category = db.relationship("Category", back_populates="assets")
    location = db.relationship("Location", back_populates="assets")
    holder = db.relationship("User", back_populates="held_assets")
    transactions = db.relationship(
        "Transaction", back_populates="asset", lazy="dynamic"
    )

    def to_dict(self) -> dict:
        """Serialize for JSON responses."""
        return {
            "uuid": self.uuid,
            "name": self.name,
            "asset_tag": self.asset_tag,
            "serial_number": self.serial_number,
            "status": self.status,
            "holder_id": self.holder.uuid if self.holder else None,
            "category": self.category.name if self.category else None,
            "location": self.location.name if self.location else None,
            "purchase_date": (
                self.purchase_date.isoformat() if self.purchase_date else None
            ),
            "price": str(self.price) if self.price is not None else None,
            "specifications": self.specifications,
            "notes": self.notes,
        }

    def __repr__(self) -> str:
        return f"<Asset {self.asset_tag} status={self.status}>"
