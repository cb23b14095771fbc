"""
Transaction log model.

One row per applied lifecycle transition.  Rows are the audit trail and
are never changed or removed once written: the ORM listeners below turn
any attempt into an error before SQL is emitted.
"""

import uuid

from sqlalchemy import event

from itam.extensions import db


class ImmutableTransactionError(RuntimeError):
    """Raised when code tries to update or delete a logged transaction."""


class Transaction(db.Model):
    """
    Immutable history entry for a single asset transition.

    ``user_id`` is the subject of the action (the new holder on
    checkout, the returning holder on checkin or report-lost) and is
    NULL for actions that involve no employee.  ``admin_id`` is the
    operator who processed it.
    """

    __tablename__ = "asset_transaction"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    uuid = db.Column(
        db.String(36),
        unique=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    asset_id = db.Column(
        db.Integer, db.ForeignKey("asset.id"), nullable=False, index=True
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )
    admin_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    action_type = db.Column(db.String(30), nullable=False, index=True)
    condition_status = db.Column(db.String(20), nullable=True)
    transaction_date = db.Column(db.DateTime, nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    asset = db.relationship("Asset", back_populates="transactions")
    employee = db.relationship("User", foreign_keys=[user_id])
    admin = db.relationship("User", foreign_keys=[admin_id])

    def to_dict(self) -> dict:
        """Serialize for JSON responses."""
        return {
            "uuid": self.uuid,
            "action_type": self.action_type,
            "condition_status": self.condition_status,
            "transaction_date": (
                self.transaction_date.isoformat() if self.transaction_date else None
            ),
            "notes": self.notes,
            "asset_id": self.asset.uuid if self.asset else None,
            "user_id": self.employee.uuid if self.employee else None,
            "admin_id": self.admin.uuid if self.admin else None,
        }

    def __repr__(self) -> str:
        return f"<Transaction {self.action_type} asset={self.asset_id}>"


@event.listens_for(Transaction, "before_update")
def _reject_transaction_update(mapper, connection, target):
    """Logged transactions are append-only."""
    raise ImmutableTransactionError(
        f"Transaction {target.uuid} is immutable and cannot be updated."
    )


@event.listens_for(Transaction, "before_delete")
def _reject_transaction_delete(mapper, connection, target):
    """Logged transactions are append-only."""
    raise ImmutableTransactionError(
        f"Transaction {target.uuid} is immutable and cannot be deleted."
    )
