"""
User model.

Users are owned by the directory that provisions them; the lifecycle
core only reads them to confirm a checkout target exists and to record
who performed each transaction.

``role`` values: admin, staff, employee.  Admin and staff may process
transactions; employees only ever appear as asset holders.
"""

import uuid

from flask_login import UserMixin

from itam.extensions import db

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_EMPLOYEE = "employee"
ROLES = (ROLE_ADMIN, ROLE_STAFF, ROLE_EMPLOYEE)


class User(UserMixin, db.Model):
    """
    Application user and potential asset holder.

    ``UserMixin`` supplies the Flask-Login session hooks; ``is_active``
    is a real column so deactivated operators are signed out.
    """

    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint(
            "role IN ('admin', 'staff', 'employee')", name="CK_users_role"
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    uuid = db.Column(
        db.String(36),
        unique=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_EMPLOYEE)
    department = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # -- Relationships -----------------------------------------------------
    held_assets = db.relationship(
        "Asset", back_populates="holder", lazy="dynamic"
    )

    def has_role(self, *role_names: str) -> bool:
        """True when the user holds any of ``role_names``."""
        return self.role in role_names

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"
