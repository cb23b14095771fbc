"""Create asset lifecycle tables

Creates users, category, location, asset and asset_transaction.

Two CHECK constraints on ``asset`` keep the lifecycle columns honest at
the database level:

    CK_asset_status                 status is one of the five lifecycle values.
    CK_asset_holder_matches_status  a holder is set exactly when assigned.

Revision ID: 3a9c1e7b5d20
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3a9c1e7b5d20"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all lifecycle tables and their constraints."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint(
            "role IN ('admin', 'staff', 'employee')", name="CK_users_role"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uuid"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uuid"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "location",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uuid"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "asset",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("asset_tag", sa.String(length=50), nullable=False),
        sa.Column("serial_number", sa.String(length=100), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("location_id", sa.Integer(), nullable=True),
        sa.Column("current_holder_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("price", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("specifications", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint(
            "status IN ('available', 'assigned', 'repair', 'missing', 'retired')",
            name="CK_asset_status",
        ),
        sa.CheckConstraint(
            "(status = 'assigned' AND current_holder_id IS NOT NULL) "
            "OR (status <> 'assigned' AND current_holder_id IS NULL)",
            name="CK_asset_holder_matches_status",
        ),
        sa.ForeignKeyConstraint(["category_id"], ["category.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["location.id"]),
        sa.ForeignKeyConstraint(["current_holder_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uuid"),
        sa.UniqueConstraint("asset_tag"),
        sa.UniqueConstraint("serial_number"),
    )
    with op.batch_alter_table("asset") as batch_op:
        batch_op.create_index("ix_asset_name", ["name"])
        batch_op.create_index("ix_asset_status", ["status"])
        batch_op.create_index("ix_asset_category_id", ["category_id"])
        batch_op.create_index("ix_asset_location_id", ["location_id"])
        batch_op.create_index("ix_asset_current_holder_id", ["current_holder_id"])

    op.create_table(
        "asset_transaction",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("admin_id", sa.Integer(), nullable=False),
        sa.Column("action_type", sa.String(length=30), nullable=False),
        sa.Column("condition_status", sa.String(length=20), nullable=True),
        sa.Column("transaction_date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["asset_id"], ["asset.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["admin_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uuid"),
    )
    with op.batch_alter_table("asset_transaction") as batch_op:
        batch_op.create_index("ix_asset_transaction_asset_id", ["asset_id"])
        batch_op.create_index("ix_asset_transaction_user_id", ["user_id"])
        batch_op.create_index("ix_asset_transaction_admin_id", ["admin_id"])
        batch_op.create_index("ix_asset_transaction_action_type", ["action_type"])
        batch_op.create_index(
            "ix_asset_transaction_transaction_date", ["transaction_date"]
        )


def downgrade() -> None:
    """Drop the tables created in upgrade(), children first."""
    op.drop_table("asset_transaction")
    op.drop_table("asset")
    op.drop_table("location")
    op.drop_table("category")
    op.drop_table("users")
