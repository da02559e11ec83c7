"""initial loyalty card schema

Revision ID: 1d4e7a2c9b30
Revises: 
Create Date: 2026-10-18 09:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '1d4e7a2c9b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()

    if not _table_exists(bind, "store_owners"):
        op.create_table(
            "store_owners",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("store_name", sa.String(length=100), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_store_owners_email", "store_owners", ["email"], unique=True)

    if not _table_exists(bind, "admins"):
        op.create_table(
            "admins",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("username", sa.String(length=100), nullable=False),
            sa.Column("password", sa.String(length=255), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_admins_username", "admins", ["username"], unique=True)

    if not _table_exists(bind, "customers"):
        op.create_table(
            "customers",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("barcode", sa.String(length=9), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("address", sa.String(length=255), nullable=True),
            sa.Column("birthdate", sa.Date(), nullable=True),
            sa.Column("points_balance", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_spent", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column(
                "store_owner_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("store_owners.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.CheckConstraint("points_balance >= 0", name="ck_customers_points_balance_non_negative"),
            sa.CheckConstraint("total_spent >= 0", name="ck_customers_total_spent_non_negative"),
        )
        op.create_index("ix_customers_barcode", "customers", ["barcode"], unique=True)
        op.create_index("ix_customers_store_owner_id", "customers", ["store_owner_id"])

    if not _table_exists(bind, "purchases"):
        op.create_table(
            "purchases",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(
                "customer_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("customers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("points_earned", sa.Integer(), nullable=False),
            sa.Column("discount_applied", sa.Numeric(12, 2), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_purchases_customer_id", "purchases", ["customer_id"])

    if not _table_exists(bind, "discounts"):
        op.create_table(
            "discounts",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(
                "customer_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("customers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("expiry_date", sa.TIMESTAMP(), nullable=False),
            sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("used_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_discounts_customer_id", "discounts", ["customer_id"])

    if not _table_exists(bind, "point_adjustments"):
        op.create_table(
            "point_adjustments",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(
                "customer_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("customers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("points", sa.Integer(), nullable=False),
            sa.Column("reason", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_point_adjustments_customer_id", "point_adjustments", ["customer_id"])

    if not _table_exists(bind, "auth_sessions"):
        op.create_table(
            "auth_sessions",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False),
            sa.Column("principal_id", postgresql.UUID(as_uuid=True), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("expires_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("revoked_at", sa.TIMESTAMP(), nullable=True),
        )
        op.create_index("ix_auth_sessions_token_hash", "auth_sessions", ["token_hash"], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()

    for table_name in (
        "auth_sessions",
        "point_adjustments",
        "discounts",
        "purchases",
        "customers",
        "admins",
        "store_owners",
    ):
        if _table_exists(bind, table_name):
            op.drop_table(table_name)
