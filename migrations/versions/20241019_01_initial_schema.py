"""Initial schema for accounts, fuel, vehicles, merchants and fleets."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20241019_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None

ENUMS: dict[str, tuple[str, ...]] = {
    "user_type": ("individual", "corporate", "government", "merchant", "agent", "admin"),
    "user_status": ("active", "suspended"),
    "fleet_manager_role": ("manager", "admin"),
    "driver_status": ("active", "suspended", "pending"),
    "vehicle_type": ("sedan", "suv", "truck", "van", "bus"),
    "vehicle_fuel_type": ("petrol", "diesel", "hybrid"),
    "vehicle_status": ("pending", "approved", "rejected", "active", "suspended"),
    "document_type": ("registration_book", "license", "insurance"),
    "fuel_type": ("petrol", "diesel"),
    "transaction_type": ("fuel_purchase", "fuel_usage", "fuel_transfer", "top_up", "coupon_redemption"),
    "transaction_status": ("pending", "completed", "failed", "cancelled"),
    "payment_method": ("paynow_ecocash", "paynow_telecash", "paynow_visa", "payfast"),
    "coupon_status": ("active", "used", "expired", "deactivated"),
    "merchant_status": ("active", "suspended", "pending"),
    "employee_status": ("active", "suspended"),
    "withdrawal_status": ("pending", "approved", "completed", "rejected"),
    "admin_role_name": ("super_admin", "admin", "moderator"),
}


def _enum(name: str) -> sa.types.TypeEngine:
    values = ENUMS[name]
    return sa.Enum(*values, name=name).with_variant(
        postgresql.ENUM(*values, name=name, create_type=False), "postgresql"
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _user_fk(column: str, *, nullable: bool = True, ondelete: str = "SET NULL") -> sa.Column:
    return sa.Column(
        column, sa.String(length=36), sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable
    )


def upgrade() -> None:  # noqa: D401
    """Create every table, index and constraint."""

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("first_name", sa.String(length=128)),
        sa.Column("last_name", sa.String(length=128)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("user_type", _enum("user_type"), nullable=False, server_default="individual"),
        sa.Column("status", _enum("user_status"), nullable=False, server_default="active"),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "companies",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("registration_number", sa.String(length=64)),
        sa.Column("address", sa.Text()),
        sa.Column("contact_email", sa.String(length=320)),
        sa.Column("contact_phone", sa.String(length=32)),
        *_timestamps(),
    )

    op.create_table(
        "admin_roles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("role", _enum("admin_role_name"), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", name="uq_admin_roles_user_id"),
    )

    op.create_table(
        "fleet_managers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column(
            "company_id",
            sa.String(length=36),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", _enum("fleet_manager_role"), nullable=False, server_default="manager"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "company_id", name="uq_fleet_managers_user_company"),
    )

    op.create_table(
        "drivers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("company_id", sa.String(length=36), sa.ForeignKey("companies.id", ondelete="SET NULL")),
        sa.Column("license_number", sa.String(length=64)),
        sa.Column("license_expiry", sa.DateTime(timezone=True)),
        sa.Column("status", _enum("driver_status"), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("registration_number", sa.String(length=32), nullable=False),
        _user_fk("owner_id", nullable=False, ondelete="CASCADE"),
        sa.Column("company_id", sa.String(length=36), sa.ForeignKey("companies.id", ondelete="SET NULL")),
        sa.Column("vehicle_type", _enum("vehicle_type"), nullable=False),
        sa.Column("make", sa.String(length=64)),
        sa.Column("model", sa.String(length=64)),
        sa.Column("year", sa.Integer()),
        sa.Column("fuel_type", _enum("vehicle_fuel_type"), nullable=False),
        sa.Column("status", _enum("vehicle_status"), nullable=False, server_default="pending"),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        _user_fk("approved_by"),
        sa.Column("rejection_reason", sa.Text()),
        *_timestamps(),
        sa.UniqueConstraint("registration_number", name="uq_vehicles_registration_number"),
    )
    op.create_index("ix_vehicles_owner_id", "vehicles", ["owner_id"])
    op.create_index("ix_vehicles_status", "vehicles", ["status"])

    op.create_table(
        "vehicle_documents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "vehicle_id",
            sa.String(length=36),
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("document_type", _enum("document_type"), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=512), nullable=False),
        sa.Column("file_size", sa.Integer()),
        sa.Column("mime_type", sa.String(length=128)),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "fuel_balances",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("fuel_type", _enum("fuel_type"), nullable=False),
        sa.Column("balance", sa.Numeric(10, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "fuel_type", name="uq_fuel_balances_user_fuel_type"),
    )

    op.create_table(
        "transaction_limits",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("daily_purchase_limit", sa.Numeric(10, 2), nullable=False),
        sa.Column("monthly_purchase_limit", sa.Numeric(10, 2), nullable=False),
        sa.Column("daily_transfer_limit", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", name="uq_transaction_limits_user_id"),
    )

    op.create_table(
        "merchants",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("station_name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.Text()),
        sa.Column("contact_phone", sa.String(length=32)),
        sa.Column("bank_name", sa.String(length=128)),
        sa.Column("account_number", sa.String(length=34)),
        sa.Column("account_holder", sa.String(length=255)),
        sa.Column("branch_code", sa.String(length=32)),
        sa.Column("pending_balance", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", _enum("merchant_status"), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_merchants_user_id", "merchants", ["user_id"])

    op.create_table(
        "merchant_employees",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "merchant_id",
            sa.String(length=36),
            sa.ForeignKey("merchants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("employee_code", sa.String(length=64), nullable=False),
        sa.Column("hashed_pin", sa.String(length=255), nullable=False),
        sa.Column("status", _enum("employee_status"), nullable=False, server_default="active"),
        *_timestamps(),
        sa.UniqueConstraint("merchant_id", "employee_code", name="uq_merchant_employees_merchant_code"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        _user_fk("recipient_id"),
        sa.Column("vehicle_id", sa.String(length=36), sa.ForeignKey("vehicles.id", ondelete="SET NULL")),
        sa.Column("merchant_id", sa.String(length=36), sa.ForeignKey("merchants.id", ondelete="SET NULL")),
        sa.Column(
            "employee_id",
            sa.String(length=36),
            sa.ForeignKey("merchant_employees.id", ondelete="SET NULL"),
        ),
        sa.Column("transaction_type", _enum("transaction_type"), nullable=False),
        sa.Column("fuel_type", _enum("fuel_type")),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("monetary_value", sa.Numeric(10, 2)),
        sa.Column("status", _enum("transaction_status"), nullable=False, server_default="pending"),
        sa.Column("payment_method", _enum("payment_method")),
        sa.Column("reference", sa.String(length=128)),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("lock_version", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index("ix_transactions_merchant_id", "transactions", ["merchant_id"])

    op.create_table(
        "coupons",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("fuel_type", _enum("fuel_type"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", _enum("coupon_status"), nullable=False, server_default="active"),
        sa.Column("description", sa.Text()),
        sa.Column("expiry_date", sa.DateTime(timezone=True)),
        sa.Column("used_at", sa.DateTime(timezone=True)),
        _user_fk("used_by"),
        _user_fk("created_by", nullable=False, ondelete="CASCADE"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("code", name="uq_coupons_code"),
    )
    op.create_index("ix_coupons_status", "coupons", ["status"])

    op.create_table(
        "withdrawal_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "merchant_id",
            sa.String(length=36),
            sa.ForeignKey("merchants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", _enum("withdrawal_status"), nullable=False, server_default="pending"),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        _user_fk("processed_by"),
        sa.Column("notes", sa.Text()),
    )
    op.create_index("ix_withdrawal_requests_status", "withdrawal_requests", ["status"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _user_fk("actor_id"),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("resource_type", sa.String(length=128), nullable=False),
        sa.Column("resource_id", sa.String(length=128)),
        sa.Column("payload", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])


def downgrade() -> None:  # noqa: D401
    """Drop every table and enum type."""

    op.drop_index("ix_audit_logs_resource", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_withdrawal_requests_status", table_name="withdrawal_requests")
    op.drop_table("withdrawal_requests")
    op.drop_index("ix_coupons_status", table_name="coupons")
    op.drop_table("coupons")
    op.drop_index("ix_transactions_merchant_id", table_name="transactions")
    op.drop_index("ix_transactions_user_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("merchant_employees")
    op.drop_index("ix_merchants_user_id", table_name="merchants")
    op.drop_table("merchants")
    op.drop_table("transaction_limits")
    op.drop_table("fuel_balances")
    op.drop_table("vehicle_documents")
    op.drop_index("ix_vehicles_status", table_name="vehicles")
    op.drop_index("ix_vehicles_owner_id", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_table("drivers")
    op.drop_table("fleet_managers")
    op.drop_table("admin_roles")
    op.drop_table("companies")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name in reversed(list(ENUMS)):
            op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))
