"""Schema integrity tests for the migration."""
from __future__ import annotations

from pathlib import Path

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")
alembic_command = pytest.importorskip("alembic.command")
alembic_config_module = pytest.importorskip("alembic.config")

sa = sqlalchemy
command = alembic_command
Config = alembic_config_module.Config

from fuelapp.models import Base  # noqa: E402


@pytest.fixture(scope="session")
def alembic_config(tmp_path_factory: pytest.TempPathFactory) -> Config:
    """Provide Alembic config bound to a temporary SQLite database."""

    project_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path_factory.mktemp("db") / "schema.db"

    config = Config(str(project_root / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    config.set_main_option("script_location", str(project_root / "migrations"))
    config.attributes["keep_url"] = True
    config.attributes["configure_logger"] = False
    return config


@pytest.fixture(scope="session")
def migrated_engine(alembic_config: Config):
    """Run migrations against SQLite and yield an engine."""

    command.upgrade(alembic_config, "head")
    engine = sa.create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    try:
        yield engine
    finally:
        engine.dispose()


def test_migration_creates_every_mapped_table(migrated_engine: sa.Engine) -> None:
    tables = set(sa.inspect(migrated_engine).get_table_names())
    assert set(Base.metadata.tables).issubset(tables)


@pytest.mark.parametrize("table_name", sorted(Base.metadata.tables))
def test_migration_columns_match_models(table_name: str, migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    migrated = {column["name"] for column in inspector.get_columns(table_name)}
    mapped = {column.name for column in Base.metadata.tables[table_name].columns}
    assert migrated == mapped


def test_foreign_keys_enforced(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    fk_expectations = {
        "fuel_balances": {"user_id": "users"},
        "vehicles": {"owner_id": "users", "company_id": "companies", "approved_by": "users"},
        "transactions": {
            "user_id": "users",
            "recipient_id": "users",
            "vehicle_id": "vehicles",
            "merchant_id": "merchants",
            "employee_id": "merchant_employees",
        },
        "coupons": {"created_by": "users", "used_by": "users"},
        "withdrawal_requests": {"merchant_id": "merchants", "processed_by": "users"},
        "audit_logs": {"actor_id": "users"},
    }

    for table, expected in fk_expectations.items():
        foreign_keys = inspector.get_foreign_keys(table)
        fk_map = {tuple(fk["constrained_columns"]): fk["referred_table"] for fk in foreign_keys}
        for column, target in expected.items():
            assert fk_map[(column,)] == target


def test_unique_constraints(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    unique_expectations = {
        "users": {"uq_users_email": {"email"}},
        "fuel_balances": {"uq_fuel_balances_user_fuel_type": {"user_id", "fuel_type"}},
        "vehicles": {"uq_vehicles_registration_number": {"registration_number"}},
        "coupons": {"uq_coupons_code": {"code"}},
        "admin_roles": {"uq_admin_roles_user_id": {"user_id"}},
        "merchant_employees": {"uq_merchant_employees_merchant_code": {"merchant_id", "employee_code"}},
    }

    for table, expected in unique_expectations.items():
        constraints = inspector.get_unique_constraints(table)
        found = {constraint["name"]: set(constraint["column_names"]) for constraint in constraints}
        for name, columns in expected.items():
            assert found[name] == columns


def test_lookup_indexes(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    index_expectations = {
        "vehicles": "ix_vehicles_status",
        "transactions": "ix_transactions_user_id",
        "coupons": "ix_coupons_status",
        "audit_logs": "ix_audit_logs_resource",
    }

    for table, index_name in index_expectations.items():
        indexes = {index["name"] for index in inspector.get_indexes(table)}
        assert index_name in indexes
