from __future__ import annotations

import pytest

from fuelapp.core.security import Principal, hash_secret, verify_secret
from fuelapp.models import DEFAULT_ROLE_PERMISSIONS, AdminPermission, AdminRole, AdminRoleName, User, UserType
from fuelapp.services.errors import PermissionDeniedError
from fuelapp.services.users import permissions_for


def test_role_defaults() -> None:
    assert DEFAULT_ROLE_PERMISSIONS[AdminRoleName.SUPER_ADMIN] == frozenset(AdminPermission)
    assert AdminPermission.MANAGE_ADMINS not in DEFAULT_ROLE_PERMISSIONS[AdminRoleName.ADMIN]
    assert DEFAULT_ROLE_PERMISSIONS[AdminRoleName.MODERATOR] == {
        AdminPermission.APPROVE_VEHICLES,
        AdminPermission.VIEW_REPORTS,
    }


def test_non_admin_principal_has_no_permissions_even_if_listed() -> None:
    principal = Principal(
        user_id="u-1",
        email="driver@example.com",
        user_type=UserType.INDIVIDUAL,
        permissions=frozenset({AdminPermission.MANAGE_COUPONS}),
    )
    assert not principal.has(AdminPermission.MANAGE_COUPONS)
    with pytest.raises(PermissionDeniedError):
        principal.ensure(AdminPermission.MANAGE_COUPONS)


def test_admin_without_role_row_gets_admin_defaults() -> None:
    user = User(email="a@example.com", hashed_password="x", user_type=UserType.ADMIN)
    assert permissions_for(user) == DEFAULT_ROLE_PERMISSIONS[AdminRoleName.ADMIN]


def test_role_row_permissions_override_defaults() -> None:
    user = User(email="m@example.com", hashed_password="x", user_type=UserType.ADMIN)
    user.admin_role = AdminRole(role=AdminRoleName.MODERATOR, permissions=["approve_vehicles"])
    assert permissions_for(user) == {AdminPermission.APPROVE_VEHICLES}


def test_individuals_have_no_permissions() -> None:
    user = User(email="i@example.com", hashed_password="x", user_type=UserType.INDIVIDUAL)
    assert permissions_for(user) == frozenset()


def test_secret_hashing_round_trip() -> None:
    hashed = hash_secret("4321")
    assert hashed != "4321"
    assert verify_secret("4321", hashed)
    assert not verify_secret("1234", hashed)
