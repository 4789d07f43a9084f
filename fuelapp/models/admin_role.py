"""Administrator role ORM model and the closed permission set."""
from __future__ import annotations

import enum

from sqlalchemy import JSON, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelapp.models.base import Base, TimestampMixin, enum_type, uuid_pk


class AdminPermission(str, enum.Enum):
    MANAGE_COUPONS = "manage_coupons"
    APPROVE_VEHICLES = "approve_vehicles"
    MANAGE_TRANSACTIONS = "manage_transactions"
    MANAGE_WITHDRAWALS = "manage_withdrawals"
    MANAGE_USERS = "manage_users"
    MANAGE_ADMINS = "manage_admins"
    VIEW_REPORTS = "view_reports"


class AdminRoleName(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MODERATOR = "moderator"


DEFAULT_ROLE_PERMISSIONS: dict[AdminRoleName, frozenset[AdminPermission]] = {
    AdminRoleName.SUPER_ADMIN: frozenset(AdminPermission),
    AdminRoleName.ADMIN: frozenset(AdminPermission) - {AdminPermission.MANAGE_ADMINS},
    AdminRoleName.MODERATOR: frozenset({AdminPermission.APPROVE_VEHICLES, AdminPermission.VIEW_REPORTS}),
}


class AdminRole(TimestampMixin, Base):
    """Role assignment for an admin user; ``permissions`` stores permission values."""

    __tablename__ = "admin_roles"
    __table_args__ = (UniqueConstraint("user_id", name="uq_admin_roles_user_id"),)

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[AdminRoleName] = mapped_column(enum_type(AdminRoleName, "admin_role_name"), nullable=False)
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    user = relationship("User", back_populates="admin_role")

    @property
    def permission_set(self) -> frozenset[AdminPermission]:
        return frozenset(AdminPermission(value) for value in self.permissions or [])


__all__ = ["AdminPermission", "AdminRole", "AdminRoleName", "DEFAULT_ROLE_PERMISSIONS"]
