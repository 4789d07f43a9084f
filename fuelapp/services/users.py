"""Accounts, sign-in and administrator roles."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fuelapp.core.config import Settings, get_settings
from fuelapp.core.security import Principal, hash_secret, verify_secret
from fuelapp.db.session import unit_of_work
from fuelapp.models import (
    DEFAULT_ROLE_PERMISSIONS,
    AdminPermission,
    AdminRole,
    AdminRoleName,
    AuditLog,
    User,
    UserStatus,
    UserType,
)
from fuelapp.services.errors import (
    AuthenticationError,
    DomainConflictError,
    DuplicateRecordError,
    NotFoundError,
    PermissionDeniedError,
)
from fuelapp.services.ledger import BalanceLedger

logger = logging.getLogger(__name__)


def permissions_for(user: User) -> frozenset[AdminPermission]:
    """Effective permissions; admins without a role row get the ``admin`` defaults."""

    if user.user_type != UserType.ADMIN:
        return frozenset()
    if user.admin_role is None:
        return DEFAULT_ROLE_PERMISSIONS[AdminRoleName.ADMIN]
    return user.admin_role.permission_set


class UserService:
    def __init__(self, session: Session, *, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    def sign_in(self, email: str, password: str, user_type: UserType | None = None) -> User:
        """Authenticate ``email``, creating the account on first sign-in when allowed.

        ``user_type`` only applies to new accounts; the admin type is granted
        through role assignment and cannot be chosen here.
        """

        if user_type == UserType.ADMIN:
            raise PermissionDeniedError("The admin account type cannot be self-selected")
        address = email.strip().lower()
        user = self._session.scalar(select(User).where(User.email == address))

        if user is None:
            if not self._settings.allow_self_registration:
                raise AuthenticationError("Invalid credentials")
            return self._create(address, password, user_type or UserType.INDIVIDUAL)

        if not verify_secret(password, user.hashed_password):
            logger.info("sign-in rejected", extra={"user_id": user.id})
            raise AuthenticationError("Invalid credentials")
        if user.status != UserStatus.ACTIVE:
            raise PermissionDeniedError("Account is suspended")
        return user

    def _create(self, email: str, password: str, user_type: UserType) -> User:
        with unit_of_work(self._session):
            user = User(
                email=email,
                hashed_password=hash_secret(password),
                user_type=user_type,
                status=UserStatus.ACTIVE,
            )
            self._session.add(user)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise DuplicateRecordError(f"An account for '{email}' already exists") from exc
            BalanceLedger(self._session).initialize(user.id)
        self._session.refresh(user)
        logger.info("user created", extra={"user_id": user.id, "user_type": user_type.value})
        return user

    def get(self, user_id: str) -> User:
        user = self._session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' was not found")
        return user

    def resolve_principal(self, user_id: str, token_id: str | None = None) -> Principal:
        user = self._session.get(User, user_id)
        if user is None:
            raise AuthenticationError("Account no longer exists")
        if user.status != UserStatus.ACTIVE:
            raise PermissionDeniedError("Account is suspended")
        return Principal(
            user_id=user.id,
            email=user.email,
            user_type=user.user_type,
            permissions=permissions_for(user),
            token_id=token_id,
        )

    def list_users(self, actor: Principal) -> list[User]:
        actor.ensure(AdminPermission.MANAGE_USERS)
        return list(self._session.scalars(select(User).order_by(User.created_at)))

    def update_profile(
        self,
        actor: Principal,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
    ) -> User:
        user = self.get(actor.user_id)
        with unit_of_work(self._session):
            if first_name is not None:
                user.first_name = first_name
            if last_name is not None:
                user.last_name = last_name
            if phone is not None:
                user.phone = phone
        self._session.refresh(user)
        return user

    def set_status(self, actor: Principal, user_id: str, status: UserStatus) -> User:
        actor.ensure(AdminPermission.MANAGE_USERS)
        if user_id == actor.user_id:
            raise DomainConflictError("Administrators cannot change their own status")
        user = self.get(user_id)
        with unit_of_work(self._session):
            user.status = status
            self._session.add(
                AuditLog(
                    actor_id=actor.user_id,
                    action=f"user.{status.value}",
                    resource_type="user",
                    resource_id=user_id,
                )
            )
        self._session.refresh(user)
        logger.info("user status changed", extra={"user_id": user_id, "status": status.value})
        return user

    def assign_admin_role(
        self,
        actor: Principal,
        user_id: str,
        role: AdminRoleName,
        permissions: set[AdminPermission] | None = None,
    ) -> AdminRole:
        """Grant ``role`` to a user; permissions default to the role's standard set."""

        actor.ensure(AdminPermission.MANAGE_ADMINS)
        user = self.get(user_id)
        granted = frozenset(permissions) if permissions is not None else DEFAULT_ROLE_PERMISSIONS[role]

        with unit_of_work(self._session):
            assignment = self._session.scalar(select(AdminRole).where(AdminRole.user_id == user_id))
            if assignment is None:
                assignment = AdminRole(user_id=user_id, role=role)
                self._session.add(assignment)
            assignment.role = role
            assignment.permissions = sorted(permission.value for permission in granted)
            user.user_type = UserType.ADMIN
            self._session.add(
                AuditLog(
                    actor_id=actor.user_id,
                    action="admin_role.assigned",
                    resource_type="user",
                    resource_id=user_id,
                    payload={"role": role.value, "permissions": assignment.permissions},
                )
            )
        self._session.refresh(assignment)
        return assignment

    def get_admin_role(self, actor: Principal, user_id: str) -> AdminRole:
        if user_id != actor.user_id:
            actor.ensure(AdminPermission.MANAGE_ADMINS)
        assignment = self._session.scalar(select(AdminRole).where(AdminRole.user_id == user_id))
        if assignment is None:
            raise NotFoundError(f"No admin role is assigned to user '{user_id}'")
        return assignment


__all__ = ["UserService", "permissions_for"]
