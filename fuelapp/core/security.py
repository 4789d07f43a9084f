"""Authenticated principal and credential hashing."""
from __future__ import annotations

from dataclasses import dataclass, field

import bcrypt

from fuelapp.models import AdminPermission, UserType
from fuelapp.services.errors import PermissionDeniedError


@dataclass(frozen=True, slots=True)
class Principal:
    """Identity of the caller, resolved once per request and passed to services."""

    user_id: str
    email: str
    user_type: UserType
    permissions: frozenset[AdminPermission] = field(default_factory=frozenset)
    token_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN

    def has(self, permission: AdminPermission) -> bool:
        return self.is_admin and permission in self.permissions

    def ensure(self, permission: AdminPermission) -> None:
        if not self.has(permission):
            raise PermissionDeniedError(f"Permission '{permission.value}' is required")


def hash_secret(raw: str) -> str:
    return bcrypt.hashpw(raw.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_secret(raw: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


__all__ = ["Principal", "hash_secret", "verify_secret"]
