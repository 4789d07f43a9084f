"""Schemas for sign-in, tokens, accounts and admin roles."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from fuelapp.models import AdminPermission, AdminRoleName, UserStatus, UserType
from fuelapp.schemas.base import ApiModel, normalize_email


class LoginRequest(ApiModel):
    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=8, max_length=128)
    user_type: UserType | None = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_email(value)


class RefreshRequest(ApiModel):
    refresh_token: str


class TokenResponse(ApiModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class UserRead(ApiModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    user_type: UserType
    status: UserStatus
    created_at: datetime | None = None


class CurrentUserRead(UserRead):
    permissions: list[AdminPermission] = Field(default_factory=list)


class AuthStatusRead(ApiModel):
    authenticated: bool
    user: CurrentUserRead | None = None


class ProfileUpdate(ApiModel):
    first_name: str | None = Field(default=None, max_length=128)
    last_name: str | None = Field(default=None, max_length=128)
    phone: str | None = Field(default=None, max_length=32)


class UserStatusUpdate(ApiModel):
    status: UserStatus


class AdminRoleAssign(ApiModel):
    role: AdminRoleName
    permissions: set[AdminPermission] | None = None


class AdminRoleRead(ApiModel):
    user_id: str
    role: AdminRoleName
    permissions: list[AdminPermission]


__all__ = [
    "AdminRoleAssign",
    "AdminRoleRead",
    "AuthStatusRead",
    "CurrentUserRead",
    "LoginRequest",
    "ProfileUpdate",
    "RefreshRequest",
    "TokenResponse",
    "UserRead",
    "UserStatusUpdate",
]
