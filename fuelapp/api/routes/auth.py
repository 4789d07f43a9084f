"""Authentication endpoints and the bearer-token dependencies."""
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from threading import Lock
from typing import Literal
from uuid import uuid4

from cryptography.hazmat.primitives import serialization
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.core.config import Settings, get_settings
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission, User, UserType
from fuelapp.schemas import AuthStatusRead, CurrentUserRead, LoginRequest, RefreshRequest, TokenResponse
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.users import UserService, permissions_for

router = APIRouter()
security_scheme = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    sub: str
    email: str
    role: UserType
    type: Literal["access", "refresh"]
    iat: datetime
    exp: datetime
    jti: str


class RefreshTokenStore:
    """In-memory record of the one live refresh token per user and of revoked ones."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}
        self._revoked: set[str] = set()
        self._lock = Lock()

    def mark_active(self, subject: str, token_id: str) -> None:
        with self._lock:
            self._active[subject] = token_id

    def is_active(self, subject: str, token_id: str) -> bool:
        with self._lock:
            return token_id not in self._revoked and self._active.get(subject) == token_id

    def revoke(self, token_id: str) -> None:
        with self._lock:
            self._revoked.add(token_id)

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._revoked.clear()


refresh_token_store = RefreshTokenStore()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@lru_cache(maxsize=4)
def _key_pair(private_pem: str) -> tuple[str, str]:
    """Return the signing PEM and the PEM of its public half used for verification."""

    try:
        private_key = serialization.load_pem_private_key(private_pem.encode("utf-8"), password=None)
    except ValueError as exc:  # pragma: no cover - configuration issue
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid JWT signing key",
        ) from exc
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem.decode("utf-8")


def _create_token(
    user: User,
    *,
    settings: Settings,
    token_type: Literal["access", "refresh"],
    expires_delta: timedelta,
) -> tuple[str, str]:
    signing_key, _ = _key_pair(settings.jwt_private_key)
    now = datetime.now(UTC)
    token_id = uuid4().hex
    claims = {
        "sub": user.id,
        "email": user.email,
        "role": user.user_type.value,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": token_id,
    }
    return jwt.encode(claims, signing_key, algorithm=settings.jwt_algorithm), token_id


def issue_tokens(user: User, settings: Settings | None = None) -> TokenResponse:
    """Mint an access/refresh pair and make the refresh token the user's live one."""

    settings = settings or get_settings()
    access_token, _ = _create_token(
        user,
        settings=settings,
        token_type="access",
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )
    refresh_token, refresh_id = _create_token(
        user,
        settings=settings,
        token_type="refresh",
        expires_delta=timedelta(days=settings.refresh_token_expire_days),
    )
    refresh_token_store.mark_active(user.id, refresh_id)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def decode_token(token: str, settings: Settings) -> TokenPayload:
    _, verify_key = _key_pair(settings.jwt_private_key)
    try:
        claims = jwt.decode(token, verify_key, algorithms=[settings.jwt_algorithm])
        return TokenPayload(**claims)
    except (JWTError, ValidationError) as exc:
        raise _unauthorized("Invalid token") from exc


def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    session: Session = Depends(get_db_session),
) -> Principal:
    """Resolve the bearer token into a principal with permissions loaded from the database."""

    if credentials is None:
        raise _unauthorized("Not authenticated")
    payload = decode_token(credentials.credentials, get_settings())
    if payload.type != "access":
        raise _unauthorized("Invalid token type")
    try:
        principal = UserService(session).resolve_principal(payload.sub, payload.jti)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    request.state.actor_id = principal.user_id
    request.state.user_type = principal.user_type.value
    return principal


def require_permission(permission: AdminPermission) -> Callable[..., Principal]:
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has(permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{permission.value}' is required",
            )
        return principal

    return dependency


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator access required")
    return principal


@router.post("/login", response_model=TokenResponse, summary="Sign in and issue JWT tokens")
def login(payload: LoginRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    """Authenticate by email and password; unknown emails are registered when allowed."""

    try:
        user = UserService(session).sign_in(payload.email, payload.password, payload.user_type)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse, summary="Rotate JWT refresh tokens")
def refresh_tokens(payload: RefreshRequest, session: Session = Depends(get_db_session)) -> TokenResponse:
    claims = decode_token(payload.refresh_token, get_settings())
    if claims.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token type")
    if not refresh_token_store.is_active(claims.sub, claims.jti):
        raise _unauthorized("Refresh token revoked")

    service = UserService(session)
    try:
        service.resolve_principal(claims.sub)
        user = service.get(claims.sub)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    refresh_token_store.revoke(claims.jti)
    return issue_tokens(user)


def _current_user_read(session: Session, user_id: str) -> CurrentUserRead:
    user = UserService(session).get(user_id)
    result = CurrentUserRead.model_validate(user)
    result.permissions = sorted(permissions_for(user), key=lambda permission: permission.value)
    return result


@router.get("/user", response_model=CurrentUserRead, summary="Current account")
def current_user(
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_db_session),
) -> CurrentUserRead:
    return _current_user_read(session, principal.user_id)


@router.get("/status", response_model=AuthStatusRead, summary="Authentication status")
def auth_status(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    session: Session = Depends(get_db_session),
) -> AuthStatusRead:
    """Report whether the bearer token, if any, belongs to an active account; never answers 401."""

    if credentials is None:
        return AuthStatusRead(authenticated=False)
    try:
        payload = decode_token(credentials.credentials, get_settings())
        if payload.type != "access":
            return AuthStatusRead(authenticated=False)
        principal = UserService(session).resolve_principal(payload.sub, payload.jti)
    except (HTTPException, FuelServiceError):
        return AuthStatusRead(authenticated=False)
    return AuthStatusRead(authenticated=True, user=_current_user_read(session, principal.user_id))


__all__ = [
    "RefreshTokenStore",
    "TokenPayload",
    "decode_token",
    "get_current_principal",
    "issue_tokens",
    "refresh_token_store",
    "require_admin",
    "require_permission",
    "router",
]
