from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from io import BytesIO
from pathlib import Path
import sys
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_suite.db")

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from fuelapp.api.deps import get_db_session
from fuelapp.api.routes.auth import issue_tokens, refresh_token_store
from fuelapp.core.security import hash_secret
from fuelapp.main import app
from fuelapp.models import (
    DEFAULT_ROLE_PERMISSIONS,
    AdminRole,
    AdminRoleName,
    Base,
    User,
    UserStatus,
    UserType,
)
from fuelapp.obs import AuditMiddleware
from fuelapp.services.ledger import BalanceLedger

TEST_PASSWORD = "correct-horse"


class InMemoryS3Client:
    """Simple in-memory S3 stub used by the audit middleware during tests."""

    exceptions = SimpleNamespace(NoSuchKey=type("NoSuchKey", (Exception,), {}))

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, BytesIO]:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "NoSuchBucket"}}, "GetObject")
        bucket = self._buckets[Bucket]
        if Key not in bucket:
            raise self.exceptions.NoSuchKey()
        return {"Body": BytesIO(bucket[Key])}

    def put_object(
        self,
        *,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str | None = None,
        **_: object,
    ) -> dict[str, str]:
        bucket = self._buckets.setdefault(Bucket, {})
        bucket[Key] = Body.encode("utf-8") if isinstance(Body, str) else Body
        return {"ETag": "in-memory"}

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


engine = create_engine(
    "sqlite+pysqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def audit_s3_client(monkeypatch: pytest.MonkeyPatch) -> Iterator[InMemoryS3Client]:
    client = InMemoryS3Client()

    def _client_factory(*args: object, **kwargs: object) -> InMemoryS3Client:
        return client

    monkeypatch.setattr("fuelapp.obs.audit.boto3.client", _client_factory)
    stack = getattr(app, "middleware_stack", None)
    middleware = getattr(stack, "app", None)
    while middleware is not None and hasattr(middleware, "app"):
        if isinstance(middleware, AuditMiddleware):
            middleware._s3_client = None
            middleware._bucket_ready = False
        middleware = getattr(middleware, "app", None)
    yield client


@pytest.fixture(autouse=True)
def _reset_refresh_tokens() -> Iterator[None]:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db_session: Session, audit_s3_client: InMemoryS3Client) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Insert an active account with zero balances; admins get a role row."""

    def _make_user(
        email: str,
        *,
        user_type: UserType = UserType.INDIVIDUAL,
        role: AdminRoleName | None = None,
        password: str = TEST_PASSWORD,
    ) -> User:
        user = User(
            email=email,
            hashed_password=hash_secret(password),
            user_type=user_type,
            status=UserStatus.ACTIVE,
        )
        db_session.add(user)
        db_session.flush()
        if role is not None:
            db_session.add(
                AdminRole(
                    user_id=user.id,
                    role=role,
                    permissions=sorted(permission.value for permission in DEFAULT_ROLE_PERMISSIONS[role]),
                )
            )
        BalanceLedger(db_session).initialize(user.id)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_tokens(user).access_token}"}


@pytest.fixture()
def admin_user(make_user: Callable[..., User]) -> User:
    return make_user("admin@example.com", user_type=UserType.ADMIN, role=AdminRoleName.SUPER_ADMIN)


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture()
def driver_user(make_user: Callable[..., User]) -> User:
    return make_user("driver@example.com")


@pytest.fixture()
def driver_headers(driver_user: User) -> dict[str, str]:
    return bearer(driver_user)


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    """Sign in through the API, registering a fresh individual account."""

    response = client.post(
        "/api/auth/login",
        json={"email": "new.driver@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    return bearer
