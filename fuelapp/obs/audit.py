"""Request audit trail written to the log and to a daily S3 object."""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError  # type: ignore[import-untyped]
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from fuelapp.core.config import Settings

# Compared after lower-casing and dropping underscores, so ``recipientEmail``
# and ``recipient_email`` both match.
SENSITIVE_FIELDS = frozenset(
    {
        "email",
        "recipientemail",
        "contactemail",
        "phone",
        "contactphone",
        "password",
        "pin",
        "accountnumber",
        "branchcode",
        "refreshtoken",
        "code",
    }
)


def _redact(value: Any) -> str:
    text = str(value)
    return f"***{text[-4:]}" if len(text) > 4 else "***"


def _obscure_address(value: str) -> str:
    local, _, domain = value.partition("@")
    if not domain:
        return "***@***"
    return f"{local[:1]}***@{domain}"


def mask_payload(value: Any) -> Any:
    """Return a copy of a decoded JSON payload that is safe to keep in the audit trail.

    Values under sensitive keys keep only their last four characters. Anywhere
    else, e-mail addresses keep their domain and long digit runs their tail.
    """

    if isinstance(value, dict):
        return {
            key: _redact(item) if str(key).lower().replace("_", "") in SENSITIVE_FIELDS else mask_payload(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [mask_payload(item) for item in value]
    if isinstance(value, str):
        if "@" in value:
            return _obscure_address(value)
        if value.isdigit() and len(value) > 4:
            return _redact(value)
    return value


@dataclass(slots=True)
class AuditLogRecord:
    timestamp: str
    request_id: str
    method: str
    path: str
    status: int
    duration_ms: float
    actor: str | None
    user_type: str | None
    ip_address: str | None
    query: dict[str, Any]
    body: Any

    def to_json(self) -> str:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return json.dumps(payload, default=str)


class AuditMiddleware(BaseHTTPMiddleware):
    """Captures one masked record per request; S3 failures never fail the request."""

    skip_paths: frozenset[str] = frozenset({"/metrics", "/api/healthz", "/api/readyz"})

    def __init__(
        self,
        app: ASGIApp,
        *,
        settings: Settings,
        logger: logging.Logger | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        super().__init__(app)
        self._settings = settings
        self._logger = logger or logging.getLogger("audit")
        self._s3_client_factory = s3_client_factory or self._default_client_factory
        self._s3_client: Any | None = None
        self._bucket_ready = False

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        if request.url.path in self.skip_paths:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        started = time.perf_counter()
        body_bytes = await request.body()
        self._replay_body(request, body_bytes)

        response = await call_next(request)

        record = AuditLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
            actor=getattr(request.state, "actor_id", None),
            user_type=getattr(request.state, "user_type", None),
            ip_address=request.client.host if request.client else None,
            query=mask_payload(dict(request.query_params.multi_items())),
            body=_masked_body(body_bytes),
        )
        self._logger.info(record.to_json())
        if self._sampled():
            self._append(record)

        response.headers["X-Request-ID"] = request_id
        return response

    def _sampled(self) -> bool:
        rate = self._settings.audit_log_sample_rate
        return rate >= 1 or (rate > 0 and random.random() <= rate)

    def _default_client_factory(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def _client(self) -> Any:
        if self._s3_client is None:
            self._s3_client = self._s3_client_factory()
        return self._s3_client

    def _ensure_bucket(self, client: Any) -> None:
        if self._bucket_ready:
            return
        bucket = self._settings.audit_log_bucket
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError:
            params: dict[str, Any] = {"Bucket": bucket}
            if self._settings.aws_region != "us-east-1" and self._settings.s3_endpoint_url is None:
                params["CreateBucketConfiguration"] = {"LocationConstraint": self._settings.aws_region}
            client.create_bucket(**params)
        self._bucket_ready = True

    def _append(self, record: AuditLogRecord) -> None:
        bucket = self._settings.audit_log_bucket
        key = self.object_key(datetime.now(timezone.utc))
        try:
            client = self._client()
            self._ensure_bucket(client)
            try:
                existing = client.get_object(Bucket=bucket, Key=key)["Body"].read()
            except client.exceptions.NoSuchKey:  # type: ignore[attr-defined]
                existing = b""
            client.put_object(
                Bucket=bucket,
                Key=key,
                Body=existing + record.to_json().encode("utf-8") + b"\n",
                ContentType="application/x-ndjson",
            )
        except Exception as exc:  # pragma: no cover - S3 connectivity issues
            self._logger.error("failed to persist audit record", extra={"error": str(exc), "key": key})

    def object_key(self, moment: datetime) -> str:
        prefix = self._settings.audit_log_prefix.rstrip("/")
        return f"{prefix}/{moment:%Y/%m/%d}/requests.ndjson"

    @staticmethod
    def _replay_body(request: Request, body: bytes) -> None:
        sent = False

        async def receive() -> dict[str, Any]:
            nonlocal sent
            if sent:
                return {"type": "http.request", "body": b"", "more_body": False}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        request._receive = receive  # type: ignore[attr-defined]


def _masked_body(body: bytes) -> Any:
    if not body:
        return None
    try:
        return mask_payload(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "<binary>"


__all__ = ["AuditLogRecord", "AuditMiddleware", "SENSITIVE_FIELDS", "mask_payload"]
