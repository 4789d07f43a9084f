"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware
from .metrics import (
    COUPON_REDEMPTION_COUNTER,
    COUPONS_ISSUED_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    TRANSACTION_COUNTER,
    VEHICLE_DECISION_COUNTER,
    PrometheusMiddleware,
    metrics_router,
)
from .tracing import initialise_tracing, instrument_fastapi_app, instrument_sqlalchemy_engine, service_span

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "COUPONS_ISSUED_COUNTER",
    "COUPON_REDEMPTION_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "TRANSACTION_COUNTER",
    "VEHICLE_DECISION_COUNTER",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "metrics_router",
    "service_span",
]
