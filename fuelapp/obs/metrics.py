"""Prometheus metrics for the HTTP surface and fuel domain events."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
COUPON_REDEMPTION_COUNTER = Counter(
    "fuel_coupon_redemptions_total",
    "Coupon redemption attempts by fuel type and outcome.",
    labelnames=("fuel_type", "outcome"),
)
COUPONS_ISSUED_COUNTER = Counter(
    "fuel_coupons_issued_total",
    "Coupons created by fuel type.",
    labelnames=("fuel_type",),
)
VEHICLE_DECISION_COUNTER = Counter(
    "fuel_vehicle_decisions_total",
    "Vehicle approval decisions.",
    labelnames=("decision",),
)
TRANSACTION_COUNTER = Counter(
    "fuel_transactions_recorded_total",
    "Transactions recorded by type and status.",
    labelnames=("transaction_type", "status"),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records request latency and counts, labelled by route template."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            path = _route_template(request)
            REQUEST_LATENCY_SECONDS.labels(method=request.method, path=path).observe(
                time.perf_counter() - started
            )
            REQUEST_COUNTER.labels(method=request.method, path=path, status=status).inc()
            if status.startswith("5"):
                REQUEST_ERROR_COUNTER.labels(method=request.method, path=path, status=status).inc()


def _route_template(request: Request) -> str:
    # /api/vehicles/{vehicle_id}/approve rather than one label per vehicle id
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "COUPONS_ISSUED_COUNTER",
    "COUPON_REDEMPTION_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "TRANSACTION_COUNTER",
    "VEHICLE_DECISION_COUNTER",
    "metrics_endpoint",
    "metrics_router",
]
