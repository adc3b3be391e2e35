"""Prometheus metrics for the voting API."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "voting_http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "voting_http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "voting_http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
LOGIN_COUNTER = Counter(
    "voting_login_attempts_total",
    "Login attempts by outcome.",
    labelnames=("outcome",),
)
LOGIN_CODE_COUNTER = Counter(
    "voting_login_codes_total",
    "One-time login codes by issuance outcome.",
    labelnames=("outcome",),
)
BALLOTS_CAST_COUNTER = Counter(
    "voting_ballots_total",
    "Ballot submissions by outcome.",
    labelnames=("outcome",),
)
ANNOUNCEMENT_COUNTER = Counter(
    "voting_announcements_total",
    "Number of tally announcements published.",
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request latency, count and error metrics."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        path = request.url.path
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(method=method, path=path, status=status).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, path=path, status="500").inc()
            raise
        finally:
            REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(time.perf_counter() - start_time)
            REQUEST_COUNTER.labels(method=method, path=path, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "ANNOUNCEMENT_COUNTER",
    "BALLOTS_CAST_COUNTER",
    "LOGIN_CODE_COUNTER",
    "LOGIN_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "metrics_endpoint",
    "metrics_router",
]
