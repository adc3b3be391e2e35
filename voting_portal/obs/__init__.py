"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware, mask_payload
from .metrics import (
    ANNOUNCEMENT_COUNTER,
    BALLOTS_CAST_COUNTER,
    LOGIN_CODE_COUNTER,
    LOGIN_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    PrometheusMiddleware,
    metrics_router,
)

__all__ = [
    "ANNOUNCEMENT_COUNTER",
    "AuditLogRecord",
    "AuditMiddleware",
    "BALLOTS_CAST_COUNTER",
    "LOGIN_CODE_COUNTER",
    "LOGIN_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "mask_payload",
    "metrics_router",
]
