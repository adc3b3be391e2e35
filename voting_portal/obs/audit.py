"""Audit logging middleware."""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

_SECRET_KEYS = {
    "password",
    "code",
    "admin_key",
    "admin_proof",
    "access_token",
    "token",
    "authorization",
}
_CONTACT_KEYS = {"contact", "email"}


def _mask_contact(value: str) -> str:
    name, _, domain = value.partition("@")
    hidden = name[0] + "***" if name else "***"
    return f"{hidden}@{domain}" if domain else "***@***"


def mask_payload(value: Any) -> Any:
    """Redact secrets and partially hide contact addresses in request bodies."""
    if isinstance(value, dict):
        sanitized: dict[str, Any] = {}
        for key, item in value.items():
            lowered = str(key).lower()
            if lowered in _SECRET_KEYS:
                sanitized[key] = "***"
            elif lowered in _CONTACT_KEYS and isinstance(item, str):
                sanitized[key] = _mask_contact(item)
            else:
                sanitized[key] = mask_payload(item)
        return sanitized
    if isinstance(value, list):
        return [mask_payload(item) for item in value]
    return value


@dataclass(slots=True)
class AuditLogRecord:
    """Structured log entry emitted by the middleware."""

    timestamp: str
    request_id: str
    method: str
    path: str
    status: int
    duration_ms: float
    actor: str | None
    role: str | None
    ip_address: str | None
    body: Any

    def to_json(self) -> str:
        payload = {
            "timestamp": self.timestamp,
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "status": self.status,
            "duration_ms": round(self.duration_ms, 2),
            "actor": self.actor,
            "role": self.role,
            "ip_address": self.ip_address,
            "body": self.body,
        }
        return json.dumps(payload, default=str)


class AuditMiddleware(BaseHTTPMiddleware):
    """Starlette middleware writing one audit record per request."""

    def __init__(self, app: ASGIApp, *, logger: logging.Logger | None = None) -> None:
        super().__init__(app)
        self._logger = logger or logging.getLogger("audit")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        body_bytes = await request.body()
        self._set_body(request, body_bytes)

        masked_body = None
        if body_bytes:
            try:
                masked_body = mask_payload(json.loads(body_bytes))
            except (json.JSONDecodeError, UnicodeDecodeError):
                masked_body = "<binary>"

        response = await call_next(request)

        record = AuditLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            actor=getattr(request.state, "actor", None),
            role=getattr(request.state, "role", None),
            ip_address=request.client.host if request.client else None,
            body=masked_body,
        )
        self._logger.info(record.to_json())

        response.headers["X-Request-ID"] = request_id
        return response

    @staticmethod
    def _set_body(request: Request, body: bytes) -> None:
        async def receive() -> dict[str, Any]:
            nonlocal consumed
            if consumed:
                return {"type": "http.request", "body": b"", "more_body": False}
            consumed = True
            return {"type": "http.request", "body": body, "more_body": False}

        consumed = False
        request._receive = receive  # type: ignore[attr-defined]


__all__ = ["AuditLogRecord", "AuditMiddleware", "mask_payload"]
