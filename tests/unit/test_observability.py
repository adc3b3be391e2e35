from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from voting_portal.obs.audit import AuditMiddleware, mask_payload


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def _audit_logger(name: str) -> tuple[logging.Logger, _ListHandler]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    handler = _ListHandler()
    logger.addHandler(handler)
    return logger, handler


def test_mask_payload_hides_secrets_and_contacts() -> None:
    masked = mask_payload(
        {
            "identifier": "S1",
            "password": "Pw0rd!",
            "code": "123456",
            "admin_key": "ADMIN@2025",
            "contact": "student@x.edu",
            "nested": [{"token": "abc"}],
        }
    )

    assert masked == {
        "identifier": "S1",
        "password": "***",
        "code": "***",
        "admin_key": "***",
        "contact": "s***@x.edu",
        "nested": [{"token": "***"}],
    }


def test_audit_middleware_logs_masked_body_and_actor() -> None:
    logger, handler = _audit_logger("tests.audit.actor")
    app = FastAPI()
    app.add_middleware(AuditMiddleware, logger=logger)

    @app.post("/echo")
    async def echo(request: Request) -> dict[str, str]:
        payload = await request.json()
        request.state.actor = payload["identifier"]
        request.state.role = "student"
        return {"identifier": payload["identifier"]}

    with TestClient(app) as client:
        response = client.post(
            "/echo",
            json={"identifier": "S1", "password": "Pw0rd!"},
            headers={"X-Request-ID": "req-1"},
        )

    assert response.status_code == 200
    assert response.json() == {"identifier": "S1"}
    assert response.headers["X-Request-ID"] == "req-1"
    (record,) = handler.records
    entry = json.loads(record.getMessage())
    assert entry["request_id"] == "req-1"
    assert entry["method"] == "POST"
    assert entry["path"] == "/echo"
    assert entry["status"] == 200
    assert entry["actor"] == "S1"
    assert entry["role"] == "student"
    assert entry["body"] == {"identifier": "S1", "password": "***"}


def test_audit_middleware_generates_request_id() -> None:
    logger, handler = _audit_logger("tests.audit.request_id")
    app = FastAPI()
    app.add_middleware(AuditMiddleware, logger=logger)

    @app.get("/ping")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    with TestClient(app) as client:
        response = client.get("/ping")

    request_id = response.headers["X-Request-ID"]
    assert request_id
    entry = json.loads(handler.records[0].getMessage())
    assert entry["request_id"] == request_id
    assert entry["body"] is None
    assert entry["actor"] is None


def test_metrics_endpoint_exposes_request_counters(client: TestClient) -> None:
    assert client.get("/api/healthz").status_code == 200

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "voting_http_requests_total" in response.text
    assert 'path="/api/healthz"' in response.text
    assert 'path="/healthz"' not in response.text
    assert "voting_login_attempts_total" in response.text
