from __future__ import annotations

import sys
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from threading import Lock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from voting_portal.core.config import Settings
from voting_portal.db.store import SqlVotingStore, VotingStore
from voting_portal.main import create_application
from voting_portal.services.container import VotingServices, build_services
from voting_portal.services.errors import DeliveryFailed

ADMIN_KEY = "test-admin-key"
ADMIN_PASSWORD = "Admin@123"


class RecordingDelivery:
    """Code delivery stub that remembers every code it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False
        self._lock = Lock()

    def deliver(self, contact: str, code: str, display_name: str) -> None:
        if self.fail:
            raise DeliveryFailed()
        with self._lock:
            self.sent.append((contact, code, display_name))

    def last_code(self, contact: str) -> str:
        with self._lock:
            for sent_contact, code, _ in reversed(self.sent):
                if sent_contact == contact:
                    return code
        raise AssertionError(f"no code delivered to {contact}")


class FrozenClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+pysqlite:///{tmp_path / 'voting.db'}",
        bcrypt_rounds=4,
        session_secret="test-session-secret",
        signing_secret="test-signing-secret",
        encryption_secret="test-encryption-secret",
        admin_key=ADMIN_KEY,
        admin_identifier="admin1",
        admin_email="admin@university.edu",
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture()
def store(engine: Engine) -> VotingStore:
    return SqlVotingStore(engine)


@pytest.fixture()
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 3, 1, 9, 0, tzinfo=UTC))


@pytest.fixture()
def services(
    settings: Settings, store: VotingStore, delivery: RecordingDelivery, clock: FrozenClock
) -> VotingServices:
    return build_services(settings, store=store, delivery=delivery, clock=clock)


@pytest.fixture()
def client(
    settings: Settings, store: VotingStore, delivery: RecordingDelivery, clock: FrozenClock
) -> Iterator[TestClient]:
    app = create_application(settings, store=store, delivery=delivery, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def login(
    client: TestClient,
    delivery: RecordingDelivery,
    *,
    identifier: str,
    password: str,
    contact: str,
    admin_key: str | None = None,
) -> dict[str, str]:
    payload: dict[str, str] = {"identifier": identifier, "password": password}
    if admin_key is not None:
        payload["admin_key"] = admin_key
    response = client.post("/api/auth/login", json=payload)
    assert response.status_code == 200, response.text

    verify = client.post(
        "/api/auth/verify-code",
        json={"identifier": identifier, "code": delivery.last_code(contact)},
    )
    assert verify.status_code == 200, verify.text
    return {"Authorization": f"Bearer {verify.json()['access_token']}"}
