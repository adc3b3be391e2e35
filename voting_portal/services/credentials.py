"""Password, one-time code and session token handling."""
from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Literal

import bcrypt
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from voting_portal.core.config import Settings
from voting_portal.db.store import VotingStore
from voting_portal.models import Subject, SubjectRole
from voting_portal.obs.metrics import LOGIN_CODE_COUNTER, LOGIN_COUNTER
from voting_portal.services.delivery import CodeDelivery
from voting_portal.services.errors import (
    CodeInvalid,
    DeliveryFailed,
    DuplicateIdentifier,
    InvalidCredentials,
    Unauthenticated,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
RoleName = Literal["student", "admin"]

CODE_DIGITS = 6
MAX_CODE_ATTEMPTS = 5


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, frozen=True)
class PendingCode:
    code: str
    expires_at: datetime
    failed_attempts: int = 0


@dataclass(slots=True, frozen=True)
class LoginChallenge:
    """Returned when a code has been issued; never carries the code itself."""

    identifier: str
    expires_at: datetime


@dataclass(slots=True, frozen=True)
class SessionToken:
    access_token: str
    identifier: str
    role: RoleName
    expires_at: datetime
    token_type: str = "bearer"


@dataclass(slots=True, frozen=True)
class Identity:
    identifier: str
    role: RoleName


@dataclass(slots=True, frozen=True)
class SeedResult:
    subject: Subject
    created: bool


class TokenPayload(BaseModel):
    sub: str
    role: RoleName
    iat: int
    exp: int


class PendingCodeTable:
    """In-process one-time codes keyed by subject identifier; never serialized.

    A code is voided after ``max_attempts`` wrong guesses.
    """

    def __init__(self, max_attempts: int = MAX_CODE_ATTEMPTS) -> None:
        self._max_attempts = max_attempts
        self._codes: dict[str, PendingCode] = {}
        self._subject_locks: dict[str, Lock] = {}
        self._lock = Lock()

    def lock_for(self, identifier: str) -> Lock:
        with self._lock:
            return self._subject_locks.setdefault(identifier, Lock())

    def put(self, identifier: str, pending: PendingCode) -> None:
        with self._lock:
            self._codes[identifier] = pending

    def get(self, identifier: str) -> PendingCode | None:
        with self._lock:
            return self._codes.get(identifier)

    def discard(self, identifier: str, pending: PendingCode) -> None:
        with self._lock:
            if self._codes.get(identifier) is pending:
                del self._codes[identifier]

    def consume(self, identifier: str, code: str, *, now: datetime) -> bool:
        """Remove and accept the pending code if it matches and has not expired."""
        with self._lock:
            pending = self._codes.get(identifier)
            if pending is None:
                return False
            if now > pending.expires_at:
                del self._codes[identifier]
                return False
            if not hmac.compare_digest(pending.code.encode("utf-8"), code.encode("utf-8")):
                failed = pending.failed_attempts + 1
                if failed >= self._max_attempts:
                    del self._codes[identifier]
                else:
                    self._codes[identifier] = replace(pending, failed_attempts=failed)
                return False
            del self._codes[identifier]
            return True


class CredentialManager:
    """Registration, two-step login and stateless session tokens."""

    def __init__(
        self,
        store: VotingStore,
        delivery: CodeDelivery,
        settings: Settings,
        *,
        clock: Clock = utcnow,
        pending_codes: PendingCodeTable | None = None,
    ) -> None:
        self._store = store
        self._delivery = delivery
        self._settings = settings
        self._clock = clock
        self._pending = pending_codes or PendingCodeTable(settings.login_code_max_attempts)
        # Checked for unknown identifiers so every failure costs one bcrypt round.
        self._dummy_hash = self.hash_password(secrets.token_urlsafe(16))

    @property
    def pending_codes(self) -> PendingCodeTable:
        return self._pending

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._settings.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def register(self, identifier: str, contact: str, password: str) -> Subject:
        # The configured admin identifier is reserved for seed_admin.
        if identifier == self._settings.admin_identifier or self._store.get_subject(identifier) is not None:
            raise DuplicateIdentifier()
        subject = Subject(
            identifier=identifier,
            contact=contact,
            password_hash=self.hash_password(password),
            role=SubjectRole.STUDENT,
        )
        self._store.add_subject(subject)
        logger.info("registered subject", extra={"identifier": identifier})
        return subject

    def seed_admin(self) -> SeedResult:
        """Create the configured admin account unless an admin already exists."""
        existing = self._store.find_admin()
        if existing is not None:
            return SeedResult(subject=existing, created=False)
        password_hash = self.hash_password(self._settings.admin_password)
        with self._store.locked():
            existing = self._store.find_admin()
            if existing is not None:
                return SeedResult(subject=existing, created=False)
            subject = Subject(
                identifier=self._settings.admin_identifier,
                contact=self._settings.admin_email,
                password_hash=password_hash,
                role=SubjectRole.ADMIN,
            )
            self._store.add_subject(subject)
        logger.info("seeded admin subject", extra={"identifier": subject.identifier})
        return SeedResult(subject=subject, created=True)

    def begin_login(self, identifier: str, password: str, admin_proof: str | None = None) -> LoginChallenge:
        subject = self._store.get_subject(identifier)
        password_ok = _verify_password(password, subject.password_hash if subject else self._dummy_hash)
        proof_ok = hmac.compare_digest(
            (admin_proof or "").encode("utf-8"), self._settings.admin_key.encode("utf-8")
        )
        if subject is None or not password_ok or (subject.role is SubjectRole.ADMIN and not proof_ok):
            LOGIN_COUNTER.labels(outcome="invalid_credentials").inc()
            raise InvalidCredentials()

        with self._pending.lock_for(identifier):
            pending = PendingCode(
                code=_generate_code(),
                expires_at=self._clock() + timedelta(seconds=self._settings.login_code_ttl_seconds),
            )
            self._pending.put(identifier, pending)
            try:
                self._delivery.deliver(subject.contact, pending.code, subject.identifier)
            except DeliveryFailed:
                self._pending.discard(identifier, pending)
                LOGIN_CODE_COUNTER.labels(outcome="delivery_failed").inc()
                raise
            except Exception as exc:
                self._pending.discard(identifier, pending)
                LOGIN_CODE_COUNTER.labels(outcome="delivery_failed").inc()
                raise DeliveryFailed() from exc

        LOGIN_CODE_COUNTER.labels(outcome="issued").inc()
        logger.info("login code issued", extra={"identifier": identifier})
        return LoginChallenge(identifier=identifier, expires_at=pending.expires_at)

    def complete_login(self, identifier: str, code: str) -> SessionToken:
        if not self._pending.consume(identifier, code, now=self._clock()):
            LOGIN_COUNTER.labels(outcome="code_invalid").inc()
            raise CodeInvalid()
        subject = self._store.get_subject(identifier)
        if subject is None:
            raise CodeInvalid()

        token = self._issue_token(subject)
        LOGIN_COUNTER.labels(outcome="success").inc()
        logger.info("session issued", extra={"identifier": identifier, "role": subject.role.value})
        return token

    def validate(self, token: str) -> Identity:
        try:
            claims = jwt.decode(
                token,
                self._settings.session_secret,
                algorithms=[self._settings.jwt_algorithm],
                options={"verify_exp": False},
            )
            payload = TokenPayload(**claims)
        except (JWTError, ValidationError, TypeError) as exc:
            raise Unauthenticated() from exc
        if self._clock().timestamp() > payload.exp:
            raise Unauthenticated()
        return Identity(identifier=payload.sub, role=payload.role)

    def _issue_token(self, subject: Subject) -> SessionToken:
        now = self._clock()
        expires_at = now + timedelta(minutes=self._settings.access_token_expire_minutes)
        claims = {
            "sub": subject.identifier,
            "role": subject.role.value,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        encoded = jwt.encode(claims, self._settings.session_secret, algorithm=self._settings.jwt_algorithm)
        return SessionToken(
            access_token=encoded,
            identifier=subject.identifier,
            role=subject.role.value,
            expires_at=expires_at,
        )


def _generate_code() -> str:
    return f"{secrets.randbelow(10**CODE_DIGITS):0{CODE_DIGITS}d}"


def _verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


__all__ = [
    "CODE_DIGITS",
    "CredentialManager",
    "Identity",
    "LoginChallenge",
    "PendingCode",
    "PendingCodeTable",
    "SeedResult",
    "SessionToken",
    "TokenPayload",
    "utcnow",
]
