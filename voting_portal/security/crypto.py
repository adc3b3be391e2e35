"""Key derivation, authenticated encryption, signing and text encoding."""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import os
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from voting_portal.services.errors import FormatError, IntegrityError

KEY_LENGTH = 32
SALT_LENGTH = 32
NONCE_LENGTH = 16
TAG_LENGTH = 16
KDF_ITERATIONS = 100_000


def derive_symmetric_key(secret: str | bytes, salt: bytes | None = None) -> tuple[bytes, bytes]:
    """Stretch ``secret`` into a 256-bit key with PBKDF2-HMAC-SHA256.

    A random salt is generated when none is supplied; callers that need to
    rebuild the key later must keep the returned salt.
    """
    if salt is None:
        salt = os.urandom(SALT_LENGTH)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(_to_bytes(secret)), salt


def derive_vote_key(secret: str | bytes, salt_label: str) -> bytes:
    """Derive the long-lived ballot encryption key from a fixed salt."""
    fixed_salt = hashlib.sha256(salt_label.encode("utf-8")).digest()
    key, _ = derive_symmetric_key(secret, fixed_salt)
    return key


def encrypt(plaintext: str | bytes, key: bytes, associated_data: bytes | None = None) -> str:
    """Encrypt with AES-GCM and return base64 of ``nonce || tag || ciphertext``."""
    nonce = os.urandom(NONCE_LENGTH)
    sealed = AESGCM(key).encrypt(nonce, _to_bytes(plaintext), associated_data)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return encode_text(nonce + tag + ciphertext)


def decrypt(blob: str, key: bytes, associated_data: bytes | None = None) -> bytes:
    try:
        raw = base64.b64decode(blob.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise FormatError("Ciphertext blob is not valid base64") from exc
    if len(raw) < NONCE_LENGTH + TAG_LENGTH:
        raise FormatError("Ciphertext blob is too short")

    nonce = raw[:NONCE_LENGTH]
    tag = raw[NONCE_LENGTH : NONCE_LENGTH + TAG_LENGTH]
    ciphertext = raw[NONCE_LENGTH + TAG_LENGTH :]
    try:
        return AESGCM(key).decrypt(nonce, ciphertext + tag, associated_data)
    except InvalidTag as exc:
        raise IntegrityError() from exc


def canonical_bytes(payload: Any) -> bytes:
    """Serialize ``payload`` with sorted keys and no extraneous whitespace."""
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sign(payload: Any, secret: str | bytes) -> str:
    return hmac.new(_to_bytes(secret), canonical_bytes(payload), hashlib.sha256).hexdigest()


def verify(payload: Any, signature: str | None, secret: str | bytes) -> bool:
    """Check ``signature`` against ``payload`` in constant time."""
    if not signature:
        return False
    try:
        provided = bytes.fromhex(signature)
    except (TypeError, ValueError):
        return False
    expected = hmac.new(_to_bytes(secret), canonical_bytes(payload), hashlib.sha256).digest()
    return hmac.compare_digest(expected, provided)


def encode_text(data: str | bytes) -> str:
    return base64.b64encode(_to_bytes(data)).decode("ascii")


def decode_text(text: str, encoding: str | None = None) -> bytes | str:
    """Invert :func:`encode_text`; pass ``encoding`` to get a ``str`` back."""
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise FormatError("Value is not valid base64") from exc
    if encoding is not None:
        return raw.decode(encoding)
    return raw


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


__all__ = [
    "KDF_ITERATIONS",
    "KEY_LENGTH",
    "NONCE_LENGTH",
    "SALT_LENGTH",
    "TAG_LENGTH",
    "canonical_bytes",
    "decode_text",
    "decrypt",
    "derive_symmetric_key",
    "derive_vote_key",
    "encode_text",
    "encrypt",
    "sign",
    "verify",
]
