"""Error hierarchy shared by the voting services.

Every error carries a fixed ``detail`` message so that callers can surface it
without leaking which internal check failed.
"""
from __future__ import annotations


class VotingError(RuntimeError):
    """Base exception for recoverable, caller-visible voting errors."""

    detail = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.detail)


class DuplicateIdentifier(VotingError):
    detail = "User already exists"


class InvalidCredentials(VotingError):
    """Unknown identifier, wrong password or wrong admin proof."""

    detail = "Invalid credentials"


class CodeInvalid(VotingError):
    """Missing, mismatched or expired one-time code."""

    detail = "Login code invalid or expired"


class Unauthenticated(VotingError):
    detail = "Invalid or expired token"


class Forbidden(VotingError):
    detail = "Forbidden: access denied by ACL"


class SubjectNotFound(VotingError):
    detail = "User not found"


class AlreadyVoted(VotingError):
    detail = "Already voted"


class MissingCandidate(VotingError):
    detail = "Candidate required"


class IntegrityError(VotingError):
    """Authenticated-encryption tag did not verify."""

    detail = "Encrypted payload failed integrity check"


class FormatError(VotingError):
    """Stored blob is malformed or too short."""

    detail = "Encrypted payload is malformed"


class DeliveryFailed(VotingError):
    detail = "Failed to send login code"


class StorageError(VotingError):
    """The persistence medium could not be read or written."""

    detail = "Storage unavailable"


__all__ = [
    "AlreadyVoted",
    "CodeInvalid",
    "DeliveryFailed",
    "DuplicateIdentifier",
    "Forbidden",
    "FormatError",
    "IntegrityError",
    "InvalidCredentials",
    "MissingCandidate",
    "StorageError",
    "SubjectNotFound",
    "Unauthenticated",
    "VotingError",
]
