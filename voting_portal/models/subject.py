"""Subject (voter or admin account) record."""
from __future__ import annotations

import enum
from dataclasses import dataclass, replace


class SubjectRole(str, enum.Enum):
    STUDENT = "student"
    ADMIN = "admin"


@dataclass(slots=True, frozen=True)
class Subject:
    """Persisted account; one-time codes are kept elsewhere."""

    identifier: str
    contact: str
    password_hash: str
    role: SubjectRole = SubjectRole.STUDENT
    has_voted: bool = False

    def mark_voted(self) -> "Subject":
        return replace(self, has_voted=True)


__all__ = ["Subject", "SubjectRole"]
