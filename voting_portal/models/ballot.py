"""Ballot record."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Ballot:
    voter_identifier: str
    candidate: str
    signature: str
    encrypted_payload: str


__all__ = ["Ballot"]
