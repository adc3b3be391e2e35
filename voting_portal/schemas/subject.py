"""Schemas for subject administration endpoints."""
from __future__ import annotations

from pydantic import BaseModel


class SubjectRead(BaseModel):
    identifier: str
    contact: str
    role: str
    has_voted: bool


class SeedAdminResponse(BaseModel):
    message: str
    identifier: str
    contact: str


__all__ = ["SeedAdminResponse", "SubjectRead"]
