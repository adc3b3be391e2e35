"""Schemas for ballot and tally endpoints."""
from __future__ import annotations

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    candidate: str | None = Field(default=None, max_length=128)


class VoteReceipt(BaseModel):
    message: str = "Vote recorded"
    voter_identifier: str
    signature: str


class TallyRead(BaseModel):
    tally: dict[str, int]
    total_ballots: int


class AnnouncementRead(BaseModel):
    message: str = "Results announced"
    tally: dict[str, int]
    announced_at: str
    signature: str


class PublishedResultsRead(BaseModel):
    announced: bool
    tally: dict[str, int] = Field(default_factory=dict)
    announced_at: str | None = None
    signature: str | None = None
    signature_valid: bool | None = None


__all__ = ["AnnouncementRead", "PublishedResultsRead", "TallyRead", "VoteCreate", "VoteReceipt"]
