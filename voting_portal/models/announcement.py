"""Published tally record."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class Announcement:
    """Signed tally; a new announcement replaces the previous one."""

    tally: dict[str, int] = field(default_factory=dict)
    announced_at: str = ""
    signature: str = ""

    def signed_content(self) -> dict[str, Any]:
        return {"tally": dict(self.tally), "announced_at": self.announced_at}


__all__ = ["Announcement"]
