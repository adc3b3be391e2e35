"""Tally aggregation and signed announcements."""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from voting_portal.db.store import VotingStore
from voting_portal.models import Announcement, Ballot
from voting_portal.obs.metrics import ANNOUNCEMENT_COUNTER
from voting_portal.security import crypto
from voting_portal.services.credentials import Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PublishedResults:
    """Public view of the current announcement.

    ``signature_valid`` is ``None`` when nothing has been announced yet.
    """

    announced: bool
    announcement: Announcement | None = None
    signature_valid: bool | None = None


def aggregate(ballots: Iterable[Ballot]) -> dict[str, int]:
    return dict(Counter(ballot.candidate for ballot in ballots))


class TallyService:
    def __init__(self, store: VotingStore, *, signing_secret: str, clock: Clock = utcnow) -> None:
        self._store = store
        self._signing_secret = signing_secret
        self._clock = clock

    def current_tally(self) -> dict[str, int]:
        return aggregate(self._store.list_ballots())

    def announce(self) -> Announcement:
        with self._store.locked():
            tally = self.current_tally()
            unsigned = Announcement(tally=tally, announced_at=self._clock().isoformat())
            announcement = Announcement(
                tally=unsigned.tally,
                announced_at=unsigned.announced_at,
                signature=crypto.sign(unsigned.signed_content(), self._signing_secret),
            )
            self._store.replace_announcement(announcement)
        ANNOUNCEMENT_COUNTER.inc()
        logger.info("tally announced", extra={"candidates": len(tally), "ballots": sum(tally.values())})
        return announcement

    def verify_announcement(self, announcement: Announcement | None) -> bool:
        if announcement is None:
            return False
        return crypto.verify(announcement.signed_content(), announcement.signature, self._signing_secret)

    def published(self) -> PublishedResults:
        announcement = self._store.get_announcement()
        if announcement is None:
            return PublishedResults(announced=False)
        return PublishedResults(
            announced=True,
            announcement=announcement,
            signature_valid=self.verify_announcement(announcement),
        )


__all__ = ["PublishedResults", "TallyService", "aggregate"]
