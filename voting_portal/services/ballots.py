"""Ballot casting: one vote per subject, encrypted and signed at rest."""
from __future__ import annotations

import json
import logging
from typing import Any

from voting_portal.db.store import VotingStore
from voting_portal.models import Ballot
from voting_portal.obs.metrics import BALLOTS_CAST_COUNTER
from voting_portal.security import crypto
from voting_portal.services.credentials import Clock, utcnow
from voting_portal.services.errors import (
    AlreadyVoted,
    FormatError,
    IntegrityError,
    MissingCandidate,
    SubjectNotFound,
)

logger = logging.getLogger(__name__)


class BallotPipeline:
    """Builds, encrypts, signs and records ballots.

    Callers are expected to have checked the ``cast-vote`` permission.
    """

    def __init__(
        self,
        store: VotingStore,
        *,
        vote_key: bytes,
        signing_secret: str,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._vote_key = vote_key
        self._signing_secret = signing_secret
        self._clock = clock

    def cast_vote(self, identifier: str, candidate: str | None) -> Ballot:
        # The whole check-and-record runs under the store lock so concurrent
        # requests for one subject cannot both observe has_voted == False.
        with self._store.locked():
            subject = self._store.get_subject(identifier)
            if subject is None:
                raise SubjectNotFound()
            if subject.has_voted:
                BALLOTS_CAST_COUNTER.labels(outcome="already_voted").inc()
                raise AlreadyVoted()
            choice = (candidate or "").strip()
            if not choice:
                raise MissingCandidate()

            content = {
                "voter_identifier": subject.identifier,
                "candidate": choice,
                "cast_at": self._clock().isoformat(),
            }
            ballot = Ballot(
                voter_identifier=subject.identifier,
                candidate=choice,
                signature=crypto.sign(content, self._signing_secret),
                encrypted_payload=crypto.encrypt(crypto.canonical_bytes(content), self._vote_key),
            )
            self._store.record_ballot(ballot)

        BALLOTS_CAST_COUNTER.labels(outcome="recorded").inc()
        logger.info("ballot recorded", extra={"voter_identifier": identifier})
        return ballot

    def decrypt_ballot(self, ballot: Ballot) -> dict[str, Any]:
        """Return the encrypted ballot content.

        Raises :class:`IntegrityError` or :class:`FormatError` for tampered or
        malformed payloads.
        """
        plaintext = crypto.decrypt(ballot.encrypted_payload, self._vote_key)
        try:
            content = json.loads(plaintext)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FormatError("Decrypted ballot is not valid JSON") from exc
        if not isinstance(content, dict):
            raise FormatError("Decrypted ballot is not an object")
        return content

    def verify_ballot(self, ballot: Ballot) -> bool:
        """Check the payload decrypts, matches the plain fields and carries a valid signature."""
        try:
            content = self.decrypt_ballot(ballot)
        except (IntegrityError, FormatError):
            return False
        if content.get("voter_identifier") != ballot.voter_identifier:
            return False
        if content.get("candidate") != ballot.candidate:
            return False
        return crypto.verify(content, ballot.signature, self._signing_secret)


__all__ = ["BallotPipeline"]
