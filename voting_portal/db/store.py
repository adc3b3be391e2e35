"""Subject, ballot and announcement storage."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from threading import RLock

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import SQLAlchemyError

from voting_portal.db.session import build_session_factory, session_scope
from voting_portal.db.tables import AnnouncementRecord, Base, BallotRecord, SubjectRecord
from voting_portal.models import Announcement, Ballot, Subject, SubjectRole
from voting_portal.services.errors import (
    AlreadyVoted,
    DuplicateIdentifier,
    StorageError,
    SubjectNotFound,
)

logger = logging.getLogger(__name__)

ANNOUNCEMENT_ROW_ID = 1


class VotingStore:
    """Process-local store guarded by a single re-entrant lock.

    Subclasses override the ``_persist_*`` hooks to write each mutation
    through to durable storage as one unit. A hook that raises
    :class:`StorageError` leaves the in-memory state as it was before the
    mutation.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._subjects: dict[str, Subject] = {}
        self._ballots: list[Ballot] = []
        self._announcement: Announcement | None = None

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def get_subject(self, identifier: str) -> Subject | None:
        with self._lock:
            return self._subjects.get(identifier)

    def list_subjects(self) -> list[Subject]:
        with self._lock:
            return list(self._subjects.values())

    def find_admin(self) -> Subject | None:
        with self._lock:
            return next(
                (subject for subject in self._subjects.values() if subject.role is SubjectRole.ADMIN),
                None,
            )

    def add_subject(self, subject: Subject) -> Subject:
        with self._lock:
            if subject.identifier in self._subjects:
                raise DuplicateIdentifier()
            self._persist_subject(subject)
            self._subjects[subject.identifier] = subject
            return subject

    def record_ballot(self, ballot: Ballot) -> Ballot:
        """Append ``ballot`` and set its voter's has-voted flag as one unit."""
        with self._lock:
            subject = self._subjects.get(ballot.voter_identifier)
            if subject is None:
                raise SubjectNotFound()
            if subject.has_voted:
                raise AlreadyVoted()

            self._persist_ballot(ballot)
            self._ballots.append(ballot)
            self._subjects[subject.identifier] = subject.mark_voted()
            return ballot

    def list_ballots(self) -> list[Ballot]:
        with self._lock:
            return list(self._ballots)

    def get_announcement(self) -> Announcement | None:
        with self._lock:
            return self._announcement

    def replace_announcement(self, announcement: Announcement) -> Announcement:
        with self._lock:
            self._persist_announcement(announcement)
            self._announcement = announcement
            return announcement

    def _persist_subject(self, subject: Subject) -> None:
        return None

    def _persist_ballot(self, ballot: Ballot) -> None:
        return None

    def _persist_announcement(self, announcement: Announcement) -> None:
        return None


class SqlVotingStore(VotingStore):
    """Store writing every mutation through to a SQL database.

    Rows are loaded once at construction; reads are served from memory and
    each mutation commits in its own transaction before memory is updated.
    """

    def __init__(self, engine: Engine, *, create_schema: bool = True) -> None:
        super().__init__()
        self._session_factory = build_session_factory(engine)
        if create_schema:
            try:
                Base.metadata.create_all(bind=engine)
            except SQLAlchemyError as exc:
                raise StorageError("Unable to create voting tables") from exc
        self._load()

    def _load(self) -> None:
        try:
            with session_scope(self._session_factory) as session:
                subjects = session.scalars(select(SubjectRecord)).all()
                ballots = session.scalars(select(BallotRecord).order_by(BallotRecord.id)).all()
                announcement = session.get(AnnouncementRecord, ANNOUNCEMENT_ROW_ID)
                self._subjects = {row.identifier: _subject_from_row(row) for row in subjects}
                self._ballots = [_ballot_from_row(row) for row in ballots]
                self._announcement = _announcement_from_row(announcement) if announcement else None
        except (AttributeError, LookupError, TypeError, ValueError) as exc:
            raise StorageError("Corrupt voting data") from exc
        logger.info(
            "loaded voting data",
            extra={
                "subjects": len(self._subjects),
                "ballots": len(self._ballots),
                "announced": self._announcement is not None,
            },
        )

    def _persist_subject(self, subject: Subject) -> None:
        with session_scope(self._session_factory) as session:
            session.add(
                SubjectRecord(
                    identifier=subject.identifier,
                    contact=subject.contact,
                    password_hash=subject.password_hash,
                    role=subject.role,
                    has_voted=subject.has_voted,
                )
            )

    def _persist_ballot(self, ballot: Ballot) -> None:
        with session_scope(self._session_factory) as session:
            session.add(
                BallotRecord(
                    voter_identifier=ballot.voter_identifier,
                    candidate=ballot.candidate,
                    signature=ballot.signature,
                    encrypted_payload=ballot.encrypted_payload,
                )
            )
            session.flush()
            session.execute(
                update(SubjectRecord)
                .where(SubjectRecord.identifier == ballot.voter_identifier)
                .values(has_voted=True)
            )

    def _persist_announcement(self, announcement: Announcement) -> None:
        with session_scope(self._session_factory) as session:
            session.merge(
                AnnouncementRecord(
                    id=ANNOUNCEMENT_ROW_ID,
                    tally=dict(announcement.tally),
                    announced_at=announcement.announced_at,
                    signature=announcement.signature,
                )
            )


def _subject_from_row(row: SubjectRecord) -> Subject:
    return Subject(
        identifier=row.identifier,
        contact=row.contact,
        password_hash=row.password_hash,
        role=SubjectRole(row.role),
        has_voted=bool(row.has_voted),
    )


def _ballot_from_row(row: BallotRecord) -> Ballot:
    return Ballot(
        voter_identifier=row.voter_identifier,
        candidate=row.candidate,
        signature=row.signature,
        encrypted_payload=row.encrypted_payload,
    )


def _announcement_from_row(row: AnnouncementRecord) -> Announcement:
    return Announcement(
        tally={str(candidate): int(count) for candidate, count in row.tally.items()},
        announced_at=row.announced_at,
        signature=row.signature,
    )


__all__ = ["SqlVotingStore", "VotingStore"]
