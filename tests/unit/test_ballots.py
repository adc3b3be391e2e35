from __future__ import annotations

import dataclasses
from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from tests.conftest import FrozenClock
from voting_portal.db.store import VotingStore
from voting_portal.models import Ballot, Subject
from voting_portal.security.crypto import decode_text, derive_vote_key, encode_text
from voting_portal.services.ballots import BallotPipeline
from voting_portal.services.container import VotingServices
from voting_portal.services.errors import (
    AlreadyVoted,
    IntegrityError,
    MissingCandidate,
    StorageError,
    SubjectNotFound,
)


def _add_voter(store: VotingStore, identifier: str = "S1") -> Subject:
    return store.add_subject(Subject(identifier=identifier, contact=f"{identifier}@x.edu", password_hash="unused"))


def test_cast_vote_records_signed_encrypted_ballot(services: VotingServices, clock: FrozenClock) -> None:
    _add_voter(services.store)

    ballot = services.ballots.cast_vote("S1", "A")

    assert ballot.voter_identifier == "S1"
    assert ballot.candidate == "A"
    assert b'"candidate"' not in decode_text(ballot.encrypted_payload)
    assert services.store.list_ballots() == [ballot]
    assert services.store.get_subject("S1").has_voted is True
    assert services.ballots.verify_ballot(ballot) is True
    assert services.ballots.decrypt_ballot(ballot) == {
        "voter_identifier": "S1",
        "candidate": "A",
        "cast_at": clock().isoformat(),
    }


def test_candidate_is_trimmed(services: VotingServices) -> None:
    _add_voter(services.store)
    assert services.ballots.cast_vote("S1", "  A ").candidate == "A"


def test_second_vote_is_rejected(services: VotingServices) -> None:
    _add_voter(services.store)
    services.ballots.cast_vote("S1", "A")

    with pytest.raises(AlreadyVoted):
        services.ballots.cast_vote("S1", "B")
    assert len(services.store.list_ballots()) == 1


def test_unknown_subject_is_rejected(services: VotingServices) -> None:
    with pytest.raises(SubjectNotFound):
        services.ballots.cast_vote("ghost", "A")


@pytest.mark.parametrize("candidate", [None, "", "   "])
def test_missing_candidate_does_not_consume_vote(services: VotingServices, candidate: str | None) -> None:
    _add_voter(services.store)

    with pytest.raises(MissingCandidate):
        services.ballots.cast_vote("S1", candidate)
    assert services.store.get_subject("S1").has_voted is False
    assert services.store.list_ballots() == []


def test_concurrent_votes_record_exactly_one_ballot(services: VotingServices) -> None:
    _add_voter(services.store)
    attempts = 16
    barrier = Barrier(attempts)

    def attempt(index: int) -> str:
        barrier.wait()
        try:
            services.ballots.cast_vote("S1", f"candidate-{index % 3}")
        except AlreadyVoted:
            return "already_voted"
        return "recorded"

    with ThreadPoolExecutor(max_workers=attempts) as executor:
        outcomes = list(executor.map(attempt, range(attempts)))

    assert outcomes.count("recorded") == 1
    assert outcomes.count("already_voted") == attempts - 1
    assert [ballot.voter_identifier for ballot in services.store.list_ballots()] == ["S1"]


def test_concurrent_votes_for_different_subjects_all_succeed(services: VotingServices) -> None:
    voters = [f"S{index}" for index in range(10)]
    for voter in voters:
        _add_voter(services.store, voter)

    with ThreadPoolExecutor(max_workers=5) as executor:
        list(executor.map(lambda voter: services.ballots.cast_vote(voter, "A"), voters))

    assert sorted(ballot.voter_identifier for ballot in services.store.list_ballots()) == sorted(voters)


def test_tampered_payload_fails_verification(services: VotingServices) -> None:
    _add_voter(services.store)
    ballot = services.ballots.cast_vote("S1", "A")
    raw = bytearray(decode_text(ballot.encrypted_payload))
    raw[-1] ^= 0x01
    tampered = dataclasses.replace(ballot, encrypted_payload=encode_text(bytes(raw)))

    assert services.ballots.verify_ballot(tampered) is False
    with pytest.raises(IntegrityError):
        services.ballots.decrypt_ballot(tampered)


def test_swapped_plain_candidate_fails_verification(services: VotingServices) -> None:
    _add_voter(services.store)
    ballot = services.ballots.cast_vote("S1", "A")

    assert services.ballots.verify_ballot(dataclasses.replace(ballot, candidate="B")) is False
    assert services.ballots.verify_ballot(dataclasses.replace(ballot, signature="00" * 32)) is False


def test_ballot_verification_needs_the_same_vote_key(services: VotingServices) -> None:
    _add_voter(services.store)
    ballot = services.ballots.cast_vote("S1", "A")
    other = BallotPipeline(
        services.store,
        vote_key=derive_vote_key("different-secret", "voting-portal-vote-key-salt"),
        signing_secret=services.settings.signing_secret,
    )

    assert other.verify_ballot(ballot) is False


class _FailingBallotStore(VotingStore):
    def _persist_ballot(self, ballot: Ballot) -> None:
        raise StorageError()


def test_storage_failure_rolls_back_vote(clock: FrozenClock) -> None:
    store = _FailingBallotStore()
    _add_voter(store)
    pipeline = BallotPipeline(store, vote_key=b"k" * 32, signing_secret="s", clock=clock)

    with pytest.raises(StorageError):
        pipeline.cast_vote("S1", "A")
    assert store.get_subject("S1").has_voted is False
    assert store.list_ballots() == []


def test_store_refuses_second_ballot_directly(store: VotingStore) -> None:
    _add_voter(store)
    ballot = Ballot(voter_identifier="S1", candidate="A", signature="sig", encrypted_payload="blob")
    store.record_ballot(ballot)

    with pytest.raises(AlreadyVoted):
        store.record_ballot(ballot)
