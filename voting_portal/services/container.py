"""Wiring of the store and the services that share it."""
from __future__ import annotations

from dataclasses import dataclass

from voting_portal.core.config import Settings
from voting_portal.db.session import build_engine
from voting_portal.db.store import SqlVotingStore, VotingStore
from voting_portal.security.crypto import derive_vote_key
from voting_portal.services.ballots import BallotPipeline
from voting_portal.services.credentials import Clock, CredentialManager, utcnow
from voting_portal.services.delivery import CodeDelivery, build_code_delivery
from voting_portal.services.tally import TallyService


@dataclass(slots=True)
class VotingServices:
    settings: Settings
    store: VotingStore
    credentials: CredentialManager
    ballots: BallotPipeline
    tally: TallyService


def build_services(
    settings: Settings,
    *,
    store: VotingStore | None = None,
    delivery: CodeDelivery | None = None,
    clock: Clock = utcnow,
) -> VotingServices:
    """Create one owned store and hand it to every service.

    The vote key is derived once here and held for the lifetime of the
    returned container.
    """
    store = store if store is not None else SqlVotingStore(build_engine(settings.database_url))
    delivery = delivery or build_code_delivery(settings)
    vote_key = derive_vote_key(settings.encryption_secret, settings.vote_key_salt_label)
    return VotingServices(
        settings=settings,
        store=store,
        credentials=CredentialManager(store, delivery, settings, clock=clock),
        ballots=BallotPipeline(
            store,
            vote_key=vote_key,
            signing_secret=settings.signing_secret,
            clock=clock,
        ),
        tally=TallyService(store, signing_secret=settings.signing_secret, clock=clock),
    )


__all__ = ["VotingServices", "build_services"]
