"""Ballot casting endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from voting_portal.api.deps import get_services, http_error, require_permission
from voting_portal.schemas.ballot import VoteCreate, VoteReceipt
from voting_portal.services.access_control import Action
from voting_portal.services.container import VotingServices
from voting_portal.services.credentials import Identity
from voting_portal.services.errors import VotingError

router = APIRouter()


@router.post("/votes", response_model=VoteReceipt, status_code=status.HTTP_201_CREATED)
def cast_vote(
    payload: VoteCreate,
    services: VotingServices = Depends(get_services),
    identity: Identity = Depends(require_permission(Action.CAST_VOTE)),
) -> VoteReceipt:
    try:
        ballot = services.ballots.cast_vote(identity.identifier, payload.candidate)
    except VotingError as exc:
        raise http_error(exc) from exc
    return VoteReceipt(voter_identifier=ballot.voter_identifier, signature=ballot.signature)


__all__ = ["cast_vote", "router"]
