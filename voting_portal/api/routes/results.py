"""Tally, announcement and public results endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from voting_portal.api.deps import get_services, http_error, require_permission
from voting_portal.schemas.ballot import AnnouncementRead, PublishedResultsRead, TallyRead
from voting_portal.services.access_control import Action
from voting_portal.services.container import VotingServices
from voting_portal.services.credentials import Identity
from voting_portal.services.errors import VotingError

router = APIRouter(prefix="/results")


@router.get("", response_model=TallyRead, summary="Current vote counts")
def view_tally(
    services: VotingServices = Depends(get_services),
    _: Identity = Depends(require_permission(Action.VIEW_TALLY)),
) -> TallyRead:
    tally = services.tally.current_tally()
    return TallyRead(tally=tally, total_ballots=sum(tally.values()))


@router.post("/announce", response_model=AnnouncementRead, summary="Publish a signed tally")
def announce_tally(
    services: VotingServices = Depends(get_services),
    _: Identity = Depends(require_permission(Action.ANNOUNCE_TALLY)),
) -> AnnouncementRead:
    try:
        announcement = services.tally.announce()
    except VotingError as exc:
        raise http_error(exc) from exc
    return AnnouncementRead(
        tally=announcement.tally,
        announced_at=announcement.announced_at,
        signature=announcement.signature,
    )


@router.get("/announced", response_model=PublishedResultsRead, summary="Published results with signature check")
def announced_results(services: VotingServices = Depends(get_services)) -> PublishedResultsRead:
    published = services.tally.published()
    if published.announcement is None:
        return PublishedResultsRead(announced=False)
    return PublishedResultsRead(
        announced=True,
        tally=published.announcement.tally,
        announced_at=published.announcement.announced_at,
        signature=published.announcement.signature,
        signature_valid=published.signature_valid,
    )


__all__ = ["announce_tally", "announced_results", "router", "view_tally"]
