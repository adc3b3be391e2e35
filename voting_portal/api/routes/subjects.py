"""Subject administration endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from voting_portal.api.deps import get_services, http_error, require_permission
from voting_portal.schemas.subject import SeedAdminResponse, SubjectRead
from voting_portal.services.access_control import Action
from voting_portal.services.container import VotingServices
from voting_portal.services.credentials import Identity
from voting_portal.services.errors import VotingError

router = APIRouter()


@router.get("/subjects", response_model=list[SubjectRead], summary="List registered subjects")
def list_subjects(
    services: VotingServices = Depends(get_services),
    _: Identity = Depends(require_permission(Action.LIST_SUBJECTS)),
) -> list[SubjectRead]:
    return [
        SubjectRead(
            identifier=subject.identifier,
            contact=subject.contact,
            role=subject.role.value,
            has_voted=subject.has_voted,
        )
        for subject in services.store.list_subjects()
    ]


@router.post(
    "/admin/seed",
    response_model=SeedAdminResponse,
    responses={status.HTTP_201_CREATED: {"model": SeedAdminResponse}},
    summary="Create the admin account if none exists",
)
def seed_admin(services: VotingServices = Depends(get_services)) -> JSONResponse:
    try:
        result = services.credentials.seed_admin()
    except VotingError as exc:
        raise http_error(exc) from exc
    body = SeedAdminResponse(
        message="Admin created" if result.created else "Admin already exists",
        identifier=result.subject.identifier,
        contact=result.subject.contact,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        content=body.model_dump(),
    )


__all__ = ["list_subjects", "router", "seed_admin"]
