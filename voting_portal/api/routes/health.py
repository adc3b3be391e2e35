"""Health and readiness endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from voting_portal.api.deps import get_services
from voting_portal.services.container import VotingServices

router = APIRouter()


@router.get("/healthz", summary="Liveness check")
def health_check(services: VotingServices = Depends(get_services)) -> dict[str, str]:
    return {"status": "ok", "service": services.settings.app_name}


@router.get("/readyz", summary="Readiness check")
def readiness_check(services: VotingServices = Depends(get_services)) -> dict[str, str | int]:
    return {
        "status": "ready",
        "service": services.settings.app_name,
        "subjects": len(services.store.list_subjects()),
    }
